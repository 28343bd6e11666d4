"""
Folding sync pages into a SyncState.

merge_page() applies one decoded page:

    1. Upsert live resources and apply deletions, in page order
    2. Release links that pointed at resources deleted by this page
    3. Re-resolve links of all live entries against the cumulative state,
       repointing links whose target was replaced by a newer version
    4. Notify the persistence collaborator for each item, in page order
    5. Replace the token, then notify on_sync_token_advanced and
       on_page_committed

The in-memory graph is consistent before any hook runs, so a failing
hook leaves the state at the previous token with every link pointing at
a live object. Resuming refetches the page.

Step 3 covers the whole state, not just the page: a link may point at a
resource from an earlier page, and a link from an earlier page may point
at a resource that only arrived now.
"""

from dataclasses import dataclass

from content_delivery.core.logger import get_logger
from content_delivery.resources.models import Asset, DeletedResource, Entry
from content_delivery.sync.persistence import PersistenceIntegration
from content_delivery.sync.resolver import release_links, resolve_against
from content_delivery.sync.state import SyncPage, SyncState


logger = get_logger(__name__)


@dataclass
class MergeResult:
    """Counts for one merged page."""
    upserted_entries: int = 0
    upserted_assets: int = 0
    deleted_entries: int = 0
    deleted_assets: int = 0
    links_resolved: int = 0

    @property
    def upserts(self) -> int:
        return self.upserted_entries + self.upserted_assets

    @property
    def deletions(self) -> int:
        return self.deleted_entries + self.deleted_assets


def merge_page(
    state: SyncState,
    page: SyncPage,
    persistence: PersistenceIntegration | None = None
) -> MergeResult:
    """
    Merge one page into `state` in place.

    Args:
        state: The cumulative state. The caller must own it (SyncState.claim()).
        page: A fully decoded page.
        persistence: Optional collaborator notified during the merge.

    Returns:
        MergeResult with counts for this page.
    """
    result = MergeResult()
    deleted_entry_ids: set[str] = set()
    deleted_asset_ids: set[str] = set()
    merged: list[Entry | Asset | DeletedResource] = []

    for item in page.items:
        if isinstance(item, Entry):
            state.entries_by_id[item.id] = item
            state.deleted_entry_ids.discard(item.id)
            deleted_entry_ids.discard(item.id)
            result.upserted_entries += 1

        elif isinstance(item, Asset):
            state.assets_by_id[item.id] = item
            state.deleted_asset_ids.discard(item.id)
            deleted_asset_ids.discard(item.id)
            result.upserted_assets += 1

        elif isinstance(item, DeletedResource) and item.is_entry:
            state.entries_by_id.pop(item.id, None)
            state.deleted_entry_ids.add(item.id)
            deleted_entry_ids.add(item.id)
            result.deleted_entries += 1

        elif isinstance(item, DeletedResource) and item.is_asset:
            state.assets_by_id.pop(item.id, None)
            state.deleted_asset_ids.add(item.id)
            deleted_asset_ids.add(item.id)
            result.deleted_assets += 1

        else:
            # Content types show up in sync responses but are not mirrored
            logger.debug(f"Skipping {item.sys.type} '{item.id}' in sync page")
            continue

        merged.append(item)

    live_entries = list(state.entries_by_id.values())
    release_links(live_entries, deleted_entry_ids, deleted_asset_ids)
    result.links_resolved = resolve_against(
        live_entries, state.entries_by_id, state.assets_by_id, repoint=True
    )

    if persistence is not None:
        _notify_items(persistence, merged)

    state.sync_token = page.sync_token
    state.has_more_pages = page.has_more_pages

    if persistence is not None:
        persistence.on_sync_token_advanced(page.sync_token)
        persistence.on_page_committed()

    logger.debug(
        f"Merged page: {result.upserts} upserts, {result.deletions} deletions, "
        f"{result.links_resolved} links resolved"
    )
    return result


def _notify_items(
    persistence: PersistenceIntegration,
    items: list[Entry | Asset | DeletedResource]
) -> None:
    for item in items:
        if isinstance(item, Entry):
            persistence.on_entry_upserted(item)
        elif isinstance(item, Asset):
            persistence.on_asset_upserted(item)
        elif item.is_entry:
            persistence.on_entry_deleted(item.id)
        else:
            persistence.on_asset_deleted(item.id)
