"""
Sync pages and the cumulative sync state.

A SyncPage is one decoded /sync response. A SyncState is the local mirror
that pages are merged into: live entries and assets by id, the ids of
deleted resources, and the cursor for the next request.

Only the sync token is meaningful to the API. Callers that persist a
SyncState between runs store the token plus their own copy of the
resources (see SyncStore in core.database).
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Generator
from urllib.parse import unquote, urlparse

from content_delivery.core.exceptions import ConcurrentSyncError, DecodingError
from content_delivery.resources.decoder import Resource, decode_resource
from content_delivery.resources.locale import LocaleTable
from content_delivery.resources.models import Asset, DeletedResource, Entry
from content_delivery.sync.resolver import OrphanLink, find_orphan_links
from content_delivery.transport.params import build_sync_params


def extract_sync_token(url: str) -> str:
    """
    Read the sync_token query item of a nextPageUrl / nextSyncUrl.

    Raises:
        DecodingError: If the URL has no sync_token.
    """
    # A literal "+" stays in the token
    token = None
    for item in urlparse(url).query.split("&"):
        name, _, value = item.partition("=")
        if unquote(name) == "sync_token":
            token = unquote(value)
            break
    if not token:
        raise DecodingError(
            "Sync URL has no 'sync_token' parameter",
            details={"url": url}
        )
    return token


@dataclass
class SyncPage:
    """
    One decoded page of sync results.

    Attributes:
        items: Every decoded item, in response order. The merger walks
               this list so notifications follow the page order.
        sync_token: Cursor for the next request.
        has_more_pages: True when the page came with a nextPageUrl.
    """
    items: list[Resource]
    sync_token: str
    has_more_pages: bool

    @property
    def entries(self) -> list[Entry]:
        return [item for item in self.items if isinstance(item, Entry)]

    @property
    def assets(self) -> list[Asset]:
        return [item for item in self.items if isinstance(item, Asset)]

    @property
    def deleted_entry_ids(self) -> list[str]:
        return [item.id for item in self.items if isinstance(item, DeletedResource) and item.is_entry]

    @property
    def deleted_asset_ids(self) -> list[str]:
        return [item.id for item in self.items if isinstance(item, DeletedResource) and item.is_asset]

    @classmethod
    def from_api(cls, payload: Any, locale_table: LocaleTable) -> "SyncPage":
        """
        Decode a /sync response.

        Every item is decoded before the page is returned, so a single
        malformed item fails the whole page and nothing gets merged.

        Raises:
            DecodingError: Malformed payload or item. The error details
                           name the item index.
        """
        if not isinstance(payload, dict):
            raise DecodingError("Sync response must be a JSON object")

        raw_items = payload.get("items")
        if not isinstance(raw_items, list):
            raise DecodingError("Sync response has no 'items' list")

        items = []
        for index, raw in enumerate(raw_items):
            try:
                items.append(decode_resource(raw, locale_table))
            except DecodingError as e:
                raise DecodingError(
                    f"Sync page item {index} could not be decoded: {e.message}",
                    details={**e.details, "index": index},
                    resource_id=e.resource_id,
                    resource_type=e.resource_type
                ) from e

        next_page_url = payload.get("nextPageUrl")
        next_sync_url = payload.get("nextSyncUrl")
        if next_page_url:
            return cls(items, extract_sync_token(next_page_url), has_more_pages=True)
        if next_sync_url:
            return cls(items, extract_sync_token(next_sync_url), has_more_pages=False)

        raise DecodingError("Sync response has neither 'nextPageUrl' nor 'nextSyncUrl'")


class SyncState:
    """
    Cumulative local mirror of the synchronized resources.

    An id is never live and deleted at the same time: entries_by_id and
    deleted_entry_ids are disjoint, as are assets_by_id and
    deleted_asset_ids.

    Only one sync run may own a state at a time (see claim()). Reading a
    state while no run is in progress is safe.

    Attributes:
        entries_by_id: Live entries.
        assets_by_id: Live assets.
        deleted_entry_ids: Ids of entries deleted remotely.
        deleted_asset_ids: Ids of assets deleted remotely.
        sync_token: Cursor of the newest merged page ("" before the first).
        has_more_pages: True if the newest merged page was not the last.
    """

    def __init__(self, sync_token: str = "", has_more_pages: bool = False) -> None:
        self.entries_by_id: dict[str, Entry] = {}
        self.assets_by_id: dict[str, Asset] = {}
        self.deleted_entry_ids: set[str] = set()
        self.deleted_asset_ids: set[str] = set()
        self.sync_token = sync_token
        self.has_more_pages = has_more_pages
        self._run_lock = threading.Lock()

    @property
    def entries(self) -> list[Entry]:
        return list(self.entries_by_id.values())

    @property
    def assets(self) -> list[Asset]:
        return list(self.assets_by_id.values())

    @property
    def is_initial(self) -> bool:
        """True until a first page has been merged."""
        return not self.sync_token

    @property
    def is_syncing(self) -> bool:
        return self._run_lock.locked()

    def next_params(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        """
        Parameters for the next /sync request.

        `extra` (syncable type filters) is only sent when a new session
        starts. While a multi-page session is still open the token alone
        identifies what comes next.
        """
        if self.is_initial:
            return build_sync_params(True, None, extra)
        if self.has_more_pages:
            return build_sync_params(False, self.sync_token)
        return build_sync_params(False, self.sync_token, extra)

    def orphan_links(self) -> list[OrphanLink]:
        """Unresolved links among the live entries."""
        return find_orphan_links(self.entries_by_id.values())

    @contextmanager
    def claim(self) -> Generator["SyncState", None, None]:
        """
        Take exclusive ownership of this state for one sync run.

        Raises:
            ConcurrentSyncError: If another run already owns it.
        """
        if not self._run_lock.acquire(blocking=False):
            raise ConcurrentSyncError(
                "A sync run is already in progress for this state",
                details={"sync_token": self.sync_token}
            )
        try:
            yield self
        finally:
            self._run_lock.release()

    def __repr__(self) -> str:
        return (
            f"SyncState(entries={len(self.entries_by_id)}, assets={len(self.assets_by_id)}, "
            f"token={self.sync_token!r}, has_more_pages={self.has_more_pages})"
        )
