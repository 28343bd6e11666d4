"""
Hooks for mirroring a sync into external storage.

The page merger calls these while it folds a page into the SyncState:

    on_asset_upserted / on_asset_deleted / on_entry_upserted / on_entry_deleted
        once per item, in page order
    on_sync_token_advanced
        once per page, after all of the page's item callbacks
    on_page_committed
        right after the token advance; stores commit their transaction here

Every notification of page N happens before any notification of page N+1.
Subclass PersistenceIntegration and override what you need; the defaults
do nothing.
"""

from content_delivery.resources.models import Asset, Entry


class PersistenceIntegration:
    """Base class for persistence collaborators. All hooks are no-ops."""

    def on_locales_updated(self, locale_codes: list[str]) -> None:
        """Called when the client loads the space's locale table."""

    def on_asset_upserted(self, asset: Asset) -> None:
        pass

    def on_asset_deleted(self, asset_id: str) -> None:
        pass

    def on_entry_upserted(self, entry: Entry) -> None:
        pass

    def on_entry_deleted(self, entry_id: str) -> None:
        pass

    def on_sync_token_advanced(self, sync_token: str) -> None:
        """Called once per merged page with the page's token."""

    def on_page_committed(self) -> None:
        """Called after on_sync_token_advanced for the same page."""
