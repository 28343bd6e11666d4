"""
Link resolution and incremental synchronization.

    - resolver: resolve_links(), release_links(), find_orphan_links()
    - state: SyncPage (one decoded /sync response) and SyncState
    - merger: merge_page(), folding a page into a SyncState
    - persistence: PersistenceIntegration hooks called during merges
    - coordinator: SyncCoordinator, the fetch/merge loop

Usage:
    from content_delivery.sync import SyncCoordinator

    coordinator = SyncCoordinator(transport, config, locale_table)
    state = await coordinator.run_sync()
"""

from content_delivery.sync.coordinator import SyncCoordinator
from content_delivery.sync.merger import MergeResult, merge_page
from content_delivery.sync.persistence import PersistenceIntegration
from content_delivery.sync.resolver import (
    OrphanLink,
    find_orphan_links,
    release_links,
    resolve_against,
    resolve_links,
)
from content_delivery.sync.state import SyncPage, SyncState, extract_sync_token

__all__ = [
    "SyncCoordinator",
    "SyncState",
    "SyncPage",
    "extract_sync_token",
    "MergeResult",
    "merge_page",
    "PersistenceIntegration",
    "OrphanLink",
    "resolve_links",
    "resolve_against",
    "release_links",
    "find_orphan_links",
]
