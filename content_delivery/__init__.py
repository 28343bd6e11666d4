"""
content-delivery-sync: client core for a content delivery API.

This package fetches entries and assets from a content delivery space,
resolves the links between them, and keeps a local mirror up to date
with incremental sync sessions.

Architecture:
    Raw JSON flows through four stages:

    DECODE (resources/): wire JSON to typed resources
        - Normalize localized fields (single-locale or all-locale payloads)
        - Turn link descriptors into unresolved Links
        - Reject malformed resources with DecodingError

    RESOLVE (sync/resolver.py): Links to objects
        - Id-keyed lookup of Entry and Asset targets
        - Idempotent; orphans stay unresolved, never an error

    MERGE (sync/merger.py): one sync page into the cumulative SyncState
        - Upserts and deletions, mutually exclusive per id
        - Re-resolution against the whole state
        - Persistence notifications, then the token advance

    COORDINATE (sync/coordinator.py): page after page until the last one
        - initial=true first, then the previous page's sync_token
        - Preview mode refused before any request
        - One run per SyncState at a time

Modules:
    core/         - Configuration, exceptions, logging, SQLite store, progress
    resources/    - Locales, localized fields, links, models, decoding
    sync/         - Resolver, state, merger, persistence hooks, coordinator
    transport/    - Endpoint URLs, sync parameters, aiohttp transport
    client.py     - ContentDeliveryClient facade
    cli.py        - Command-line interface

Usage:
    Command Line:
        cds sync
        cds sync --content-type cat
        cds status

    Python API:
        from content_delivery import ContentDeliveryClient, SyncStore, load_config

        config = load_config()
        store = SyncStore(config.storage.database_path)

        async with ContentDeliveryClient(config, persistence=store) as client:
            state = await client.sync()
            cat = state.entries_by_id["cat-1"]
            print(cat.fields["name"], cat.linked_asset("image").url)

Dependencies:
    - aiohttp: HTTP transport
    - asyncio-throttle: client-side rate limiting
    - pyyaml / python-dotenv: configuration
    - click / rich-click: CLI
    - rich / tqdm: progress and console logging
"""

__version__ = "0.1.0"
__author__ = "content-delivery-sync"
__license__ = "MIT"

# Convenience imports for common usage
from content_delivery.core import (
    ConcurrentSyncError,
    Config,
    ConfigurationError,
    ContentDeliveryError,
    DatabaseError,
    DecodingError,
    SyncError,
    SyncStore,
    TransportError,
    get_logger,
    load_config,
    setup_logging,
)
from content_delivery.resources import Asset, Entry, Link, Locale, LocaleTable
from content_delivery.sync import PersistenceIntegration, SyncCoordinator, SyncState
from content_delivery.transport import SyncableTypes
from content_delivery.client import ContentDeliveryClient

__all__ = [
    # Version
    "__version__",
    # Core
    "Config",
    "load_config",
    "SyncStore",
    "setup_logging",
    "get_logger",
    # Exceptions
    "ContentDeliveryError",
    "ConfigurationError",
    "DecodingError",
    "TransportError",
    "DatabaseError",
    "SyncError",
    "ConcurrentSyncError",
    # Models
    "Locale",
    "LocaleTable",
    "Entry",
    "Asset",
    "Link",
    # Sync
    "SyncState",
    "SyncCoordinator",
    "SyncableTypes",
    "PersistenceIntegration",
    "ContentDeliveryClient",
]
