"""
Core module for content-delivery-sync.

This module provides the foundational components used throughout the library:
    - exceptions: Custom exception classes for error handling
    - config: Configuration loading and validation
    - logger: Logging system with console, file and orphan-link outputs
    - database: Thread-safe SQLite mirror of a sync session

The Rich progress bar (core.progress) is only used by the command line
and is not imported here.

Usage:
    from content_delivery.core import (
        Config, load_config,
        SyncStore,
        setup_logging, get_logger,
        ContentDeliveryError, ConfigurationError, TransportError
    )
"""

from content_delivery.core.config import (
    ApiConfig,
    Config,
    SpaceConfig,
    StorageConfig,
    load_config,
    parse_config,
)
from content_delivery.core.exceptions import (
    ConcurrentSyncError,
    ConfigurationError,
    ContentDeliveryError,
    DatabaseError,
    DecodingError,
    SyncError,
    TransportError,
)
from content_delivery.core.logger import (
    get_logger,
    log_orphan_link,
    setup_logging,
    shutdown_logging,
)
from content_delivery.core.database import SyncStore

__all__ = [
    # Config
    "Config",
    "SpaceConfig",
    "ApiConfig",
    "StorageConfig",
    "load_config",
    "parse_config",
    # Database
    "SyncStore",
    # Exceptions
    "ContentDeliveryError",
    "ConfigurationError",
    "DecodingError",
    "TransportError",
    "DatabaseError",
    "SyncError",
    "ConcurrentSyncError",
    # Logger
    "setup_logging",
    "get_logger",
    "log_orphan_link",
    "shutdown_logging",
]
