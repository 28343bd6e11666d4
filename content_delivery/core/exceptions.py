"""
Exception classes for content-delivery-sync.

This module defines all custom exceptions used throughout the library.
Each exception carries a human-readable message plus a details dictionary,
so callers can tell apart "the network failed" from "the data arrived but
could not be decoded" from "the operation is not allowed in this setup".

Exception Hierarchy:
    ContentDeliveryError (base)
        ConfigurationError - Bad config file, invalid locale table, preview-mode sync
        DecodingError - Malformed wire payload
        TransportError - Network or HTTP failure
        DatabaseError - Local sqlite store issues
        SyncError - Errors raised while a sync run is in progress
            ConcurrentSyncError - Second sync started against a busy SyncState
"""


class ContentDeliveryError(Exception):
    """
    Base exception for all content-delivery-sync errors.

    All custom exceptions in this project inherit from this class,
    allowing callers to catch every library error with a single
    except clause if desired.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (e.g., resource ids, URLs).

    Example:
        try:
            state = await client.sync()
        except ContentDeliveryError as e:
            logger.error(f"Sync failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description that will be shown to the user.
            details: Optional dictionary containing additional context about the error.
                     Common keys include:
                     - 'resource_id': id of the resource involved in the error
                     - 'url': URL that caused the error
                     - 'original_error': The underlying exception if wrapping another error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigurationError(ContentDeliveryError):
    """
    Raised when the library is set up in a way that cannot work.

    This is a FATAL error for the operation. It is surfaced immediately
    and never retried.

    Common causes:
        - config.yaml not found, invalid YAML, missing space id or token
        - Locale list without a default locale
        - A locale whose fallbackCode points at an unknown locale
        - A cyclic fallback chain
        - Synchronization attempted against the preview API

    Example:
        raise ConfigurationError(
            "Locale 'de-DE' falls back to unknown locale 'fr-FR'",
            details={'locale': 'de-DE', 'fallback_code': 'fr-FR'}
        )
    """
    pass


class DecodingError(ContentDeliveryError):
    """
    Raised when a payload arrived but could not be turned into resources.

    Not retried. A DecodingError inside a sync page aborts that page
    before anything is merged.

    Common causes:
        - Missing 'sys', 'sys.id' or 'sys.type'
        - Unrecognized 'sys.type'
        - Fields without 'sys.locale' that are not locale-keyed maps
        - Sync response with neither 'nextPageUrl' nor 'nextSyncUrl'
        - Response body that is not valid JSON

    Attributes:
        resource_id: id of the offending resource, when known.
        resource_type: 'sys.type' of the offending resource, when known.
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        resource_id: str | None = None,
        resource_type: str | None = None
    ) -> None:
        super().__init__(message, details)
        self.resource_id = resource_id
        self.resource_type = resource_type


class TransportError(ContentDeliveryError):
    """
    Raised when a request could not be completed.

    The sync engine never retries on its own; retry policy belongs to
    whoever owns the transport. State merged before the failure is kept.

    Attributes:
        status_code: HTTP status code, or None for network-level failures.
        is_rate_limit: True if the API answered 429.
        retry_after: Seconds until the rate limit resets, when the API said so.
        request_id: API request id, useful for support requests.

    Example:
        raise TransportError(
            "Rate limited: GET https://cdn.contentful.com/spaces/abc/...",
            details={'url': url},
            status_code=429,
            is_rate_limit=True,
            retry_after=1
        )
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        status_code: int | None = None,
        is_rate_limit: bool = False,
        retry_after: int | None = None,
        request_id: str | None = None
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code
        self.is_rate_limit = is_rate_limit
        self.retry_after = retry_after
        self.request_id = request_id


class DatabaseError(ContentDeliveryError):
    """
    Raised when there's an issue with the local sqlite store.

    Common causes:
        - Parent directory of the database file does not exist
        - Schema version mismatch
        - Stored resource JSON is corrupted
    """
    pass


class SyncError(ContentDeliveryError):
    """Base class for errors raised by a running synchronization."""
    pass


class ConcurrentSyncError(SyncError):
    """
    Raised when a sync run is started against a SyncState that is
    already owned by another run.

    A SyncState may only be mutated by one run at a time. The second
    caller fails immediately; the first run is not affected.
    """
    pass
