"""
Endpoints and query parameters.

Builds request URLs for the delivery API and the parameter maps the
sync endpoint expects. Pure functions, no I/O.

URL shapes:
    {scheme}://{host}/spaces/{space}/
    {scheme}://{host}/spaces/{space}/environments/{environment}/{endpoint}
"""

from dataclasses import dataclass
from enum import Enum

from content_delivery.core.config import Config


class Endpoint(str, Enum):
    """API endpoints, valued by their path segment."""
    SPACES = "spaces"
    CONTENT_TYPES = "content_types"
    ENTRIES = "entries"
    ASSETS = "assets"
    LOCALES = "locales"
    SYNC = "sync"


def endpoint_url(config: Config, endpoint: Endpoint, resource_id: str | None = None) -> str:
    """
    Build the URL for an endpoint.

    Args:
        config: Configuration providing scheme, host, space and environment.
        endpoint: Which endpoint to address.
        resource_id: Optional id appended to the path (single resource fetch).
    """
    base = f"{config.api.scheme}://{config.api.host}/spaces/{config.space.space_id}/"
    if endpoint is Endpoint.SPACES:
        return base

    url = f"{base}environments/{config.space.environment}/{endpoint.value}"
    if resource_id is not None:
        url = f"{url}/{resource_id}"
    return url


@dataclass(frozen=True)
class SyncableTypes:
    """
    Which resources a sync run covers.

    Use the class-level presets (SyncableTypes.ALL, SyncableTypes.ENTRIES, ...)
    or entries_of_content_type() for a single content type. ALL has no type
    and sends no parameters.
    """
    type: str | None = None
    content_type_id: str | None = None

    @property
    def parameters(self) -> dict[str, str]:
        params: dict[str, str] = {}
        if self.type is not None:
            params["type"] = self.type
        if self.content_type_id is not None:
            params["content_type"] = self.content_type_id
        return params

    @classmethod
    def entries_of_content_type(cls, content_type_id: str) -> "SyncableTypes":
        return cls("Entry", content_type_id)

    @classmethod
    def from_name(cls, name: str) -> "SyncableTypes":
        """Look up a preset by its CLI name (e.g. 'all', 'deleted-entries')."""
        presets = {
            "all": cls.ALL,
            "entries": cls.ENTRIES,
            "assets": cls.ASSETS,
            "deletions": cls.ALL_DELETIONS,
            "deleted-entries": cls.DELETED_ENTRIES,
            "deleted-assets": cls.DELETED_ASSETS,
        }
        try:
            return presets[name]
        except KeyError:
            raise ValueError(f"Unknown syncable type: {name}") from None


SyncableTypes.ALL = SyncableTypes()
SyncableTypes.ENTRIES = SyncableTypes("Entry")
SyncableTypes.ASSETS = SyncableTypes("Asset")
SyncableTypes.ALL_DELETIONS = SyncableTypes("Deletion")
SyncableTypes.DELETED_ENTRIES = SyncableTypes("DeletedEntry")
SyncableTypes.DELETED_ASSETS = SyncableTypes("DeletedAsset")

SYNCABLE_TYPE_NAMES = ("all", "entries", "assets", "deletions", "deleted-entries", "deleted-assets")


def build_sync_params(
    initial: bool,
    sync_token: str | None,
    extra: dict[str, str] | None = None
) -> dict[str, str]:
    """
    Parameters for one /sync request.

    Args:
        initial: True for the first request of a fresh sync.
        sync_token: Token from the previous page; ignored when initial.
        extra: Additional parameters (syncable type filters). Callers pass
               these only on the first request of a run; continuation
               pages carry nothing but the token.

    Returns:
        {"initial": "true", **extra} or {"sync_token": token, **extra}.

    Raises:
        ValueError: If not initial and no token is given.
    """
    params = dict(extra or {})
    if initial:
        params.pop("sync_token", None)
        params["initial"] = "true"
        return params

    if not sync_token:
        raise ValueError("A sync token is required after the initial request")
    params.pop("initial", None)
    params["sync_token"] = sync_token
    return params
