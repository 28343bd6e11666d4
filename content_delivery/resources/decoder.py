"""
Decoding wire JSON into resources.

decode_resource() dispatches on sys.type. Unknown or missing types raise
DecodingError; they never crash the process.

decode_array_response() handles collection responses (/entries, /assets,
/content_types): it decodes the items and the 'includes' section, then
resolves links across all of them.
"""

from dataclasses import dataclass, field
from typing import Any

from content_delivery.core.exceptions import DecodingError
from content_delivery.resources.fields import LocalizedFieldStore
from content_delivery.resources.locale import LocaleTable
from content_delivery.resources.models import (
    Asset,
    ContentType,
    DeletedResource,
    Entry,
    Sys,
)


Resource = Entry | Asset | ContentType | DeletedResource


def decode_resource(data: Any, locale_table: LocaleTable) -> Resource:
    """
    Turn one resource object into its typed form.

    Args:
        data: The resource JSON.
        locale_table: The space's locales.

    Returns:
        Entry, Asset, ContentType or DeletedResource depending on sys.type.

    Raises:
        DecodingError: Missing sys fields, unknown sys.type, or fields in
                       an ambiguous shape.
    """
    if not isinstance(data, dict):
        raise DecodingError("Resource must be a JSON object", details={"value": data})

    sys = Sys.from_api(data.get("sys"))

    if sys.type in ("Entry", "Asset"):
        try:
            store = LocalizedFieldStore.normalize(data.get("fields"), sys.locale)
        except DecodingError as e:
            raise DecodingError(
                f"{sys.type} '{sys.id}': {e.message}",
                details=e.details,
                resource_id=sys.id,
                resource_type=sys.type
            ) from e
        resource_class = Entry if sys.type == "Entry" else Asset
        return resource_class(sys, store, locale_table, raw=data)

    if sys.type in ("DeletedEntry", "DeletedAsset"):
        return DeletedResource(sys)

    if sys.type == "ContentType":
        return ContentType.from_api(data, sys)

    raise DecodingError(
        f"Unrecognized resource type '{sys.type}'",
        details={"type": sys.type},
        resource_id=sys.id,
        resource_type=sys.type
    )


@dataclass
class ArrayResponse:
    """
    A decoded collection response.

    Attributes:
        items: The requested resources, in response order.
        limit, skip, total: Pagination values echoed by the API.
        included_entries: Entries from the 'includes' section.
        included_assets: Assets from the 'includes' section.
        errors: The API's 'errors' array (e.g. notResolvable links), raw.
    """
    items: list[Resource]
    limit: int = 0
    skip: int = 0
    total: int = 0
    included_entries: list[Entry] = field(default_factory=list)
    included_assets: list[Asset] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)

    @property
    def entries(self) -> list[Entry]:
        return [item for item in self.items if isinstance(item, Entry)]

    @property
    def assets(self) -> list[Asset]:
        return [item for item in self.items if isinstance(item, Asset)]


def decode_array_response(payload: Any, locale_table: LocaleTable) -> ArrayResponse:
    """
    Decode a collection response and resolve its links.

    Links are resolved against items and includes together, so an item
    may point at another item as well as at an included resource.

    Raises:
        DecodingError: If the payload or any item is malformed.
    """
    # Imported here: the resolver lives in the sync package, which
    # depends on this module.
    from content_delivery.sync.resolver import resolve_links

    if not isinstance(payload, dict) or not isinstance(payload.get("items"), list):
        raise DecodingError("Collection response has no 'items' list")

    items = [decode_resource(item, locale_table) for item in payload["items"]]

    includes = payload.get("includes") or {}
    if not isinstance(includes, dict):
        raise DecodingError("Collection response 'includes' is not an object")
    included_entries = [
        decode_resource(item, locale_table) for item in includes.get("Entry") or []
    ]
    included_assets = [
        decode_resource(item, locale_table) for item in includes.get("Asset") or []
    ]

    all_entries = [item for item in items if isinstance(item, Entry)] + [
        item for item in included_entries if isinstance(item, Entry)
    ]
    all_assets = [item for item in items if isinstance(item, Asset)] + [
        item for item in included_assets if isinstance(item, Asset)
    ]
    resolve_links(all_entries, all_assets)

    return ArrayResponse(
        items=items,
        limit=payload.get("limit", 0),
        skip=payload.get("skip", 0),
        total=payload.get("total", len(items)),
        included_entries=[item for item in included_entries if isinstance(item, Entry)],
        included_assets=[item for item in included_assets if isinstance(item, Asset)],
        errors=list(payload.get("errors") or []),
    )
