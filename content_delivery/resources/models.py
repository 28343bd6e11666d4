"""
Resource models: Entry, Asset, ContentType, Space and deletion markers.

Entries and Assets keep their values in a LocalizedFieldStore and expose
a projection for one "current" locale through the `fields` property.
Changing the current locale never touches stored data.

Design Decisions:
    - Sys, Field, ContentType and Space are frozen dataclasses
    - Entry and Asset are mutable: the link resolver rewrites their Link
      values in place, and set_locale() changes the projection
    - Every Entry and Asset keeps its raw wire JSON so it can be stored
      and decoded again later
    - Equality is by (id, updatedAt), hashing by id

Usage:
    entry = decode_resource(payload, locale_table)
    entry.fields["name"]           # value in the current locale
    entry.set_locale("de-DE")
    entry.linked_asset("image")    # resolved Asset or None
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterator

from content_delivery.core.exceptions import DecodingError
from content_delivery.resources.fields import LocalizedFieldStore
from content_delivery.resources.link import Link, iter_links
from content_delivery.resources.locale import Locale, LocaleTable


def parse_datetime(value: Any) -> datetime | None:
    """
    Parse an ISO-8601 timestamp as sent by the API.

    Returns None for a missing value.

    Raises:
        DecodingError: If the value is not a valid timestamp.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise DecodingError(f"Invalid timestamp: {value!r}", details={"value": value})
    try:
        # fromisoformat only accepts a trailing Z from 3.11 on
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise DecodingError(f"Invalid timestamp: {value!r}", details={"value": value}) from e


@dataclass(frozen=True)
class Sys:
    """
    System metadata shared by every resource.

    Attributes:
        id: Resource id, unique within its resource type.
        type: "Entry", "Asset", "DeletedEntry", "DeletedAsset", "ContentType", ...
        created_at: Creation time (UTC), if sent.
        updated_at: Last update time (UTC), if sent.
        locale: Locale of a single-locale response, None for all-locale payloads.
        revision: Published revision counter, if sent.
        content_type_id: Content type of an Entry, None for other types.
    """
    id: str
    type: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    locale: str | None = None
    revision: int | None = None
    content_type_id: str | None = None

    @classmethod
    def from_api(cls, data: Any) -> "Sys":
        """
        Parse a 'sys' object.

        Raises:
            DecodingError: If sys is not an object or lacks 'id' or 'type'.
        """
        if not isinstance(data, dict):
            raise DecodingError("Resource has no 'sys' object")

        resource_id = data.get("id")
        resource_type = data.get("type")
        if not isinstance(resource_type, str) or not resource_type:
            raise DecodingError(
                "Resource 'sys' has no 'type'",
                resource_id=resource_id if isinstance(resource_id, str) else None
            )
        if not isinstance(resource_id, str) or not resource_id:
            raise DecodingError(
                f"{resource_type} 'sys' has no 'id'",
                resource_type=resource_type
            )

        content_type_id = None
        content_type = data.get("contentType")
        if isinstance(content_type, dict):
            content_type_sys = content_type.get("sys")
            if isinstance(content_type_sys, dict):
                content_type_id = content_type_sys.get("id")

        try:
            return cls(
                id=resource_id,
                type=resource_type,
                created_at=parse_datetime(data.get("createdAt")),
                updated_at=parse_datetime(data.get("updatedAt")),
                locale=data.get("locale"),
                revision=data.get("revision"),
                content_type_id=content_type_id,
            )
        except DecodingError as e:
            raise DecodingError(
                e.message,
                details=e.details,
                resource_id=resource_id,
                resource_type=resource_type
            ) from e


class LocalizedResource:
    """
    Base class for resources with localized fields (Entry and Asset).

    Attributes:
        sys: System metadata.
        localized_fields: All field values for all locales.
        locale_table: The space's locales, used for projection.
        current_locale: Locale used by the `fields` projection.
        raw: The wire JSON this resource was decoded from.
    """

    def __init__(
        self,
        sys: Sys,
        localized_fields: LocalizedFieldStore,
        locale_table: LocaleTable,
        raw: dict[str, Any] | None = None
    ) -> None:
        self.sys = sys
        self.localized_fields = localized_fields
        self.locale_table = locale_table
        self.raw = raw or {}

        # A single-locale payload only has values under its own locale
        self.current_locale: Locale = locale_table.default
        if sys.locale is not None and sys.locale in locale_table:
            self.current_locale = locale_table.resolve(sys.locale)

    @property
    def id(self) -> str:
        return self.sys.id

    @property
    def fields(self) -> dict[str, Any]:
        """Field values projected for the current locale, with fallback."""
        return self.localized_fields.project(self.current_locale, self.locale_table)

    def set_locale(self, code: str) -> bool:
        """
        Change the locale used by `fields`.

        Returns:
            False (and leaves the current locale alone) for an unknown code.
        """
        locale = self.locale_table.get(code)
        if locale is None:
            return False
        self.current_locale = locale
        return True

    def field_value(self, name: str, locale_code: str | None = None) -> Any:
        """Raw value of one field in one locale, without fallback."""
        return self.localized_fields.get(name, locale_code or self.current_locale.code)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LocalizedResource) or type(other) is not type(self):
            return NotImplemented
        return self.sys.id == other.sys.id and self.sys.updated_at == other.sys.updated_at

    def __hash__(self) -> int:
        return hash(self.sys.id)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.sys.id!r}, locale={self.current_locale.code!r})"


class Entry(LocalizedResource):
    """An entry of some content type. Its fields may link to other resources."""

    @property
    def content_type_id(self) -> str | None:
        return self.sys.content_type_id

    def link(self, name: str) -> Link | None:
        value = self.fields.get(name)
        return value if isinstance(value, Link) else None

    def linked_entry(self, name: str) -> "Entry | None":
        link = self.link(name)
        return link.entry if link is not None else None

    def linked_asset(self, name: str) -> "Asset | None":
        link = self.link(name)
        return link.asset if link is not None else None

    def linked_entries(self, name: str) -> list["Entry"]:
        """Resolved entries of a one-to-many field. Orphans are skipped."""
        return [link.entry for link in iter_links(self.fields.get(name)) if link.entry is not None]

    def linked_assets(self, name: str) -> list["Asset"]:
        """Resolved assets of a one-to-many field. Orphans are skipped."""
        return [link.asset for link in iter_links(self.fields.get(name)) if link.asset is not None]

    def links(self) -> Iterator[tuple[str, str, Link]]:
        """Every stored Link as (field name, locale code, link), all locales."""
        for name, code, value in self.localized_fields.items():
            for link in iter_links(value):
                yield name, code, link


class Asset(LocalizedResource):
    """
    A media file. Assets hold no outgoing links.

    The 'file' field carries the file metadata:
        {"url": "//images.ctfassets.net/...", "fileName": "...",
         "contentType": "image/png", "details": {...}}
    While the file is still being processed the API sends 'upload'
    instead of 'url'.
    """

    @property
    def title(self) -> str | None:
        return self.fields.get("title")

    @property
    def description(self) -> str | None:
        return self.fields.get("description")

    @property
    def file(self) -> dict[str, Any] | None:
        value = self.fields.get("file")
        return value if isinstance(value, dict) else None

    @property
    def url(self) -> str | None:
        """Absolute file URL, or None while the file is processing."""
        file = self.file
        if file is None:
            return None
        url = file.get("url")
        if not isinstance(url, str) or not url:
            return None
        if url.startswith("//"):
            return f"https:{url}"
        return url


@dataclass(frozen=True)
class Field:
    """
    Definition of one field in a content type.

    Attributes:
        id: Field id, the key used in entry 'fields'.
        name: Display name.
        type: Field type ("Symbol", "Text", "Link", "Array", ...).
        link_type: "Entry" or "Asset" for Link fields.
        items_type: Element type for Array fields.
        items_link_type: Element link type for arrays of links.
        localized: Whether the field has per-locale values.
        required: Whether the field must have a value.
        disabled: Whether the field is hidden from editors.
    """
    id: str
    name: str
    type: str
    link_type: str | None = None
    items_type: str | None = None
    items_link_type: str | None = None
    localized: bool = False
    required: bool = False
    disabled: bool = False

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Field":
        if not isinstance(data, dict) or not isinstance(data.get("id"), str):
            raise DecodingError("Content type field without 'id'", details={"field": data})
        items = data.get("items") or {}
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            type=data.get("type", ""),
            link_type=data.get("linkType"),
            items_type=items.get("type"),
            items_link_type=items.get("linkType"),
            localized=bool(data.get("localized", False)),
            required=bool(data.get("required", False)),
            disabled=bool(data.get("disabled", False)),
        )


@dataclass(frozen=True)
class ContentType:
    """A content type: the schema entries of that type follow."""
    sys: Sys
    name: str
    fields: tuple[Field, ...] = ()
    display_field: str | None = None
    description: str | None = None

    @property
    def id(self) -> str:
        return self.sys.id

    def field(self, field_id: str) -> Field | None:
        return next((f for f in self.fields if f.id == field_id), None)

    @classmethod
    def from_api(cls, data: dict[str, Any], sys: Sys | None = None) -> "ContentType":
        sys = sys or Sys.from_api(data.get("sys"))
        raw_fields = data.get("fields") or []
        if not isinstance(raw_fields, list):
            raise DecodingError(
                "Content type 'fields' must be a list",
                resource_id=sys.id,
                resource_type=sys.type
            )
        return cls(
            sys=sys,
            name=data.get("name", sys.id),
            fields=tuple(Field.from_api(item) for item in raw_fields),
            display_field=data.get("displayField"),
            description=data.get("description"),
        )


@dataclass(frozen=True)
class DeletedResource:
    """Marker for a deleted Entry or Asset in a sync page."""
    sys: Sys

    @property
    def id(self) -> str:
        return self.sys.id

    @property
    def is_entry(self) -> bool:
        return self.sys.type == "DeletedEntry"

    @property
    def is_asset(self) -> bool:
        return self.sys.type == "DeletedAsset"


@dataclass(frozen=True)
class Space:
    """A space with its name and locales."""
    sys: Sys
    name: str
    locales: tuple[Locale, ...] = field(default_factory=tuple)

    @property
    def id(self) -> str:
        return self.sys.id

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Space":
        if not isinstance(data, dict):
            raise DecodingError("Space must be a JSON object")
        sys = Sys.from_api(data.get("sys"))
        return cls(
            sys=sys,
            name=data.get("name", sys.id),
            locales=tuple(Locale.from_api(item) for item in data.get("locales") or []),
        )
