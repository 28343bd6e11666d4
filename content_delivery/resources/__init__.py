"""
Resource model for content-delivery-sync.

This module turns wire JSON into typed, localized resources:
    - locale: Locale and LocaleTable (fallback chains)
    - fields: LocalizedFieldStore (normalization and projection)
    - link: Link, the typed reference between resources
    - models: Sys, Entry, Asset, ContentType, Field, Space, DeletedResource
    - decoder: decode_resource() and decode_array_response()

Usage:
    from content_delivery.resources import LocaleTable, Locale, decode_resource

    table = LocaleTable.build([Locale("en-US", is_default=True)])
    entry = decode_resource(payload, table)
"""

from content_delivery.resources.decoder import (
    ArrayResponse,
    Resource,
    decode_array_response,
    decode_resource,
)
from content_delivery.resources.fields import LocalizedFieldStore
from content_delivery.resources.link import LINK_TYPE_ASSET, LINK_TYPE_ENTRY, Link
from content_delivery.resources.locale import WILDCARD_LOCALE, Locale, LocaleTable
from content_delivery.resources.models import (
    Asset,
    ContentType,
    DeletedResource,
    Entry,
    Field,
    LocalizedResource,
    Space,
    Sys,
)

__all__ = [
    # Locales
    "Locale",
    "LocaleTable",
    "WILDCARD_LOCALE",
    # Fields and links
    "LocalizedFieldStore",
    "Link",
    "LINK_TYPE_ENTRY",
    "LINK_TYPE_ASSET",
    # Models
    "Sys",
    "LocalizedResource",
    "Entry",
    "Asset",
    "ContentType",
    "Field",
    "Space",
    "DeletedResource",
    # Decoding
    "Resource",
    "ArrayResponse",
    "decode_resource",
    "decode_array_response",
]
