"""
Link resolution.

Rewrites the Links stored in entries so they carry their target object.
Resolution is monotonic and idempotent: an already resolved Link is left
alone, and a Link whose target is not available stays unresolved (an
orphan) until a later call finds the target. Orphans are not errors.

Lookups go through id-keyed maps, so resolving N links against M
resources is O(N + M).
"""

from dataclasses import dataclass
from typing import Iterable

from content_delivery.resources.link import LINK_TYPE_ASSET, LINK_TYPE_ENTRY, Link
from content_delivery.resources.models import Asset, Entry


@dataclass(frozen=True)
class OrphanLink:
    """An unresolved link found after resolution."""
    source_id: str
    field: str
    locale: str
    target_id: str
    target_type: str


def _pool_for(
    link: Link,
    entries_by_id: dict[str, Entry],
    assets_by_id: dict[str, Asset]
) -> dict | None:
    if link.link_type == LINK_TYPE_ENTRY:
        return entries_by_id
    if link.link_type == LINK_TYPE_ASSET:
        return assets_by_id
    return None


def resolve_against(
    entries: Iterable[Entry],
    entries_by_id: dict[str, Entry],
    assets_by_id: dict[str, Asset],
    repoint: bool = False
) -> int:
    """
    Resolve the links of `entries` against id-keyed pools.

    Args:
        entries: Entries whose links are rewritten in place.
        entries_by_id: Pool for links with linkType "Entry".
        assets_by_id: Pool for links with linkType "Asset".
        repoint: Also rewrite resolved links whose target is no longer
                 the object held in the pool (the resource was replaced
                 by a newer version).

    Returns:
        Number of links rewritten.
    """
    def replace(link: Link) -> Link:
        pool = _pool_for(link, entries_by_id, assets_by_id)
        if pool is None:
            return link
        if link.is_resolved:
            if repoint:
                current = pool.get(link.id)
                if current is not None and current is not link.target:
                    return link.resolved(current)
            return link
        target = pool.get(link.id)
        if target is None:
            return link
        return link.resolved(target)

    rewritten = 0
    for entry in entries:
        rewritten += entry.localized_fields.replace_links(replace)
    return rewritten


def resolve_links(entries: Iterable[Entry], assets: Iterable[Asset]) -> int:
    """
    Resolve every unresolved link in `entries`.

    The pool is `entries` plus `assets`. Calling this again with the same
    or a larger set of resources is safe and only resolves what was still
    missing.

    Returns:
        Number of links that became resolved.
    """
    entries = list(entries)
    entries_by_id = {entry.id: entry for entry in entries}
    assets_by_id = {asset.id: asset for asset in assets}
    return resolve_against(entries, entries_by_id, assets_by_id)


def release_links(
    entries: Iterable[Entry],
    deleted_entry_ids: set[str],
    deleted_asset_ids: set[str]
) -> int:
    """
    Turn links to deleted resources back into unresolved links.

    Returns:
        Number of links released.
    """
    if not deleted_entry_ids and not deleted_asset_ids:
        return 0

    def replace(link: Link) -> Link:
        if not link.is_resolved:
            return link
        if link.link_type == LINK_TYPE_ENTRY and link.id in deleted_entry_ids:
            return link.unresolved()
        if link.link_type == LINK_TYPE_ASSET and link.id in deleted_asset_ids:
            return link.unresolved()
        return link

    released = 0
    for entry in entries:
        released += entry.localized_fields.replace_links(replace)
    return released


def find_orphan_links(entries: Iterable[Entry]) -> list[OrphanLink]:
    """List every unresolved link, in entry and field order."""
    orphans = []
    for entry in entries:
        for field_name, locale_code, link in entry.links():
            if not link.is_resolved:
                orphans.append(OrphanLink(
                    source_id=entry.id,
                    field=field_name,
                    locale=locale_code,
                    target_id=link.id,
                    target_type=link.link_type,
                ))
    return orphans
