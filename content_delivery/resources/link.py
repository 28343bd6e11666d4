"""
Links between resources.

A field value that references another resource arrives on the wire as a
link descriptor:

    {"sys": {"type": "Link", "linkType": "Asset", "id": "img-1"}}

Decoding turns every descriptor into an unresolved Link. The resolver
later swaps each one for a resolved Link carrying the target object.
Links are immutable: resolving never mutates a Link, it replaces it in
the owning field store.

The resolved target is a plain object reference. Entries reach each
other only through Links and the state keeps every resource in id-keyed
maps, so cyclic graphs (A links to B links to A) need no special care.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from content_delivery.resources.models import Asset, Entry


LINK_TYPE_ENTRY = "Entry"
LINK_TYPE_ASSET = "Asset"


@dataclass(frozen=True)
class Link:
    """
    A typed reference to an Entry or Asset.

    Attributes:
        id: id of the target resource.
        link_type: "Entry" or "Asset".
        target: The resolved object, or None while the link is unresolved.
                Not part of equality: two links are equal when they point
                at the same id and type.
    """
    id: str
    link_type: str
    target: "Entry | Asset | None" = field(default=None, compare=False, repr=False)

    @property
    def is_resolved(self) -> bool:
        return self.target is not None

    @property
    def entry(self) -> "Entry | None":
        """The linked Entry, if resolved to one."""
        if self.target is not None and self.link_type == LINK_TYPE_ENTRY:
            return self.target
        return None

    @property
    def asset(self) -> "Asset | None":
        """The linked Asset, if resolved to one."""
        if self.target is not None and self.link_type == LINK_TYPE_ASSET:
            return self.target
        return None

    def resolved(self, target: "Entry | Asset") -> "Link":
        """Return a resolved copy of this link."""
        return Link(self.id, self.link_type, target)

    def unresolved(self) -> "Link":
        """Return an unresolved copy of this link."""
        if self.target is None:
            return self
        return Link(self.id, self.link_type)

    def to_api(self) -> dict[str, Any]:
        """Wire form of the link (always the unresolved descriptor)."""
        return {"sys": {"type": "Link", "linkType": self.link_type, "id": self.id}}

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Link":
        """Create an unresolved Link from a link descriptor."""
        sys = data["sys"]
        return cls(id=sys["id"], link_type=sys["linkType"])


def is_link_descriptor(value: Any) -> bool:
    """True if value is a map with sys.id and sys.linkType."""
    if not isinstance(value, dict):
        return False
    sys = value.get("sys")
    if not isinstance(sys, dict):
        return False
    return isinstance(sys.get("id"), str) and isinstance(sys.get("linkType"), str)


def parse_field_value(value: Any) -> Any:
    """
    Convert link descriptors inside a raw field value into Links.

    A single descriptor becomes a Link. A non-empty list whose elements
    are all descriptors becomes a list of Links. Anything else is
    returned unchanged.
    """
    if is_link_descriptor(value):
        return Link.from_api(value)
    if isinstance(value, list) and value and all(is_link_descriptor(item) for item in value):
        return [Link.from_api(item) for item in value]
    return value


def iter_links(value: Any) -> list[Link]:
    """Return the Links held by a stored field value (single or array)."""
    if isinstance(value, Link):
        return [value]
    if isinstance(value, list):
        return [item for item in value if isinstance(item, Link)]
    return []
