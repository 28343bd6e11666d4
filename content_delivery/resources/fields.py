"""
Per-resource storage of localized field values.

The API sends fields in two shapes:

    Single locale (sys.locale is set):
        {"name": "Fox"}

    All locales (locale=* query, and every sync response):
        {"name": {"en-US": "Fox", "de-DE": "Fuchs"}}

LocalizedFieldStore normalizes both into field name -> locale code -> value,
so every lookup is by (field name, locale code) regardless of the wire shape.
Link descriptors are turned into Link objects while normalizing.
"""

from typing import Any, Iterator

from content_delivery.core.exceptions import DecodingError
from content_delivery.resources.link import Link, parse_field_value
from content_delivery.resources.locale import Locale, LocaleTable


class LocalizedFieldStore:
    """
    Mapping of field name to (locale code to value).

    A locale key holding None counts as "no value" during projection.
    """

    def __init__(self, values: dict[str, dict[str, Any]] | None = None) -> None:
        self._values: dict[str, dict[str, Any]] = values or {}

    @classmethod
    def normalize(
        cls,
        fields: dict[str, Any] | None,
        sys_locale: str | None
    ) -> "LocalizedFieldStore":
        """
        Build a store from a raw 'fields' object.

        Args:
            fields: The raw fields JSON (may be None or missing).
            sys_locale: The resource's sys.locale. When set, every field
                        value is stored under that single locale.

        Raises:
            DecodingError: If sys_locale is None and a field value is not
                           a locale-keyed map.
        """
        if fields is None:
            return cls()

        if not isinstance(fields, dict):
            raise DecodingError("'fields' must be a JSON object", details={"fields": fields})

        values: dict[str, dict[str, Any]] = {}

        if sys_locale is not None:
            for name, value in fields.items():
                values[name] = {sys_locale: parse_field_value(value)}
            return cls(values)

        for name, per_locale in fields.items():
            if not isinstance(per_locale, dict):
                raise DecodingError(
                    f"Field '{name}' is not keyed by locale and the resource has no 'sys.locale'",
                    details={"field": name}
                )
            values[name] = {
                code: parse_field_value(value) for code, value in per_locale.items()
            }
        return cls(values)

    @property
    def field_names(self) -> list[str]:
        return list(self._values)

    def __contains__(self, field_name: object) -> bool:
        return field_name in self._values

    def __len__(self) -> int:
        return len(self._values)

    def get(self, field_name: str, locale_code: str) -> Any:
        """Raw value for one field in one locale, or None."""
        return self._values.get(field_name, {}).get(locale_code)

    def set(self, field_name: str, locale_code: str, value: Any) -> None:
        self._values.setdefault(field_name, {})[locale_code] = value

    def locales_for(self, field_name: str) -> dict[str, Any]:
        """Copy of the locale -> value map of one field (wildcard access)."""
        return dict(self._values.get(field_name, {}))

    def items(self) -> Iterator[tuple[str, str, Any]]:
        """Iterate (field name, locale code, value) over every stored value."""
        for name, per_locale in self._values.items():
            for code, value in per_locale.items():
                yield name, code, value

    def _lookup(self, per_locale: dict[str, Any], chain: list[str]) -> tuple[bool, Any]:
        for code in chain:
            value = per_locale.get(code)
            if value is not None:
                return True, value
        return False, None

    def project(self, locale: Locale, locale_table: LocaleTable) -> dict[str, Any]:
        """
        Field values as seen from one locale.

        The default locale's values form the base layer. For every field,
        the requested locale's fallback chain is then walked and the first
        value found overrides the base. Fields without a value anywhere
        in either are left out.
        """
        default_chain = locale_table.fallback_chain(locale_table.default)
        chain = locale_table.fallback_chain(locale)

        projected: dict[str, Any] = {}
        for name, per_locale in self._values.items():
            found, value = self._lookup(per_locale, chain)
            if not found:
                found, value = self._lookup(per_locale, default_chain)
            if found:
                projected[name] = value
        return projected

    def replace_links(self, replace) -> int:
        """
        Rewrite Links in place.

        Args:
            replace: Callable taking a Link and returning the Link to store
                     (the same object when nothing changes).

        Returns:
            Number of Links that were replaced by a different object.
        """
        changed = 0
        for per_locale in self._values.values():
            for code, value in per_locale.items():
                if isinstance(value, Link):
                    new = replace(value)
                    if new is not value:
                        per_locale[code] = new
                        changed += 1
                elif isinstance(value, list):
                    for index, item in enumerate(value):
                        if isinstance(item, Link):
                            new = replace(item)
                            if new is not item:
                                value[index] = new
                                changed += 1
        return changed

    def to_api(self) -> dict[str, dict[str, Any]]:
        """Serialize back to the all-locales wire shape."""
        def dump(value: Any) -> Any:
            if isinstance(value, Link):
                return value.to_api()
            if isinstance(value, list):
                return [dump(item) for item in value]
            return value

        return {
            name: {code: dump(value) for code, value in per_locale.items()}
            for name, per_locale in self._values.items()
        }

    def __repr__(self) -> str:
        return f"LocalizedFieldStore({self.field_names!r})"
