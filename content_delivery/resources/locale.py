"""
Locales and the fallback chain lookup.

A space defines a list of locales. Exactly one of them is the default,
and every other locale may name a fallback locale. When a field has no
value in the requested locale, the fallback chain is walked until a
locale with a value is found.

The LocaleTable is built once per space and shared read-only afterwards.
All chain validation happens in LocaleTable.build(), so lookups never
have to deal with dangling or cyclic fallbacks.
"""

from dataclasses import dataclass, field
from typing import Any, Iterator

from content_delivery.core.exceptions import ConfigurationError, DecodingError


# Sentinel locale code meaning "all locales, no single projection"
WILDCARD_LOCALE = "*"


@dataclass(frozen=True)
class Locale:
    """
    A single locale of a space.

    Attributes:
        code: Locale code, e.g. "en-US".
        name: Human-readable name, e.g. "English (United States)".
        is_default: True for the space's default locale.
        fallback_code: Code of the locale consulted when a field has no
                       value in this one. None ends the chain.
    """
    code: str
    name: str = ""
    is_default: bool = False
    fallback_code: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Locale":
        """
        Create a Locale from an API locale object.

        Raises:
            DecodingError: If 'code' is missing or not a string.
        """
        if not isinstance(data, dict):
            raise DecodingError("Locale must be a JSON object", details={"value": data})

        code = data.get("code")
        if not isinstance(code, str) or not code:
            raise DecodingError("Locale without 'code'", details={"locale": data})

        return cls(
            code=code,
            name=data.get("name") or code,
            is_default=bool(data.get("default", False)),
            fallback_code=data.get("fallbackCode") or None,
        )


@dataclass(frozen=True)
class LocaleTable:
    """
    Immutable lookup of a space's locales.

    Use LocaleTable.build() to create one; it validates the fallback
    graph so that every chain ends at a locale without fallback within
    len(table) steps.

    Attributes:
        default: The default locale.
        locale_codes: All codes, in the order the API returned them.
    """
    default: Locale
    locale_codes: tuple[str, ...]
    _by_code: dict[str, Locale] = field(repr=False, compare=False)

    @classmethod
    def build(cls, locales: list[Locale]) -> "LocaleTable":
        """
        Validate a locale list and build the table.

        Args:
            locales: The space's locales.

        Returns:
            LocaleTable ready for field projection.

        Raises:
            ConfigurationError: If not exactly one locale is the default, if a fallback
                                code names an unknown locale, or if a
                                fallback chain does not terminate.
        """
        by_code: dict[str, Locale] = {}
        for locale in locales:
            by_code[locale.code] = locale

        defaults = [locale for locale in locales if locale.is_default]
        if not defaults:
            raise ConfigurationError(
                "Locale list has no default locale",
                details={"locales": [locale.code for locale in locales]}
            )
        if len(defaults) > 1:
            raise ConfigurationError(
                "Locale list has more than one default locale",
                details={"defaults": [locale.code for locale in defaults]}
            )
        default = defaults[0]

        # The default locale always ends a chain.
        if default.fallback_code is not None:
            default = Locale(default.code, default.name, True, None)
            by_code[default.code] = default

        for locale in by_code.values():
            if locale.fallback_code is not None and locale.fallback_code not in by_code:
                raise ConfigurationError(
                    f"Locale '{locale.code}' falls back to unknown locale '{locale.fallback_code}'",
                    details={"locale": locale.code, "fallback_code": locale.fallback_code}
                )

        max_steps = len(by_code)
        for locale in by_code.values():
            current = locale
            steps = 0
            while current.fallback_code is not None:
                steps += 1
                if steps > max_steps:
                    raise ConfigurationError(
                        f"Fallback chain starting at '{locale.code}' does not terminate",
                        details={"locale": locale.code}
                    )
                current = by_code[current.fallback_code]

        return cls(
            default=default,
            locale_codes=tuple(by_code),
            _by_code=by_code,
        )

    @classmethod
    def from_api(cls, items: list[dict[str, Any]]) -> "LocaleTable":
        """Build a table straight from the 'items' of a /locales response."""
        return cls.build([Locale.from_api(item) for item in items])

    def __len__(self) -> int:
        return len(self._by_code)

    def __contains__(self, code: object) -> bool:
        return code in self._by_code

    def __iter__(self) -> Iterator[Locale]:
        return (self._by_code[code] for code in self.locale_codes)

    def get(self, code: str) -> Locale | None:
        return self._by_code.get(code)

    def resolve(self, requested_code: str | None = None) -> Locale:
        """
        Return the locale a projection should use.

        Args:
            requested_code: A locale code, or None for the default locale.
                            The wildcard "*" has no single projection and is
                            rejected; wildcard callers read raw per-locale
                            values instead.

        Raises:
            ConfigurationError: For the wildcard or an unknown code.
        """
        if requested_code is None:
            return self.default

        if requested_code == WILDCARD_LOCALE:
            raise ConfigurationError(
                "The wildcard locale has no single projection",
                details={"locale": requested_code}
            )

        locale = self._by_code.get(requested_code)
        if locale is None:
            raise ConfigurationError(
                f"Unknown locale '{requested_code}'",
                details={"locale": requested_code, "known": list(self.locale_codes)}
            )
        return locale

    def fallback_chain(self, locale: Locale) -> list[str]:
        """
        List the codes consulted for a locale, requested locale first.

        Bounded by the table size even though build() already rejected
        cycles.
        """
        chain = [locale.code]
        current = locale
        while current.fallback_code is not None and len(chain) <= len(self._by_code):
            current = self._by_code.get(current.fallback_code)
            if current is None:
                break
            chain.append(current.code)
        return chain
