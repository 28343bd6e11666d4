"""Test locale table construction and fallback chains"""

import pytest

from content_delivery.core.exceptions import ConfigurationError, DecodingError
from content_delivery.resources.locale import WILDCARD_LOCALE, Locale, LocaleTable


class TestLocaleTableBuild:
    """Test LocaleTable.build() validation"""

    def test_default_locale(self, locale_table):
        """Test the default locale is found"""
        assert locale_table.default.code == "en-US"
        assert len(locale_table) == 4
        assert "de-CH" in locale_table
        assert "it-IT" not in locale_table

    def test_codes_keep_api_order(self, locale_table):
        """Test iteration follows the order locales were given in"""
        assert locale_table.locale_codes == ("en-US", "de-DE", "de-CH", "fr-FR")
        assert [locale.code for locale in locale_table] == ["en-US", "de-DE", "de-CH", "fr-FR"]

    def test_no_default_locale(self):
        """Test a table without default is rejected"""
        with pytest.raises(ConfigurationError) as exc_info:
            LocaleTable.build([Locale("en-US"), Locale("de-DE")])
        assert exc_info.value.details["locales"] == ["en-US", "de-DE"]

    def test_two_default_locales(self):
        """Test a table with more than one default is rejected"""
        with pytest.raises(ConfigurationError) as exc_info:
            LocaleTable.build([
                Locale("en-US", is_default=True),
                Locale("de-DE", is_default=True),
            ])
        assert exc_info.value.details["defaults"] == ["en-US", "de-DE"]

    def test_dangling_fallback(self):
        """Test a fallback to an unknown locale is rejected"""
        with pytest.raises(ConfigurationError) as exc_info:
            LocaleTable.build([
                Locale("en-US", is_default=True),
                Locale("de-DE", fallback_code="xx-XX"),
            ])
        assert exc_info.value.details["fallback_code"] == "xx-XX"

    def test_cyclic_fallback(self):
        """Test a fallback cycle is rejected at build time"""
        with pytest.raises(ConfigurationError):
            LocaleTable.build([
                Locale("en-US", is_default=True),
                Locale("de-DE", fallback_code="de-CH"),
                Locale("de-CH", fallback_code="de-DE"),
            ])

    def test_default_fallback_is_dropped(self):
        """Test the default locale never falls back, even if the API says so"""
        table = LocaleTable.build([
            Locale("en-US", is_default=True, fallback_code="de-DE"),
            Locale("de-DE", fallback_code="en-US"),
        ])
        assert table.default.fallback_code is None
        assert table.fallback_chain(table.resolve("de-DE")) == ["de-DE", "en-US"]

    def test_from_api(self, locales_payload):
        """Test building from a /locales response"""
        table = LocaleTable.from_api(locales_payload["items"])
        assert table.default.code == "en-US"
        assert table.get("de-CH").fallback_code == "de-DE"
        assert table.get("fr-FR").fallback_code is None

    def test_locale_without_code(self):
        """Test a locale object without code fails to decode"""
        with pytest.raises(DecodingError):
            Locale.from_api({"name": "English", "default": True})


class TestLocaleTableLookup:
    """Test resolve() and fallback_chain()"""

    def test_resolve_none_is_default(self, locale_table):
        assert locale_table.resolve(None) is locale_table.default
        assert locale_table.resolve().code == "en-US"

    def test_resolve_known_code(self, locale_table):
        assert locale_table.resolve("de-DE").code == "de-DE"

    def test_resolve_wildcard(self, locale_table):
        """Test the wildcard has no single projection"""
        with pytest.raises(ConfigurationError):
            locale_table.resolve(WILDCARD_LOCALE)

    def test_resolve_unknown_code(self, locale_table):
        with pytest.raises(ConfigurationError) as exc_info:
            locale_table.resolve("it-IT")
        assert exc_info.value.details["locale"] == "it-IT"

    def test_fallback_chain(self, locale_table):
        """Test chains are walked requested locale first"""
        assert locale_table.fallback_chain(locale_table.resolve("de-CH")) == ["de-CH", "de-DE", "en-US"]
        assert locale_table.fallback_chain(locale_table.resolve("fr-FR")) == ["fr-FR"]
        assert locale_table.fallback_chain(locale_table.default) == ["en-US"]
