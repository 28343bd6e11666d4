"""Test decoding of wire resources"""

from datetime import datetime, timezone

import pytest

from content_delivery.core.exceptions import DecodingError
from content_delivery.resources.decoder import decode_array_response, decode_resource
from content_delivery.resources.models import Asset, ContentType, DeletedResource, Entry, Space


class TestDecodeResource:
    """Test dispatch on sys.type"""

    def test_entry(self, payloads, locale_table):
        entry = decode_resource(
            payloads.entry("cat-1", {"name": {"en-US": "Nyan", "de-DE": "Nyan Katze"}}),
            locale_table
        )

        assert isinstance(entry, Entry)
        assert entry.id == "cat-1"
        assert entry.content_type_id == "cat"
        assert entry.sys.updated_at == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert entry.sys.revision == 1
        assert entry.fields == {"name": "Nyan"}
        assert entry.current_locale.code == "en-US"

    def test_entry_keeps_raw_payload(self, payloads, locale_table):
        raw = payloads.entry("cat-1", {"name": {"en-US": "Nyan"}})
        assert decode_resource(raw, locale_table).raw == raw

    def test_single_locale_entry(self, payloads, locale_table):
        """Test a single-locale response projects its own locale"""
        entry = decode_resource(
            payloads.entry("cat-1", {"name": "Nyan Katze"}, locale="de-DE"),
            locale_table
        )
        assert entry.current_locale.code == "de-DE"
        assert entry.fields == {"name": "Nyan Katze"}
        assert entry.field_value("name", "de-DE") == "Nyan Katze"

    def test_set_locale(self, payloads, locale_table):
        entry = decode_resource(
            payloads.entry("cat-1", {"name": {"en-US": "Nyan", "de-DE": "Nyan Katze"}}),
            locale_table
        )

        assert entry.set_locale("de-CH")
        assert entry.fields["name"] == "Nyan Katze"

        assert not entry.set_locale("it-IT")
        assert entry.current_locale.code == "de-CH"

    def test_asset(self, payloads, locale_table):
        asset = decode_resource(payloads.asset("img-1", title="Nyan"), locale_table)

        assert isinstance(asset, Asset)
        assert asset.title == "Nyan"
        assert asset.url == "https://images.example.net/space/img.png"
        assert asset.file["fileName"] == "img.png"
        assert asset.description is None

    def test_asset_still_processing(self, locale_table):
        """Test an asset whose file has no url yet"""
        asset = decode_resource({
            "sys": {"id": "img-2", "type": "Asset"},
            "fields": {"file": {"en-US": {"upload": "https://upload.example.net/x"}}},
        }, locale_table)
        assert asset.url is None

    def test_deleted_markers(self, payloads, locale_table):
        deleted_entry = decode_resource(payloads.deleted("Entry", "cat-1"), locale_table)
        deleted_asset = decode_resource(payloads.deleted("Asset", "img-1"), locale_table)

        assert isinstance(deleted_entry, DeletedResource)
        assert deleted_entry.is_entry and not deleted_entry.is_asset
        assert deleted_asset.is_asset and not deleted_asset.is_entry
        assert deleted_asset.id == "img-1"

    def test_content_type(self, locale_table):
        content_type = decode_resource({
            "sys": {"id": "cat", "type": "ContentType"},
            "name": "Cat",
            "displayField": "name",
            "fields": [
                {"id": "name", "name": "Name", "type": "Text", "localized": True, "required": True},
                {"id": "image", "name": "Image", "type": "Link", "linkType": "Asset"},
                {"id": "friends", "name": "Friends", "type": "Array",
                 "items": {"type": "Link", "linkType": "Entry"}},
            ],
        }, locale_table)

        assert isinstance(content_type, ContentType)
        assert content_type.display_field == "name"
        assert content_type.field("name").localized
        assert content_type.field("image").link_type == "Asset"
        assert content_type.field("friends").items_link_type == "Entry"
        assert content_type.field("missing") is None

    def test_unknown_type(self, locale_table):
        """Test an unrecognized sys.type is a decoding error, not a crash"""
        with pytest.raises(DecodingError) as exc_info:
            decode_resource({"sys": {"id": "x", "type": "Snapshot"}}, locale_table)
        assert exc_info.value.resource_type == "Snapshot"
        assert exc_info.value.resource_id == "x"

    def test_missing_sys(self, locale_table):
        with pytest.raises(DecodingError):
            decode_resource({"fields": {}}, locale_table)

    def test_missing_id(self, locale_table):
        with pytest.raises(DecodingError) as exc_info:
            decode_resource({"sys": {"type": "Entry"}}, locale_table)
        assert exc_info.value.resource_type == "Entry"

    def test_invalid_timestamp(self, locale_table):
        with pytest.raises(DecodingError) as exc_info:
            decode_resource(
                {"sys": {"id": "cat-1", "type": "Entry", "updatedAt": "yesterday"}, "fields": {}},
                locale_table
            )
        assert exc_info.value.resource_id == "cat-1"

    def test_ambiguous_fields_name_the_resource(self, payloads, locale_table):
        with pytest.raises(DecodingError) as exc_info:
            decode_resource(payloads.entry("cat-1", {"name": "Nyan"}), locale_table)
        assert exc_info.value.resource_id == "cat-1"
        assert exc_info.value.details["field"] == "name"

    def test_not_an_object(self, locale_table):
        with pytest.raises(DecodingError):
            decode_resource("cat-1", locale_table)


class TestDecodeArrayResponse:
    """Test collection responses with includes"""

    def test_links_resolved_against_includes(self, payloads, locale_table):
        payload = {
            "sys": {"type": "Array"},
            "total": 2,
            "skip": 0,
            "limit": 100,
            "items": [
                payloads.entry("cat-1", {
                    "image": {"en-US": payloads.link("Asset", "img-1")},
                    "bestFriend": {"en-US": payloads.link("Entry", "cat-2")},
                }),
                payloads.entry("cat-2", {"bestFriend": {"en-US": payloads.link("Entry", "cat-1")}}),
            ],
            "includes": {"Asset": [payloads.asset("img-1")]},
        }

        response = decode_array_response(payload, locale_table)

        cat_1, cat_2 = response.entries
        assert response.total == 2
        assert response.limit == 100
        assert cat_1.linked_asset("image") is response.included_assets[0]
        assert cat_1.linked_entry("bestFriend") is cat_2
        assert cat_2.linked_entry("bestFriend") is cat_1

    def test_unresolvable_link_kept(self, payloads, locale_table):
        payload = {
            "items": [payloads.entry("cat-1", {"image": {"en-US": payloads.link("Asset", "gone")}})],
            "errors": [{"sys": {"id": "notResolvable", "type": "error"},
                        "details": {"type": "Link", "linkType": "Asset", "id": "gone"}}],
        }

        response = decode_array_response(payload, locale_table)

        link = response.entries[0].link("image")
        assert link is not None and not link.is_resolved
        assert response.entries[0].linked_asset("image") is None
        assert response.errors[0]["sys"]["id"] == "notResolvable"

    def test_missing_items(self, locale_table):
        with pytest.raises(DecodingError):
            decode_array_response({"total": 0}, locale_table)

    def test_includes_not_an_object(self, payloads, locale_table):
        with pytest.raises(DecodingError):
            decode_array_response({"items": [payloads.entry("cat-1")], "includes": ["Asset"]}, locale_table)


class TestSpace:
    """Test space decoding"""

    def test_space(self):
        space = Space.from_api({
            "sys": {"id": "space1", "type": "Space"},
            "name": "Cats",
            "locales": [{"code": "en-US", "name": "English", "default": True}],
        })
        assert space.id == "space1"
        assert space.name == "Cats"
        assert space.locales[0].is_default
