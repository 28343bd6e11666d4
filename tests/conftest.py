"""Test configuration and fixtures"""

import json
from typing import Any

import pytest

from content_delivery.core.config import parse_config
from content_delivery.resources.locale import Locale, LocaleTable
from content_delivery.transport.http import BaseTransport


class FakeTransport(BaseTransport):
    """
    Transport that replays queued responses instead of touching the network.

    Queue dicts (sent as JSON), raw bytes, or exceptions (raised on fetch).
    Every request is recorded in `calls` as (url, params).
    """

    def __init__(self, responses: list[Any] | None = None) -> None:
        self.responses = list(responses or [])
        self.calls: list[tuple[str, dict[str, str]]] = []
        self.closed = False

    def queue(self, *responses: Any) -> None:
        self.responses.extend(responses)

    async def fetch(self, url: str, params: dict[str, str] | None = None) -> bytes:
        self.calls.append((url, dict(params or {})))
        if not self.responses:
            raise AssertionError(f"Unexpected request: GET {url} {params}")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        if isinstance(response, bytes):
            return response
        return json.dumps(response).encode("utf-8")

    async def close(self) -> None:
        self.closed = True


class Payloads:
    """Builders for wire JSON as the delivery API sends it."""

    @staticmethod
    def link(link_type: str, target_id: str) -> dict:
        return {"sys": {"type": "Link", "linkType": link_type, "id": target_id}}

    @staticmethod
    def entry(
        entry_id: str,
        fields: dict | None = None,
        content_type: str = "cat",
        updated_at: str = "2024-01-01T00:00:00Z",
        locale: str | None = None
    ) -> dict:
        sys = {
            "id": entry_id,
            "type": "Entry",
            "createdAt": "2024-01-01T00:00:00Z",
            "updatedAt": updated_at,
            "revision": 1,
            "contentType": {"sys": {"type": "Link", "linkType": "ContentType", "id": content_type}},
        }
        if locale is not None:
            sys["locale"] = locale
        return {"sys": sys, "fields": fields or {}}

    @staticmethod
    def asset(
        asset_id: str,
        url: str = "//images.example.net/space/img.png",
        title: str = "Image",
        updated_at: str = "2024-01-01T00:00:00Z"
    ) -> dict:
        return {
            "sys": {
                "id": asset_id,
                "type": "Asset",
                "createdAt": "2024-01-01T00:00:00Z",
                "updatedAt": updated_at,
            },
            "fields": {
                "title": {"en-US": title},
                "file": {"en-US": {"url": url, "fileName": "img.png", "contentType": "image/png"}},
            },
        }

    @staticmethod
    def deleted(resource_type: str, resource_id: str) -> dict:
        return {"sys": {"id": resource_id, "type": f"Deleted{resource_type}"}}

    @staticmethod
    def sync_page(
        items: list[dict],
        next_page_token: str | None = None,
        next_sync_token: str | None = None
    ) -> dict:
        base = "https://cdn.contentful.com/spaces/space1/environments/master/sync"
        payload = {"sys": {"type": "Array"}, "items": items}
        if next_page_token is not None:
            payload["nextPageUrl"] = f"{base}?sync_token={next_page_token}"
        if next_sync_token is not None:
            payload["nextSyncUrl"] = f"{base}?sync_token={next_sync_token}"
        return payload

    @staticmethod
    def locales(locales: list[tuple[str, bool, str | None]]) -> dict:
        return {
            "sys": {"type": "Array"},
            "total": len(locales),
            "items": [
                {"code": code, "name": code, "default": is_default, "fallbackCode": fallback}
                for code, is_default, fallback in locales
            ],
        }


@pytest.fixture
def payloads():
    """Wire JSON builders"""
    return Payloads


@pytest.fixture
def locale_table():
    """
    en-US (default), de-DE -> en-US, de-CH -> de-DE, fr-FR without fallback
    """
    return LocaleTable.build([
        Locale("en-US", "English", is_default=True),
        Locale("de-DE", "German", fallback_code="en-US"),
        Locale("de-CH", "Swiss German", fallback_code="de-DE"),
        Locale("fr-FR", "French"),
    ])


@pytest.fixture
def locales_payload(payloads):
    """/locales response matching the locale_table fixture"""
    return payloads.locales([
        ("en-US", True, None),
        ("de-DE", False, "en-US"),
        ("de-CH", False, "de-DE"),
        ("fr-FR", False, None),
    ])


@pytest.fixture
def raw_config(tmp_path):
    """Minimal valid configuration mapping with storage in tmp_path"""
    return {
        "space": {"id": "space1", "access_token": "token"},
        "storage": {"directory": str(tmp_path / "store")},
    }


@pytest.fixture
def config(raw_config):
    """Delivery API configuration"""
    return parse_config(raw_config)


@pytest.fixture
def preview_config(raw_config):
    """Preview API configuration"""
    return parse_config({**raw_config, "api": {"preview": True}})


@pytest.fixture
def transport():
    """FakeTransport with an empty queue"""
    return FakeTransport()
