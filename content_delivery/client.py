"""
High-level client for the content delivery API.

ContentDeliveryClient ties the pieces together: it owns the transport,
loads and caches the locale table, decodes collection responses with
their includes, and runs sync sessions through SyncCoordinator.

Usage:
    async with ContentDeliveryClient(config) as client:
        entries = await client.fetch_entries({"content_type": "cat"})
        state = await client.sync()
        ...
        state = await client.sync(state)   # only what changed since
"""

from typing import Any

from content_delivery.core.config import Config
from content_delivery.core.exceptions import DecodingError
from content_delivery.core.logger import get_logger
from content_delivery.resources.decoder import ArrayResponse, decode_array_response
from content_delivery.resources.locale import LocaleTable
from content_delivery.resources.models import ContentType, Entry, Space
from content_delivery.sync.coordinator import PageCallback, SyncCoordinator, decode_json
from content_delivery.sync.persistence import PersistenceIntegration
from content_delivery.sync.state import SyncState
from content_delivery.transport.http import AiohttpTransport, BaseTransport
from content_delivery.transport.params import Endpoint, SyncableTypes, endpoint_url


logger = get_logger(__name__)

# The API caps page size at 1000; spaces never have that many locales
LOCALES_PAGE_SIZE = 1000


class ContentDeliveryClient:
    """
    Async client for one space and environment.

    Attributes:
        config: Client configuration.
        transport: Network collaborator. An AiohttpTransport is created
                   when none is given.
        persistence: Optional collaborator passed to every sync run.
    """

    def __init__(
        self,
        config: Config,
        transport: BaseTransport | None = None,
        persistence: PersistenceIntegration | None = None
    ) -> None:
        self.config = config
        self.transport = transport or AiohttpTransport(config)
        self.persistence = persistence
        self._locale_table: LocaleTable | None = None

    async def __aenter__(self) -> "ContentDeliveryClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self.transport.close()

    async def _get_json(
        self,
        endpoint: Endpoint,
        params: dict[str, Any] | None = None,
        resource_id: str | None = None
    ) -> Any:
        url = endpoint_url(self.config, endpoint, resource_id)
        query = {key: str(value) for key, value in (params or {}).items()}
        logger.info(f"GET {endpoint.value}")
        body = await self.transport.fetch(url, query)
        return decode_json(body, url)

    @property
    def locale_table(self) -> LocaleTable | None:
        """The cached locale table, or None before fetch_locales()."""
        return self._locale_table

    async def fetch_locales(self) -> LocaleTable:
        """
        Load the environment's locales (cached after the first call).

        Raises:
            TransportError: Request failed.
            DecodingError: Malformed response.
            ConfigurationError: Invalid locale list (no default, bad fallback).
        """
        if self._locale_table is not None:
            return self._locale_table

        payload = await self._get_json(Endpoint.LOCALES, {"limit": LOCALES_PAGE_SIZE})
        if not isinstance(payload, dict) or not isinstance(payload.get("items"), list):
            raise DecodingError("Locales response has no 'items' list")

        self._locale_table = LocaleTable.from_api(payload["items"])
        logger.info(
            f"Loaded {len(self._locale_table)} locale(s), "
            f"default '{self._locale_table.default.code}'"
        )

        if self.persistence is not None:
            self.persistence.on_locales_updated(list(self._locale_table.locale_codes))
        return self._locale_table

    async def fetch_space(self) -> Space:
        payload = await self._get_json(Endpoint.SPACES)
        return Space.from_api(payload)

    async def fetch_content_types(self, params: dict[str, Any] | None = None) -> list[ContentType]:
        locale_table = await self.fetch_locales()
        payload = await self._get_json(Endpoint.CONTENT_TYPES, params)
        response = decode_array_response(payload, locale_table)
        return [item for item in response.items if isinstance(item, ContentType)]

    async def fetch_entries(self, params: dict[str, Any] | None = None) -> ArrayResponse:
        """
        Query entries. Links are resolved against the response's includes.

        Args:
            params: Query parameters as built by the caller
                    (e.g. {"content_type": "cat", "include": 2}).
        """
        locale_table = await self.fetch_locales()
        payload = await self._get_json(Endpoint.ENTRIES, params)
        return decode_array_response(payload, locale_table)

    async def fetch_assets(self, params: dict[str, Any] | None = None) -> ArrayResponse:
        locale_table = await self.fetch_locales()
        payload = await self._get_json(Endpoint.ASSETS, params)
        return decode_array_response(payload, locale_table)

    async def fetch_entry(self, entry_id: str, include: int | None = None) -> Entry:
        """
        Fetch one entry by id, with its links resolved up to `include` levels.

        Goes through the collection endpoint (sys.id query) so the response
        carries includes.

        Raises:
            DecodingError: If the API returned no matching entry.
        """
        params: dict[str, Any] = {"sys.id": entry_id}
        if include is not None:
            params["include"] = include

        response = await self.fetch_entries(params)
        entry = next((item for item in response.entries if item.id == entry_id), None)
        if entry is None:
            raise DecodingError(
                f"No entry with id '{entry_id}' in response",
                resource_id=entry_id,
                resource_type="Entry"
            )
        return entry

    async def sync(
        self,
        state: SyncState | None = None,
        syncable_types: SyncableTypes = SyncableTypes.ALL,
        extra_params: dict[str, str] | None = None,
        on_page: PageCallback | None = None
    ) -> SyncState:
        """
        Run a sync session. See SyncCoordinator.run_sync().

        Loads the locale table first if needed (preview mode is rejected
        before any request, including this one).
        """
        locale_table = self._locale_table
        if locale_table is None and not self.config.is_preview:
            locale_table = await self.fetch_locales()

        coordinator = SyncCoordinator(
            self.transport,
            self.config,
            locale_table,
            persistence=self.persistence,
            on_page=on_page
        )
        return await coordinator.run_sync(state, syncable_types, extra_params)
