"""
Sync run driver.

SyncCoordinator repeats fetch -> decode -> merge until the API reports the
last page:

    Start (initial=true, no token)
      -> fetch page
      -> decode page (a malformed item fails the page, nothing merged)
      -> merge page into the SyncState, notify persistence
      -> nextPageUrl?  fetch again with the page's token
         nextSyncUrl?  done; the token resumes the next session

Pages are strictly sequential: page N+1 is not requested before page N is
merged and resolved. A failure or cancellation aborts the run but keeps
everything merged from earlier pages.
"""

import json
from typing import Callable

from content_delivery.core.config import Config
from content_delivery.core.exceptions import ConfigurationError, DecodingError
from content_delivery.core.logger import get_logger
from content_delivery.resources.locale import LocaleTable
from content_delivery.sync.merger import MergeResult, merge_page
from content_delivery.sync.persistence import PersistenceIntegration
from content_delivery.sync.state import SyncPage, SyncState
from content_delivery.transport.http import BaseTransport
from content_delivery.transport.params import Endpoint, SyncableTypes, endpoint_url


logger = get_logger(__name__)


PageCallback = Callable[[SyncPage, MergeResult], None]


def decode_json(body: bytes, url: str) -> object:
    """
    Parse a response body.

    Raises:
        DecodingError: If the body is not valid JSON.
    """
    try:
        return json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        raise DecodingError(
            f"Response from {url} is not valid JSON",
            details={"url": url, "original_error": str(e)}
        ) from e


class SyncCoordinator:
    """
    Runs sync sessions against one space.

    Attributes:
        transport: Network collaborator.
        config: Client configuration; sync is refused in preview mode.
        locale_table: The space's locales, used to decode pages.
        persistence: Optional collaborator notified during merges.
        on_page: Optional callback invoked after every merged page.

    Example:
        coordinator = SyncCoordinator(transport, config, locale_table)
        state = await coordinator.run_sync()
        # later, fetch only what changed
        state = await coordinator.run_sync(state)
    """

    def __init__(
        self,
        transport: BaseTransport,
        config: Config,
        locale_table: LocaleTable,
        persistence: PersistenceIntegration | None = None,
        on_page: PageCallback | None = None
    ) -> None:
        self.transport = transport
        self.config = config
        self.locale_table = locale_table
        self.persistence = persistence
        self.on_page = on_page

    async def run_sync(
        self,
        state: SyncState | None = None,
        syncable_types: SyncableTypes = SyncableTypes.ALL,
        extra_params: dict[str, str] | None = None
    ) -> SyncState:
        """
        Synchronize until the last page and return the updated state.

        Args:
            state: State to continue from. None starts an initial sync.
            syncable_types: Which resources to sync. Only sent when a
                            session starts.
            extra_params: Additional query parameters for the first request.

        Returns:
            The same SyncState object (or a new one), with the newest token.

        Raises:
            ConfigurationError: In preview mode, before any request.
            ConcurrentSyncError: If another run owns `state`.
            TransportError: A page fetch failed.
            DecodingError: A page could not be decoded.
        """
        if self.config.is_preview:
            raise ConfigurationError(
                "Synchronization is not available on the preview API",
                details={"host": self.config.api.host}
            )

        if state is None:
            state = SyncState()

        session_params = {**syncable_types.parameters, **(extra_params or {})}
        url = endpoint_url(self.config, Endpoint.SYNC)

        with state.claim():
            logger.info(
                "Starting initial sync" if state.is_initial
                else "Continuing sync from stored token"
            )
            params = state.next_params(session_params)
            pages = 0

            while True:
                logger.info(f"Fetching sync page {pages + 1}")
                body = await self.transport.fetch(url, params)
                page = SyncPage.from_api(decode_json(body, url), self.locale_table)

                result = merge_page(state, page, self.persistence)
                pages += 1
                logger.info(
                    f"Merged sync page {pages}: {result.upserts} upserts, "
                    f"{result.deletions} deletions"
                )

                if self.on_page is not None:
                    self.on_page(page, result)

                if not page.has_more_pages:
                    break
                params = state.next_params()

            logger.info(
                f"Sync complete after {pages} page(s): {len(state.entries_by_id)} entries, "
                f"{len(state.assets_by_id)} assets"
            )

        return state
