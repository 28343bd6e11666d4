"""
HTTP transport.

The sync engine only needs one operation from the network layer:

    fetch(url, params) -> raw response bytes

BaseTransport defines that contract. AiohttpTransport implements it on
top of an aiohttp ClientSession, optionally throttled client-side with
asyncio-throttle.

Failure mapping:
    - non-200 status           -> TransportError(status_code=...)
    - 429 status               -> TransportError(is_rate_limit=True, retry_after=...)
    - aiohttp.ClientError      -> TransportError(status_code=None)
    - timeout                  -> TransportError(status_code=None)
    - asyncio.CancelledError   -> propagated untouched

No retries happen here. Callers that want them wrap the transport.
"""

import asyncio
import json
from abc import ABC, abstractmethod

import aiohttp
from asyncio_throttle import Throttler

from content_delivery import __version__
from content_delivery.core.config import Config
from content_delivery.core.exceptions import TransportError
from content_delivery.core.logger import get_logger


logger = get_logger(__name__)

RATE_LIMIT_RESET_HEADER = "X-Contentful-RateLimit-Reset"
REQUEST_ID_HEADER = "X-Contentful-Request-Id"
USER_AGENT = f"content-delivery-sync/{__version__}"


class BaseTransport(ABC):
    """Contract between the client and the network."""

    @abstractmethod
    async def fetch(self, url: str, params: dict[str, str] | None = None) -> bytes:
        """
        GET `url` with `params` and return the response body.

        Raises:
            TransportError: The request did not produce a 200 response.
        """

    async def close(self) -> None:
        """Release network resources. Default: nothing to release."""


def _parse_error_body(body: bytes) -> tuple[str | None, str | None]:
    """Extract (message, requestId) from an API error body, if it is one."""
    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        return None, None
    if not isinstance(data, dict):
        return None, None
    message = data.get("message")
    request_id = data.get("requestId")
    return (
        message if isinstance(message, str) else None,
        request_id if isinstance(request_id, str) else None,
    )


def _parse_retry_after(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class AiohttpTransport(BaseTransport):
    """
    BaseTransport backed by aiohttp.

    The ClientSession is created lazily on the first request, inside the
    running event loop, and closed by close().

    Attributes:
        config: Client configuration (token, timeout, rate limiting).
    """

    def __init__(self, config: Config) -> None:
        self.config = config
        self._session: aiohttp.ClientSession | None = None
        self._throttler: Throttler | None = None
        if config.api.rate_limiting:
            self._throttler = Throttler(rate_limit=config.api.requests_per_second, period=1.0)

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={
                    "Authorization": f"Bearer {self.config.space.access_token}",
                    "User-Agent": USER_AGENT,
                },
                timeout=aiohttp.ClientTimeout(total=self.config.api.timeout),
            )
        return self._session

    async def fetch(self, url: str, params: dict[str, str] | None = None) -> bytes:
        query = sorted((params or {}).items())

        if self._throttler is not None:
            async with self._throttler:
                return await self._get(url, query)
        return await self._get(url, query)

    async def _get(self, url: str, query: list[tuple[str, str]]) -> bytes:
        session = self._get_session()
        logger.debug(f"GET {url} {dict(query)}")

        try:
            async with session.get(url, params=query) as response:
                body = await response.read()
                status = response.status
                headers = response.headers
        except asyncio.TimeoutError as e:
            logger.error(f"Request timed out: GET {url}")
            raise TransportError(
                f"Request timed out after {self.config.api.timeout}s: GET {url}",
                details={"url": url}
            ) from e
        except aiohttp.ClientError as e:
            logger.error(f"Request failed: GET {url}: {e}")
            raise TransportError(
                f"Request failed: GET {url}: {e}",
                details={"url": url, "original_error": str(e)}
            ) from e

        if status == 200:
            return body

        api_message, request_id = _parse_error_body(body)
        request_id = request_id or headers.get(REQUEST_ID_HEADER)
        is_rate_limit = status == 429
        retry_after = _parse_retry_after(headers.get(RATE_LIMIT_RESET_HEADER)) if is_rate_limit else None

        message = f"HTTP {status}: GET {url}"
        if api_message:
            message = f"{message}: {api_message}"
        logger.error(message)

        raise TransportError(
            message,
            details={"url": url, "status": status},
            status_code=status,
            is_rate_limit=is_rate_limit,
            retry_after=retry_after,
            request_id=request_id
        )

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
