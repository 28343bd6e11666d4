"""
Transport layer: endpoint URLs, query parameters and the HTTP client.

Usage:
    from content_delivery.transport import AiohttpTransport, Endpoint, endpoint_url

    transport = AiohttpTransport(config)
    body = await transport.fetch(endpoint_url(config, Endpoint.SYNC), {"initial": "true"})
    await transport.close()
"""

from content_delivery.transport.http import AiohttpTransport, BaseTransport
from content_delivery.transport.params import (
    SYNCABLE_TYPE_NAMES,
    Endpoint,
    SyncableTypes,
    build_sync_params,
    endpoint_url,
)

__all__ = [
    "BaseTransport",
    "AiohttpTransport",
    "Endpoint",
    "SyncableTypes",
    "SYNCABLE_TYPE_NAMES",
    "build_sync_params",
    "endpoint_url",
]
