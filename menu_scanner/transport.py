"""Transport client - performs the single POST round trip to the analysis endpoint."""

from __future__ import annotations

import asyncio
import logging
from typing import Mapping, Optional

import httpx

from menu_scanner.config import REQUEST_TIMEOUT, RESOURCE_TIMEOUT
from menu_scanner.errors import TransportError, TransportTimeout, TransportUnreachable

logger = logging.getLogger(__name__)


class TransportClient:
    """Owns one shared httpx.AsyncClient and reuses it across uploads.

    Configuration is read-only after construction. Non-2xx responses are
    returned to the caller, not raised; only network-layer failures raise.
    """

    def __init__(
        self,
        request_timeout: float = REQUEST_TIMEOUT,
        resource_timeout: float = RESOURCE_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.request_timeout = request_timeout
        self.resource_timeout = resource_timeout
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(request_timeout),
            transport=transport,
        )

    async def send(
        self, url: str, headers: Mapping[str, str], body: bytes
    ) -> tuple[int, bytes]:
        """
        POSTs ``body`` to ``url`` once, with no retry.
        Returns (status_code, response_bytes).
        Raises: TransportTimeout, TransportUnreachable.
        """
        try:
            response = await asyncio.wait_for(
                self._client.post(url, headers=dict(headers), content=body),
                timeout=self.resource_timeout,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            logger.error("Upload to %s timed out: %s", url, e)
            raise TransportTimeout(f"Request to {url} timed out") from e
        except httpx.TransportError as e:
            logger.error("Upload to %s failed: %s", url, e)
            raise TransportUnreachable(f"Could not reach {url}: {e}") from e
        except httpx.RequestError as e:
            logger.error("Upload to %s failed reading the response: %s", url, e)
            raise TransportError(f"Request to {url} failed: {e}") from e

        logger.info(
            "POST %s -> %d (%d bytes)", url, response.status_code, len(response.content)
        )
        return response.status_code, response.content

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> TransportClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
