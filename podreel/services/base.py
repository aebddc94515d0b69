import logging
from typing import Optional

import httpx

from .config import ServiceConfig


class ServiceClient:
    """
    Shared plumbing for the remote-service clients.

    Each client either borrows an injected httpx.AsyncClient or lazily creates
    and owns its own. Only an owned client is closed by aclose().
    """

    service_name = "service"

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config or ServiceConfig()
        self._http_client = http_client
        self._owns_client = http_client is None
        self.logger = logging.getLogger("services")

    @property
    def client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self.config.request_timeout_sec,
                follow_redirects=True,
            )
        return self._http_client

    async def aclose(self) -> None:
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
