import logging
from typing import List, Tuple

import httpx

from ..models import ToolDescriptor
from ..settings import get_settings

logger = logging.getLogger(__name__)


class ToolCatalogCache:
    """Fetches the tool provider's catalog once and keeps it for the process lifetime.

    A failed fetch is not cached: the next call tries again. Concurrent first
    calls may both fetch; whichever finishes first populates the cache.
    """

    def __init__(
        self,
        base_url: str,
        catalog_path: str = "/mcp/tools",
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        self._catalog_path = catalog_path
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url, timeout=httpx.Timeout(timeout)
        )
        self._tools: Tuple[ToolDescriptor, ...] | None = None

    @property
    def is_loaded(self) -> bool:
        return self._tools is not None

    async def get_tools(self) -> List[ToolDescriptor]:
        """Return the cached catalog, fetching it on first use.

        Returns:
            List[ToolDescriptor]: The catalog, or [] if the fetch failed.
        """
        if self._tools is not None:
            return list(self._tools)

        tools = await self._fetch()
        if tools is None:
            return []
        if self._tools is None:
            self._tools = tools
            logger.info("Found and cached %d tools", len(tools))
        return list(self._tools)

    async def find(self, name: str) -> ToolDescriptor | None:
        for tool in await self.get_tools():
            if tool.name == name:
                return tool
        return None

    async def _fetch(self) -> Tuple[ToolDescriptor, ...] | None:
        logger.info("Fetching available tools from: %s", self._catalog_path)
        try:
            response = await self._client.get(self._catalog_path)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Error fetching tools: %s", e)
            return None

        if not isinstance(payload, dict) or not isinstance(payload.get("tools"), list):
            logger.error("Tool catalog response has no 'tools' list")
            return None

        try:
            return tuple(ToolDescriptor.from_dict(entry) for entry in payload["tools"])
        except (KeyError, TypeError) as e:
            logger.error("Malformed tool descriptor in catalog: %s", e)
            return None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def build_tool_catalog(client: httpx.AsyncClient | None = None) -> ToolCatalogCache:
    """Build a catalog cache pointed at the configured tool provider."""
    settings = get_settings()
    return ToolCatalogCache(
        base_url=settings.tool_provider_url,
        catalog_path=settings.tool_catalog_path,
        client=client,
        timeout=settings.tool_request_timeout_seconds,
    )
