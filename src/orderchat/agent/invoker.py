import json
import logging
from typing import Any, Dict, Tuple

import httpx

from ..services.tool_catalog import ToolCatalogCache

logger = logging.getLogger(__name__)

PATH_PLACEHOLDER = "{id}"
PATH_ARGUMENT = "orderId"

QUERY_METHODS = frozenset({"GET", "PATCH"})
BODYLESS_METHODS = frozenset({"POST", "PUT", "DELETE"})


def error_payload(message: str) -> str:
    return json.dumps({"error": message})


def parse_result(result: str) -> Any:
    """Decode a tool result as JSON, falling back to the raw text."""
    try:
        return json.loads(result)
    except (TypeError, ValueError):
        return result


def _stringify(value: Any) -> str:
    """Render an argument for a URL: strings as-is, everything else as JSON."""
    if isinstance(value, str):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return json.dumps(value)


def resolve_path(endpoint: str, arguments: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
    """Substitute the ``{id}`` placeholder and return (path, query params).

    Only ``{id}`` bound to ``orderId`` is recognized. Arguments not consumed
    by the substitution are returned as query parameters.
    """
    remaining = dict(arguments)
    path = endpoint
    if PATH_PLACEHOLDER in path and PATH_ARGUMENT in remaining:
        path = path.replace(PATH_PLACEHOLDER, _stringify(remaining.pop(PATH_ARGUMENT)))
    params = {key: _stringify(value) for key, value in remaining.items()}
    return path, params


class ToolInvoker:
    """Calls cataloged tools over HTTP using only their descriptor metadata.

    ``invoke`` never raises: any failure is returned as a JSON error payload
    so the model can see it as a normal tool result.
    """

    def __init__(
        self,
        catalog: ToolCatalogCache,
        base_url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        self._catalog = catalog
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url, timeout=httpx.Timeout(timeout)
        )

    async def invoke(self, tool_name: str, arguments: Dict[str, Any]) -> str:
        """Execute a tool by name.

        Args:
            tool_name: Name of the cataloged tool.
            arguments: Decoded function-call arguments.

        Returns:
            str: The backend response body, or a JSON error payload.
        """
        logger.info("Calling tool %s with arguments: %s", tool_name, arguments)
        try:
            tool = await self._catalog.find(tool_name)
            if tool is None:
                logger.warning("Unknown function: %s", tool_name)
                return error_payload(f"Unknown function: {tool_name}")

            path, params = resolve_path(tool.endpoint, arguments)
            result = await self._execute(tool.method, path, params)
            logger.info("Tool %s executed successfully", tool_name)
            return result
        except Exception as e:
            logger.exception("Error calling tool %s", tool_name)
            return error_payload(str(e) or type(e).__name__)

    async def _execute(self, method: str, path: str, params: Dict[str, str]) -> str:
        method = method.upper()
        if method in QUERY_METHODS:
            response = await self._client.request(method, path, params=params)
        elif method in BODYLESS_METHODS:
            response = await self._client.request(method, path)
        else:
            raise ValueError(f"Unsupported HTTP method: {method}")
        response.raise_for_status()
        return response.text

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
