import json
import sys
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, List

import httpx
import pytest
import pytest_asyncio

_root = Path(__file__).resolve().parents[1]
_src = _root / "src"
for _path in (_src, _root):
    if _path.exists() and str(_path) not in sys.path:
        sys.path.insert(0, str(_path))

from openai.types.chat import ChatCompletion  # noqa: E402

from orderchat.services.tool_catalog import ToolCatalogCache  # noqa: E402

CATALOG: Dict[str, Any] = {
    "tools": [
        {
            "name": "get_all_orders",
            "description": "Lists all orders",
            "method": "GET",
            "endpoint": "/mcp/orders",
            "inputSchema": {"type": "object", "properties": {}, "required": []},
        },
        {
            "name": "get_order_by_id",
            "description": "Gets an order by its ID",
            "method": "GET",
            "endpoint": "/mcp/orders/{id}",
            "inputSchema": {
                "type": "object",
                "properties": {"orderId": {"type": "number"}},
                "required": ["orderId"],
            },
        },
        {
            "name": "cancel_order",
            "description": "Cancels an order",
            "method": "DELETE",
            "endpoint": "/mcp/orders/{id}",
            "inputSchema": {
                "type": "object",
                "properties": {"orderId": {"type": "number"}},
                "required": ["orderId"],
            },
        },
        {
            "name": "update_order_address",
            "description": "Updates the delivery address of an order",
            "method": "PATCH",
            "endpoint": "/mcp/orders/{id}/address",
            "inputSchema": {
                "type": "object",
                "properties": {
                    "orderId": {"type": "number"},
                    "address": {"type": "string"},
                },
                "required": ["orderId", "address"],
            },
        },
        {
            "name": "create_order",
            "description": "Creates an order",
            "method": "POST",
            "endpoint": "/mcp/orders",
            "inputSchema": {
                "type": "object",
                "properties": {"customer": {"type": "string"}},
                "required": ["customer"],
            },
        },
    ]
}

ORDERS: List[Dict[str, Any]] = [
    {"id": 1, "customer_name": "Ayse", "status": "SHIPPED"},
    {"id": 2, "customer_name": "Mehmet", "status": "PENDING"},
]


def make_completion(
    content: str | None = None,
    function_name: str | None = None,
    arguments: str = "{}",
) -> ChatCompletion:
    """Build a ChatCompletion with a single choice (text or function call)."""
    message: Dict[str, Any] = {"role": "assistant", "content": content}
    finish_reason = "stop"
    if function_name is not None:
        message["function_call"] = {"name": function_name, "arguments": arguments}
        finish_reason = "function_call"
    return ChatCompletion.model_validate(
        {
            "id": "chatcmpl-test",
            "object": "chat.completion",
            "created": 0,
            "model": "gpt-4o-mini",
            "choices": [
                {"index": 0, "finish_reason": finish_reason, "message": message}
            ],
        }
    )


class RecordingBackend:
    """httpx MockTransport handler serving the catalog and recording tool requests."""

    def __init__(self, catalog: Any = None) -> None:
        self.catalog = CATALOG if catalog is None else catalog
        self.requests: List[httpx.Request] = []
        self.catalog_hits = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/mcp/tools":
            self.catalog_hits += 1
            return httpx.Response(200, json=self.catalog)
        self.requests.append(request)
        if request.method == "GET" and request.url.path == "/mcp/orders":
            return httpx.Response(200, json=ORDERS)
        if request.method == "DELETE":
            order_id = request.url.path.rsplit("/", 1)[-1]
            return httpx.Response(
                200, json={"message": f"Order {order_id} was cancelled successfully."}
            )
        if request.url.path.endswith("/missing"):
            return httpx.Response(404, text="not found")
        return httpx.Response(200, text=json.dumps({"ok": True}))


@pytest.fixture
def completion_factory() -> Callable[..., ChatCompletion]:
    return make_completion


@pytest.fixture
def backend() -> RecordingBackend:
    return RecordingBackend()


@pytest_asyncio.fixture
async def http_client(backend: RecordingBackend) -> AsyncIterator[httpx.AsyncClient]:
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(backend), base_url="http://tools.test"
    )
    yield client
    await client.aclose()


@pytest.fixture
def catalog(http_client: httpx.AsyncClient) -> ToolCatalogCache:
    return ToolCatalogCache(
        base_url="http://tools.test", catalog_path="/mcp/tools", client=http_client
    )
