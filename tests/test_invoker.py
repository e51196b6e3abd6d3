import json

import httpx
import pytest

from orderchat.agent.invoker import ToolInvoker, parse_result, resolve_path
from orderchat.services.tool_catalog import ToolCatalogCache

from conftest import RecordingBackend


@pytest.fixture
def invoker(catalog: ToolCatalogCache, http_client: httpx.AsyncClient) -> ToolInvoker:
    return ToolInvoker(catalog=catalog, base_url="http://tools.test", client=http_client)


def test_resolve_path_substitutes_order_id() -> None:
    path, params = resolve_path("/mcp/orders/{id}/address", {"orderId": 7, "address": "home"})
    assert path == "/mcp/orders/7/address"
    assert params == {"address": "home"}


def test_resolve_path_renders_integral_floats_as_ints() -> None:
    path, _ = resolve_path("/mcp/orders/{id}", {"orderId": 5.0})
    assert path == "/mcp/orders/5"


def test_resolve_path_keeps_unconsumed_order_id_as_query() -> None:
    path, params = resolve_path("/mcp/orders", {"orderId": 3})
    assert path == "/mcp/orders"
    assert params == {"orderId": "3"}


def test_resolve_path_renders_non_string_values_as_json() -> None:
    """Booleans, nulls and nested values reach the query string in JSON form."""
    _, params = resolve_path(
        "/mcp/orders",
        {"express": False, "gift": True, "note": None, "tags": ["a", "b"], "name": "x y"},
    )
    assert params == {
        "express": "false",
        "gift": "true",
        "note": "null",
        "tags": '["a", "b"]',
        "name": "x y",
    }


def test_parse_result_falls_back_to_raw_text() -> None:
    assert parse_result('{"a": 1}') == {"a": 1}
    assert parse_result("plain text") == "plain text"


@pytest.mark.asyncio
async def test_unknown_tool_returns_error_payload(
    invoker: ToolInvoker, backend: RecordingBackend
) -> None:
    result = await invoker.invoke("does_not_exist", {"x": 1})
    assert json.loads(result) == {"error": "Unknown function: does_not_exist"}
    assert backend.requests == []


@pytest.mark.asyncio
async def test_get_attaches_extra_arguments_as_query(
    invoker: ToolInvoker, backend: RecordingBackend
) -> None:
    await invoker.invoke("get_order_by_id", {"orderId": 12, "verbose": True, "lang": "en"})
    request = backend.requests[-1]
    assert request.method == "GET"
    assert request.url.path == "/mcp/orders/12"
    assert request.url.params["lang"] == "en"
    assert request.url.params["verbose"] == "true"
    assert "orderId" not in request.url.params


@pytest.mark.asyncio
async def test_patch_attaches_query_params(
    invoker: ToolInvoker, backend: RecordingBackend
) -> None:
    await invoker.invoke("update_order_address", {"orderId": 5, "address": "home"})
    request = backend.requests[-1]
    assert request.method == "PATCH"
    assert request.url.path == "/mcp/orders/5/address"
    assert dict(request.url.params) == {"address": "home"}


@pytest.mark.asyncio
async def test_post_does_not_attach_query_params(
    invoker: ToolInvoker, backend: RecordingBackend
) -> None:
    await invoker.invoke("create_order", {"customer": "Ayse"})
    request = backend.requests[-1]
    assert request.method == "POST"
    assert request.url.path == "/mcp/orders"
    assert dict(request.url.params) == {}


@pytest.mark.asyncio
async def test_delete_resolves_path_without_query(
    invoker: ToolInvoker, backend: RecordingBackend
) -> None:
    result = await invoker.invoke("cancel_order", {"orderId": 5})
    request = backend.requests[-1]
    assert request.method == "DELETE"
    assert request.url.path == "/mcp/orders/5"
    assert dict(request.url.params) == {}
    assert "cancelled" in json.loads(result)["message"]


@pytest.mark.asyncio
async def test_http_error_status_becomes_error_payload(
    invoker: ToolInvoker, backend: RecordingBackend
) -> None:
    result = await invoker.invoke("get_order_by_id", {"orderId": "missing"})
    payload = json.loads(result)
    assert "error" in payload
    assert "404" in payload["error"]


@pytest.mark.asyncio
async def test_transport_error_is_not_raised() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/mcp/tools":
            return httpx.Response(
                200,
                json={
                    "tools": [
                        {"name": "t", "description": "", "method": "GET", "endpoint": "/t"}
                    ]
                },
            )
        raise httpx.ConnectError("connection refused", request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://x")
    catalog = ToolCatalogCache(base_url="http://x", client=client)
    invoker = ToolInvoker(catalog=catalog, base_url="http://x", client=client)
    result = await invoker.invoke("t", {})
    assert json.loads(result) == {"error": "connection refused"}


@pytest.mark.asyncio
async def test_unsupported_method_becomes_error_payload() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "tools": [
                    {"name": "t", "description": "", "method": "HEAD", "endpoint": "/t"}
                ]
            },
        )

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://x")
    catalog = ToolCatalogCache(base_url="http://x", client=client)
    invoker = ToolInvoker(catalog=catalog, base_url="http://x", client=client)
    result = await invoker.invoke("t", {})
    assert json.loads(result) == {"error": "Unsupported HTTP method: HEAD"}
