"""Tests for cubicler.py — JSON-RPC tools/call over httpx."""
import json

import httpx
import pytest

from cubicagent.cubicler import CubiclerClient
from cubicagent.errors import ToolExecutionFailed


def client_for(handler):
    transport = httpx.MockTransport(handler)
    return CubiclerClient("http://cubicler:1503/", client=httpx.AsyncClient(transport=transport))


class TestCallTool:
    @pytest.mark.asyncio
    async def test_request_shape_and_unwrap(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            text = json.dumps({"temp": 21})
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1,
                                             "result": {"content": [{"type": "text", "text": text}]}})

        result = await client_for(handler).call_tool("weather_get", {"city": "Oslo"})

        assert result == {"temp": 21}
        assert seen["url"] == "http://cubicler:1503/mcp"
        assert seen["body"]["method"] == "tools/call"
        assert seen["body"]["params"] == {"name": "weather_get", "arguments": {"city": "Oslo"}}

    @pytest.mark.asyncio
    async def test_plain_text_content(self):
        def handler(request):
            return httpx.Response(200, json={"result": {"content": [{"type": "text", "text": "sunny"}]}})

        assert await client_for(handler).call_tool("w", {}) == {"result": "sunny"}

    @pytest.mark.asyncio
    async def test_raw_result_passthrough(self):
        def handler(request):
            return httpx.Response(200, json={"result": {"tools": [{"name": "a"}]}})

        assert await client_for(handler).call_tool("cubicler_fetch_server_tools", {}) == {"tools": [{"name": "a"}]}

    @pytest.mark.asyncio
    async def test_method_not_found_is_not_handled(self):
        def handler(request):
            return httpx.Response(200, json={"error": {"code": -32601, "message": "Unknown tool"}})

        assert await client_for(handler).call_tool("nope", {}) is None

    @pytest.mark.asyncio
    async def test_rpc_error_raises(self):
        def handler(request):
            return httpx.Response(200, json={"error": {"code": -32000, "message": "server exploded"}})

        with pytest.raises(ToolExecutionFailed, match="server exploded"):
            await client_for(handler).call_tool("w", {})

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        def handler(request):
            return httpx.Response(502)

        with pytest.raises(ToolExecutionFailed):
            await client_for(handler).call_tool("w", {})
