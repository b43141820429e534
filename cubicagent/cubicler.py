"""HTTP client for the dispatcher's tool endpoint (JSON-RPC ``tools/call``)."""
import itertools
import json
import logging
from typing import Any, Dict, Optional

import httpx

from .config import Settings, settings as default_settings
from .errors import ToolExecutionFailed

logger = logging.getLogger(__name__)

METHOD_NOT_FOUND = -32601


class CubiclerClient:
    """External tool executor that forwards unclaimed tool calls to Cubicler."""

    def __init__(self, base_url: str, timeout: float = 10.0, client: Optional[httpx.AsyncClient] = None):
        self.url = base_url.rstrip("/") + "/mcp"
        self.timeout = timeout
        self._client = client
        self._ids = itertools.count(1)

    @classmethod
    def from_settings(cls, cfg: Optional[Settings] = None) -> "CubiclerClient":
        cfg = cfg or default_settings
        return cls(cfg.cubicler_url, cfg.mcp_call_timeout)

    async def call_tool(self, name: str, arguments: Dict[str, Any]) -> Optional[Any]:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": "tools/call",
            "params": {"name": name, "arguments": arguments},
        }
        try:
            if self._client is not None:
                resp = await self._client.post(self.url, json=payload, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.post(self.url, json=payload)
            resp.raise_for_status()
            body = resp.json()
        except httpx.HTTPError as e:
            logger.error(f"Cubicler call {name} failed: {e}")
            raise ToolExecutionFailed(f"Failed to execute {name}: {e}") from e
        except json.JSONDecodeError as e:
            raise ToolExecutionFailed(f"Invalid response from Cubicler for {name}: {e}") from e

        error = body.get("error") if isinstance(body, dict) else None
        if error:
            if error.get("code") == METHOD_NOT_FOUND:
                logger.info(f"Cubicler does not provide tool {name}")
                return None
            raise ToolExecutionFailed(f"Failed to execute {name}: {error.get('message', error)}")

        result = body.get("result") if isinstance(body, dict) else None
        return _unwrap(result)


def _unwrap(result: Any) -> Any:
    """MCP wraps structured output in ``content[0].text``; decode it when it is JSON."""
    if isinstance(result, dict) and isinstance(result.get("content"), list) and result["content"]:
        first = result["content"][0]
        if isinstance(first, dict) and first.get("type") == "text":
            text = first.get("text") or ""
            try:
                return json.loads(text)
            except json.JSONDecodeError:
                return {"result": text}
    return result
