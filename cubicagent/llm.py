"""Model backend — one chat-completion round trip via OpenAI."""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import openai
from openai import AsyncOpenAI

from .config import Settings, settings as default_settings
from .errors import BackendUnavailable, InvalidArgument


@dataclass
class ToolCallRequest:
    id: str
    name: str
    arguments: Any = None  # JSON string as sent by the model, or an already-decoded object

    def parsed_arguments(self) -> Dict[str, Any]:
        """Decode the arguments; raises InvalidArgument on bad JSON or a non-object."""
        raw = self.arguments
        if raw is None or raw == "":
            return {}
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except json.JSONDecodeError as e:
                raise InvalidArgument(f"Invalid JSON arguments for tool {self.name}: {e}")
        if not isinstance(raw, dict):
            raise InvalidArgument(f"Arguments for tool {self.name} must be a JSON object")
        return raw

    def to_message(self) -> Dict[str, Any]:
        arguments = self.arguments if isinstance(self.arguments, str) else json.dumps(self.arguments or {})
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": arguments},
        }


@dataclass
class ModelReply:
    text: Optional[str]
    used_tokens: int = 0
    tool_calls: List[ToolCallRequest] = field(default_factory=list)


def _describe_error(error: Exception) -> str:
    if isinstance(error, openai.RateLimitError):
        return f"OpenAI rate limit exceeded: {error}"
    if isinstance(error, openai.BadRequestError):
        if "context length" in str(error) or "context_length" in str(error):
            return f"OpenAI context length exceeded: {error}"
        return f"Invalid OpenAI request: {error}"
    return f"OpenAI API call failed: {error}"


def parse_response(response: Any) -> ModelReply:
    # usage is read first: a malformed reply is still billed
    usage = getattr(response, "usage", None)
    used_tokens = (getattr(usage, "total_tokens", 0) or 0) if usage else 0

    choices = getattr(response, "choices", None)
    if not choices:
        raise BackendUnavailable("Invalid OpenAI response: missing choices", used_tokens)
    message = choices[0].message
    if message is None:
        raise BackendUnavailable("Invalid OpenAI response: missing message in choices", used_tokens)

    tool_calls = [
        ToolCallRequest(id=tc.id, name=tc.function.name, arguments=tc.function.arguments)
        for tc in (message.tool_calls or [])
    ]
    return ModelReply(text=message.content or None, used_tokens=used_tokens, tool_calls=tool_calls)


class ModelBackend:
    """Thin wrapper over ``AsyncOpenAI`` chat completions.

    Retries and rate limiting are left to the SDK (``max_retries``); any
    error that survives them becomes :class:`BackendUnavailable`.
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        logger: Optional[logging.Logger] = None,
    ):
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_settings(cls, cfg: Optional[Settings] = None) -> "ModelBackend":
        cfg = cfg or default_settings
        client = AsyncOpenAI(
            api_key=cfg.openai_api_key,
            base_url=cfg.openai_base_url or None,
            timeout=cfg.openai_timeout,
            max_retries=cfg.openai_max_retries,
        )
        return cls(client, cfg.openai_model, cfg.openai_temperature, cfg.openai_session_max_tokens)

    async def complete(
        self,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> ModelReply:
        if not messages:
            raise ValueError("OpenAI request requires at least one message")

        params: Dict[str, Any] = {
            "model": model or self.model,
            "messages": messages,
            "temperature": self.temperature if temperature is None else temperature,
            "max_tokens": max_tokens or self.max_tokens,
        }
        if tools:
            params["tools"] = tools

        try:
            response = await self.client.chat.completions.create(**params)
        except openai.OpenAIError as e:
            self.logger.error(f"OpenAI call failed ({params['model']}): {e}")
            raise BackendUnavailable(_describe_error(e)) from e

        reply = parse_response(response)
        self.logger.info(
            f"OpenAI {params['model']}: {reply.used_tokens} tokens, "
            f"{len(reply.tool_calls)} tool calls, text={bool(reply.text)}"
        )
        return reply
