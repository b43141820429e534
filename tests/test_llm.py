"""Tests for llm.py — request shaping, response parsing, error mapping."""
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from cubicagent.errors import BackendUnavailable, InvalidArgument
from cubicagent.llm import ModelBackend, ToolCallRequest, parse_response


def completion(content=None, tool_calls=None, total_tokens=0):
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(
        choices=[SimpleNamespace(message=message)],
        usage=SimpleNamespace(total_tokens=total_tokens),
    )


def openai_tool_call(call_id, name, arguments):
    return SimpleNamespace(id=call_id, function=SimpleNamespace(name=name, arguments=arguments))


def status_error(cls, status, message):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    return cls(message, response=httpx.Response(status, request=request), body=None)


def make_backend(create):
    client = MagicMock()
    client.chat.completions.create = create
    return ModelBackend(client, "gpt-4o", temperature=0.7, max_tokens=1000)


class TestToolCallRequest:
    def test_parsed_arguments(self):
        assert ToolCallRequest("1", "t", '{"id": "m"}').parsed_arguments() == {"id": "m"}

    def test_empty_arguments(self):
        assert ToolCallRequest("1", "t", "").parsed_arguments() == {}
        assert ToolCallRequest("1", "t", None).parsed_arguments() == {}

    def test_bad_json(self):
        with pytest.raises(InvalidArgument, match="Invalid JSON"):
            ToolCallRequest("1", "t", "{oops").parsed_arguments()

    def test_non_object(self):
        with pytest.raises(InvalidArgument):
            ToolCallRequest("1", "t", "[1]").parsed_arguments()

    def test_to_message_keeps_raw_string(self):
        msg = ToolCallRequest("call_1", "t", '{"a":1}').to_message()
        assert msg == {"id": "call_1", "type": "function", "function": {"name": "t", "arguments": '{"a":1}'}}


class TestParseResponse:
    def test_text_and_tokens(self):
        parsed = parse_response(completion("Hello", total_tokens=12))
        assert parsed.text == "Hello"
        assert parsed.used_tokens == 12
        assert parsed.tool_calls == []

    def test_tool_calls(self):
        parsed = parse_response(completion(None, [openai_tool_call("c1", "weather", '{"city":"Oslo"}')], 30))
        assert parsed.text is None
        assert parsed.tool_calls[0].name == "weather"
        assert parsed.tool_calls[0].parsed_arguments() == {"city": "Oslo"}

    def test_missing_usage(self):
        response = completion("x")
        response.usage = None
        assert parse_response(response).used_tokens == 0

    def test_missing_choices(self):
        with pytest.raises(BackendUnavailable, match="missing choices"):
            parse_response(SimpleNamespace(choices=[], usage=None))

    def test_malformed_reply_keeps_billed_tokens(self):
        with pytest.raises(BackendUnavailable) as exc:
            parse_response(SimpleNamespace(choices=[], usage=SimpleNamespace(total_tokens=50)))
        assert exc.value.used_tokens == 50

    def test_missing_message_keeps_billed_tokens(self):
        response = completion(total_tokens=7)
        response.choices[0].message = None
        with pytest.raises(BackendUnavailable, match="missing message") as exc:
            parse_response(response)
        assert exc.value.used_tokens == 7


class TestModelBackend:
    @pytest.mark.asyncio
    async def test_request_params(self):
        create = AsyncMock(return_value=completion("ok", total_tokens=5))
        backend = make_backend(create)
        tools = [{"type": "function", "function": {"name": "t"}}]

        result = await backend.complete([{"role": "user", "content": "hi"}], tools)

        assert result.text == "ok"
        kwargs = create.await_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["temperature"] == 0.7
        assert kwargs["max_tokens"] == 1000
        assert kwargs["tools"] == tools

    @pytest.mark.asyncio
    async def test_overrides_and_no_tools(self):
        create = AsyncMock(return_value=completion("ok"))
        await make_backend(create).complete([{"role": "user", "content": "hi"}], model="mini", temperature=0.3)
        kwargs = create.await_args.kwargs
        assert kwargs["model"] == "mini"
        assert kwargs["temperature"] == 0.3
        assert "tools" not in kwargs

    @pytest.mark.asyncio
    async def test_empty_messages_rejected(self):
        with pytest.raises(ValueError):
            await make_backend(AsyncMock()).complete([])

    @pytest.mark.asyncio
    async def test_rate_limit_mapped(self):
        create = AsyncMock(side_effect=status_error(openai.RateLimitError, 429, "slow down"))
        with pytest.raises(BackendUnavailable, match="rate limit"):
            await make_backend(create).complete([{"role": "user", "content": "hi"}])

    @pytest.mark.asyncio
    async def test_context_length_mapped(self):
        error = status_error(openai.BadRequestError, 400, "maximum context length is 8192 tokens")
        with pytest.raises(BackendUnavailable, match="context length exceeded"):
            await make_backend(AsyncMock(side_effect=error)).complete([{"role": "user", "content": "hi"}])

    @pytest.mark.asyncio
    async def test_connection_error_mapped(self):
        error = openai.APIConnectionError(request=httpx.Request("POST", "https://api.openai.com"))
        with pytest.raises(BackendUnavailable, match="OpenAI API call failed"):
            await make_backend(AsyncMock(side_effect=error)).complete([{"role": "user", "content": "hi"}])
