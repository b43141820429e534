"""Conversion between dispatcher messages and chat-completion messages."""
import json
import logging
from typing import Any, Dict, List, Optional

from .protocol import AgentRequest, Trigger

logger = logging.getLogger(__name__)

SENDER_FORMAT_GUIDE = """IMPORTANT: Messages from users will be in JSON format containing sender information:
{
  "senderId": "string", // the ID of the sender
  "name": "string",     // the name of the sender
  "content": "string"   // the actual message content
}

When responding, always provide your final response as plain text (not JSON). Only use this JSON format to understand who sent each message."""


def build_system_message(iteration: int, max_iterations: int, max_tokens: int, has_tools: bool) -> str:
    """System prompt for one round trip; ``iteration`` is 1-based."""
    text = SENDER_FORMAT_GUIDE
    text += f"\n\nThis is iteration {iteration} of {max_iterations} for this conversation session."
    text += f"\nYou have a maximum of {max_tokens} tokens for your response."
    if has_tools:
        text += f"\nYou have {max_iterations - iteration} remaining iterations to make tool calls if needed."
    return text


def trigger_guide(trigger: Trigger) -> str:
    return (
        f"\nYou are handling a webhook trigger (identifier: {trigger.identifier}, name: {trigger.name}). "
        "Analyze the payload and decide which tools to call. If no action is needed, respond concisely."
    )


def build_conversation(request: AgentRequest) -> List[Dict[str, Any]]:
    """Dispatcher history → chat messages.

    The agent's own messages become assistant turns; everyone else's are
    wrapped in a JSON envelope naming the sender. Empty messages are skipped.
    """
    messages: List[Dict[str, Any]] = []
    for message in request.messages:
        if not message.content:
            continue
        if message.sender.id == request.agent.identifier:
            messages.append({"role": "assistant", "content": message.content})
        else:
            envelope = {
                "senderId": message.sender.id,
                "name": message.sender.name or "Unknown",
                "content": message.content,
            }
            messages.append({"role": "user", "content": json.dumps(envelope, ensure_ascii=False)})
    return messages


def build_trigger_message(trigger: Trigger) -> Dict[str, Any]:
    """Synthetic opening message for a triggered session."""
    return {"role": "user", "content": json.dumps({"trigger": trigger.model_dump()}, ensure_ascii=False, default=str)}


def clean_final_response(content: Optional[str]) -> str:
    """Unwrap ``{"content": "..."}`` replies; anything else is returned as-is."""
    if not content:
        return "No response from OpenAI"
    try:
        parsed = json.loads(content)
    except (json.JSONDecodeError, ValueError):
        return content
    if isinstance(parsed, dict) and isinstance(parsed.get("content"), str):
        logger.debug("Extracted content field from JSON response")
        return parsed["content"]
    return content
