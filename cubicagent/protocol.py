"""Dispatcher wire format (requests in, text response out)."""
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class AgentInfo(BaseModel):
    identifier: str
    name: str = ""
    description: str = ""
    prompt: str = ""

    model_config = {"extra": "allow"}


class Sender(BaseModel):
    id: str
    name: Optional[str] = None


class Message(BaseModel):
    sender: Sender
    type: str = "text"
    content: Optional[str] = None
    timestamp: Optional[str] = None

    model_config = {"extra": "allow"}


class ToolSpec(BaseModel):
    name: str
    description: str = ""
    parameters: Dict[str, Any] = Field(default_factory=lambda: {"type": "object", "properties": {}})


class Trigger(BaseModel):
    type: str = "webhook"
    identifier: str
    name: str = ""
    description: str = ""
    triggeredAt: Optional[str] = None
    payload: Any = None


class AgentRequest(BaseModel):
    agent: AgentInfo
    tools: List[ToolSpec] = Field(default_factory=list)
    servers: List[Dict[str, Any]] = Field(default_factory=list)
    messages: List[Message] = Field(default_factory=list)

    model_config = {"extra": "allow"}


class TriggerRequest(BaseModel):
    agent: AgentInfo
    tools: List[ToolSpec] = Field(default_factory=list)
    servers: List[Dict[str, Any]] = Field(default_factory=list)
    trigger: Trigger

    model_config = {"extra": "allow"}


class AgentResponse(BaseModel):
    type: Literal["text"] = "text"
    content: str
    usedToken: int = 0
