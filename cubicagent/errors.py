"""Error taxonomy shared by tools, the orchestrator and the handlers.

Tool-level errors never escape a session: they are turned into a structured
result by the tool layer and folded into the conversation. Only
session-level faults reach the dispatcher, as an ``Error: ...`` response.
"""


class AgentError(Exception):
    code = "AgentError"

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


class InvalidArgument(AgentError):
    """Malformed or missing tool parameters."""
    code = "InvalidArgument"


class NotFound(AgentError):
    """No tool claims the requested name."""
    code = "NotFound"


class BackendUnavailable(AgentError):
    """The model backend call failed (distinct from an empty reply).

    ``used_tokens`` carries whatever the backend billed before the failure.
    """
    code = "BackendUnavailable"

    def __init__(self, message: str = "", used_tokens: int = 0):
        super().__init__(message)
        self.used_tokens = used_tokens


class IterationLimitExceeded(AgentError):
    code = "IterationLimitExceeded"


class ToolExecutionFailed(AgentError):
    """The wrapped operation itself failed."""
    code = "ToolExecutionFailed"

