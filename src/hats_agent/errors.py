"""Package specific exception hierarchy."""


class AgentError(Exception):
    """Base exception for hats_agent package."""


class EmptyModelName(AgentError):
    """Raised when a client is built with a blank model identifier."""

    def __init__(self) -> None:
        super().__init__("Model name cannot be empty")


class EmptyMessages(AgentError):
    """Raised when a completion is requested for an empty conversation."""

    def __init__(self) -> None:
        super().__init__("Messages cannot be empty")


class InvalidProvider(AgentError):
    """Raised when a provider is unknown or missing required configuration."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid provider configuration: {reason}")
        self.reason = reason


class RequestFailed(AgentError):
    """Raised when the HTTP exchange itself fails (connect, read, protocol)."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Request failed: {message}")


class ApiError(AgentError):
    """Represents a provider-reported error (non-2xx status or error envelope)."""

    def __init__(self, status_code: int | None, body: str) -> None:
        status = status_code if status_code is not None else "n/a"
        super().__init__(f"API error: status {status} - {body}")
        self.status_code = status_code
        self.body = body


class ParseError(AgentError):
    """Raised when a response body does not match the provider schema."""


class ToolArgumentError(AgentError):
    """Raised when tool-call arguments are malformed or incomplete."""


class ToolExecutionError(AgentError):
    """Raised when a tool cannot produce a result for valid arguments."""


class PromptDecodeError(AgentError):
    """Raised when a raw prompt payload is not valid UTF-8."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Failed to decode prompt from bytes: {message}")
