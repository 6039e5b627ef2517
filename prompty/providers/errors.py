from typing import Optional


class OpenAIError(Exception):
    """Base class for every failure the OpenAI provider can report."""

    kind = "openai"

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.kind)
        self.detail = detail


class SafetyError(OpenAIError):
    """The request was rejected by the provider's content policy."""

    kind = "safety"


class LimitReachedError(OpenAIError):
    """The account backing the bot reached its spending limit."""

    kind = "limit_reached"


class BadRequestError(OpenAIError):
    kind = "bad_request"


class UnauthorizedError(OpenAIError):
    kind = "unauthorized"


class NetworkError(OpenAIError):
    """Transport failure (status is None) or an HTTP status nothing else claims."""

    kind = "network"

    def __init__(self, status: Optional[int] = None, detail: str = ""):
        if not detail:
            detail = f"HTTP {status}" if status is not None else "transport failure"
        super().__init__(detail)
        self.status = status


class MalformedResponseError(OpenAIError):
    kind = "malformed"
