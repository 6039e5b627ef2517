from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from prompty.providers.errors import MalformedResponseError


class Role(str, Enum):
    USER = "user"
    SYSTEM = "system"
    ASSISTANT = "assistant"


@dataclass
class ImageRequest:
    prompt: str

    def to_payload(self) -> Dict[str, Any]:
        return {"prompt": self.prompt}


@dataclass
class ChatMessage:
    role: Role
    content: str

    def to_payload(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass
class ChatRequest:
    model: str
    messages: List[ChatMessage] = field(default_factory=list)

    @classmethod
    def for_question(cls, model: str, question: str, personality: Optional[str] = None) -> "ChatRequest":
        """Build a single-question request, led by a system message when a personality is given."""
        messages = []
        if personality and personality.strip():
            messages.append(ChatMessage(Role.SYSTEM, personality))
        messages.append(ChatMessage(Role.USER, question))
        return cls(model=model, messages=messages)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [message.to_payload() for message in self.messages],
        }


@dataclass
class ApiErrorEnvelope:
    """The `{"error": {"code": ..., "message": ...}}` body OpenAI sends with failures."""

    message: str
    code: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "ApiErrorEnvelope":
        error = data.get("error")
        if not isinstance(error, dict):
            raise MalformedResponseError("error body has no 'error' object")

        message = error.get("message")
        if not isinstance(message, str):
            raise MalformedResponseError("error body has no string 'message'")

        code = error.get("code")
        if code is not None and not isinstance(code, str):
            code = str(code)
        return cls(message=message, code=code)
