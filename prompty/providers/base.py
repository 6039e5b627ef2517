from abc import ABC, abstractmethod
from typing import Optional


class AIProvider(ABC):
    """Abstract base class for AI providers."""

    def __init__(self, api_key: str):
        self.api_key = api_key

    @abstractmethod
    async def generate_image(self, prompt: str) -> bytes:
        pass

    @abstractmethod
    async def ask_chat(self, question: str, personality: Optional[str] = None) -> str:
        pass
