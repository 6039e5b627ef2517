import asyncio

DEFAULT_PERSONALITY = (
    "You are Prompty, a cheerful Discord bot. Answer questions helpfully and concisely, "
    "with a light sense of humour."
)


class Personality:
    """The bot-wide system prompt used for chat questions.

    One value is shared by every command handler. Reads and writes go through
    the same lock, so a reader never sees a half-applied update.
    """

    def __init__(self, initial: str = DEFAULT_PERSONALITY):
        self._value = initial
        self._lock = asyncio.Lock()

    async def get(self) -> str:
        async with self._lock:
            return self._value

    async def set(self, value: str) -> str:
        value = (value or "").strip()
        if not value:
            raise ValueError("Personality cannot be empty")
        async with self._lock:
            self._value = value
        return value
