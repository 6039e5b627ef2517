import asyncio
import json
import logging
from typing import Any, Dict, Optional, Tuple

import aiohttp

from prompty.providers.base import AIProvider
from prompty.providers.errors import (
    BadRequestError,
    LimitReachedError,
    MalformedResponseError,
    NetworkError,
    OpenAIError,
    SafetyError,
    UnauthorizedError,
)
from prompty.providers.models import ApiErrorEnvelope, ChatRequest, ImageRequest

logger = logging.getLogger(__name__)

OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_CHAT_MODEL = "gpt-3.5-turbo"
BILLING_LIMIT_CODE = "billing_hard_limit_reached"

# aiohttp surfaces timeouts as asyncio.TimeoutError rather than a ClientError
TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError)


async def post_openai_json(
    session: aiohttp.ClientSession,
    base_url: str,
    api_key: str,
    endpoint: str,
    payload: Dict[str, Any],
) -> Tuple[int, bytes]:
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }
    async with session.post(f"{base_url}{endpoint}", json=payload, headers=headers) as resp:
        return resp.status, await resp.read()


def decode_json(body: bytes) -> Dict[str, Any]:
    try:
        data = json.loads(body.decode("utf-8"))
    except (ValueError, RecursionError) as e:
        raise MalformedResponseError(f"response body is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedResponseError("response body is not a JSON object")
    return data


def classify_bad_request(envelope: ApiErrorEnvelope) -> OpenAIError:
    """Map a 400 error body onto the error taxonomy.

    The billing code is checked before the safety wording, so a body that
    satisfies both is reported as a spending limit.
    """
    if envelope.code == BILLING_LIMIT_CODE:
        return LimitReachedError(envelope.message)
    if "safety" in envelope.message:
        return SafetyError(envelope.message)
    return BadRequestError(envelope.message)


def classify_status(status: int, body: bytes) -> OpenAIError:
    if status == 400:
        return classify_bad_request(ApiErrorEnvelope.from_payload(decode_json(body)))
    if status == 401:
        return UnauthorizedError(f"HTTP {status}")
    return NetworkError(status)


def extract_image_url(data: Dict[str, Any]) -> str:
    items = data.get("data")
    if not isinstance(items, list) or not items:
        raise MalformedResponseError("image response has no 'data' entries")
    first = items[0]
    url = first.get("url") if isinstance(first, dict) else None
    if not isinstance(url, str) or not url:
        raise MalformedResponseError("image response entry has no 'url'")
    return url


def extract_last_choice_content(data: Dict[str, Any]) -> str:
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        raise MalformedResponseError("chat response has no 'choices'")
    last = choices[-1]
    message = last.get("message") if isinstance(last, dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(content, str):
        raise MalformedResponseError("last chat choice has no string 'content'")
    return content


class OpenAIProvider(AIProvider):
    """OpenAI provider for image generation and chat completion.

    Every failure is raised as an OpenAIError subclass; transport errors from
    aiohttp and undecodable bodies never escape unclassified.
    """

    def __init__(self, api_key: str, base_url: str = OPENAI_BASE_URL, chat_model: str = DEFAULT_CHAT_MODEL):
        super().__init__(api_key)
        self.base_url = base_url.rstrip("/")
        self.chat_model = chat_model

    async def generate_image(self, prompt: str) -> bytes:
        payload = ImageRequest(prompt=prompt).to_payload()
        try:
            async with aiohttp.ClientSession() as session:
                status, body = await post_openai_json(
                    session, self.base_url, self.api_key, "/images/generations", payload
                )
                if status != 200:
                    raise classify_status(status, body)

                url = extract_image_url(decode_json(body))
                logger.debug("Downloading generated image")
                async with session.get(url) as resp:
                    if resp.status != 200:
                        raise NetworkError(resp.status, f"image download returned HTTP {resp.status}")
                    return await resp.read()
        except TRANSPORT_ERRORS as e:
            error = NetworkError(None, str(e) or type(e).__name__)
            self._log_failure("image generation", error)
            raise error from e
        except OpenAIError as e:
            self._log_failure("image generation", e)
            raise

    async def ask_chat(self, question: str, personality: Optional[str] = None) -> str:
        payload = ChatRequest.for_question(self.chat_model, question, personality).to_payload()
        try:
            async with aiohttp.ClientSession() as session:
                status, body = await post_openai_json(
                    session, self.base_url, self.api_key, "/chat/completions", payload
                )
            if status != 200:
                raise classify_status(status, body)
            return extract_last_choice_content(decode_json(body))
        except TRANSPORT_ERRORS as e:
            error = NetworkError(None, str(e) or type(e).__name__)
            self._log_failure("chat completion", error)
            raise error from e
        except OpenAIError as e:
            self._log_failure("chat completion", e)
            raise

    def _log_failure(self, action: str, error: OpenAIError) -> None:
        logger.warning(
            "OpenAI %s failed: kind=%s status=%s detail=%s",
            action,
            error.kind,
            getattr(error, "status", None),
            error.detail,
        )
