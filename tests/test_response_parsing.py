import json
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from prompty.providers.errors import (  # noqa: E402
    BadRequestError,
    LimitReachedError,
    MalformedResponseError,
    NetworkError,
    SafetyError,
    UnauthorizedError,
)
from prompty.providers.models import ApiErrorEnvelope, ChatRequest, Role  # noqa: E402
from prompty.providers.openai_provider import (  # noqa: E402
    classify_bad_request,
    classify_status,
    decode_json,
    extract_image_url,
    extract_last_choice_content,
)

EXAMPLE_CHAT_RESPONSE = b"""{
  "id": "chatcmpl-123",
  "object": "chat.completion",
  "created": 1677652288,
  "choices": [{
    "index": 0,
    "message": {
      "role": "assistant",
      "content": "\\n\\nHello there, how may I assist you today?"
    },
    "finish_reason": "stop"
  }],
  "usage": {
    "prompt_tokens": 9,
    "completion_tokens": 12,
    "total_tokens": 21
  }
}"""


def _choices(*contents: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": c}} for c in contents]}


def test_example_chat_response_yields_its_only_choice() -> None:
    data = decode_json(EXAMPLE_CHAT_RESPONSE)

    assert len(data["choices"]) == 1
    assert extract_last_choice_content(data) == "\n\nHello there, how may I assist you today?"


def test_last_choice_wins_over_first() -> None:
    assert extract_last_choice_content(_choices("first", "middle", "last")) == "last"


def test_empty_choices_are_malformed() -> None:
    with pytest.raises(MalformedResponseError):
        extract_last_choice_content({"choices": []})


def test_missing_choices_are_malformed() -> None:
    with pytest.raises(MalformedResponseError):
        extract_last_choice_content({"object": "chat.completion"})


def test_choice_without_content_is_malformed() -> None:
    with pytest.raises(MalformedResponseError):
        extract_last_choice_content({"choices": [{"message": {"role": "assistant", "content": None}}]})


def test_image_url_taken_from_first_entry() -> None:
    data = {"data": [{"url": "https://x/y.png"}, {"url": "https://x/z.png"}]}
    assert extract_image_url(data) == "https://x/y.png"


@pytest.mark.parametrize("data", [{"data": []}, {}, {"data": [{}]}, {"data": ["https://x/y.png"]}])
def test_unusable_image_payloads_are_malformed(data: dict) -> None:
    with pytest.raises(MalformedResponseError):
        extract_image_url(data)


@pytest.mark.parametrize(
    "body",
    [
        b"not json",
        b"\xff\xfe",
        b"[1, 2, 3]",
        b"1" * 5000,
        b"[" * 100000,
    ],
)
def test_decode_json_rejects_non_objects(body: bytes) -> None:
    with pytest.raises(MalformedResponseError):
        decode_json(body)


def test_billing_code_beats_safety_wording() -> None:
    envelope = ApiErrorEnvelope(code="billing_hard_limit_reached", message="rejected by our safety system")
    assert isinstance(classify_bad_request(envelope), LimitReachedError)


def test_safety_wording_without_billing_code() -> None:
    envelope = ApiErrorEnvelope(code=None, message="Your request was rejected as a result of our safety system.")
    assert isinstance(classify_bad_request(envelope), SafetyError)


def test_safety_match_is_case_sensitive() -> None:
    envelope = ApiErrorEnvelope(code="content_policy_violation", message="Safety system triggered")
    assert isinstance(classify_bad_request(envelope), BadRequestError)


def test_other_bad_requests() -> None:
    envelope = ApiErrorEnvelope(code="invalid_value", message="'prompt' is too long")
    assert isinstance(classify_bad_request(envelope), BadRequestError)


def test_status_400_decodes_envelope() -> None:
    body = json.dumps({"error": {"code": "billing_hard_limit_reached", "message": "limit"}}).encode()
    assert isinstance(classify_status(400, body), LimitReachedError)


def test_status_400_without_envelope_is_malformed() -> None:
    with pytest.raises(MalformedResponseError):
        classify_status(400, b'{"detail": "nope"}')


def test_status_401_is_unauthorized() -> None:
    assert isinstance(classify_status(401, b""), UnauthorizedError)


@pytest.mark.parametrize("status", [201, 403, 404, 429, 500, 503])
def test_other_statuses_carry_their_code(status: int) -> None:
    error = classify_status(status, b"")
    assert isinstance(error, NetworkError)
    assert error.status == status


def test_chat_request_with_personality_leads_with_system_message() -> None:
    request = ChatRequest.for_question("gpt-3.5-turbo", "Why is the sky blue?", "Be brief.")

    assert [m.role for m in request.messages] == [Role.SYSTEM, Role.USER]
    assert request.to_payload() == {
        "model": "gpt-3.5-turbo",
        "messages": [
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "Why is the sky blue?"},
        ],
    }


def test_chat_request_without_personality_has_one_user_message() -> None:
    request = ChatRequest.for_question("gpt-3.5-turbo", "hi", "   ")
    assert request.to_payload()["messages"] == [{"role": "user", "content": "hi"}]
