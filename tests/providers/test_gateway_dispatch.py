import json

import httpx
import pytest
from eth_utils import encode_hex, keccak

from conftest import ENDPOINT, MODEL, TEST_ADDRESS, RecordingTransport, chat_completion
from zg_inference.providers.llm import (
    FallbackDispatchFailedError,
    GatewayDispatcher,
    PrimaryDispatchFailedError,
)
from zg_inference.providers.llm.gateway import (
    CORS_HINTS,
    TRANSPORT_HINTS,
    chat_completions_url,
    remediation_hints,
)
from zg_inference.services.auth_headers import compute_request_hash, serialize_request_body

HEADERS = {
    "Authorization": f"Bearer {TEST_ADDRESS}",
    "X-Account": TEST_ADDRESS,
    "X-Nonce": "7",
    "X-Signature": "0xabc",
}
BODY = {
    "messages": [{"role": "user", "content": "Tell me a short joke about programming."}],
    "model": MODEL,
}


def _dispatcher(log, *steps):
    transport = RecordingTransport(*steps)
    return GatewayDispatcher(log, timeout=5, transport=httpx.MockTransport(transport)), transport


@pytest.mark.asyncio
async def test_primary_success_sends_signed_headers(log):
    dispatcher, transport = _dispatcher(log, httpx.Response(200, json=chat_completion("A joke.")))

    reply = await dispatcher.dispatch(ENDPOINT, HEADERS, BODY)

    assert reply.content == "A joke."
    assert reply.via == "primary"
    assert reply.model == MODEL
    assert reply.tokens_used == 21
    assert len(transport.requests) == 1

    request = transport.requests[0]
    assert str(request.url) == chat_completions_url(ENDPOINT)
    assert request.headers["Authorization"] == f"Bearer {TEST_ADDRESS}"
    assert request.headers["X-Nonce"] == "7"
    assert json.loads(request.content)["messages"] == BODY["messages"]
    assert dispatcher.last_fallback is None
    assert log.lines()[-1] == "12:00:00: AI Response: A joke."


@pytest.mark.asyncio
async def test_fallback_answer_is_accepted(log):
    dispatcher, transport = _dispatcher(
        log,
        httpx.ConnectError("connection refused"),
        httpx.Response(200, json=chat_completion("Fallback joke.")),
    )

    reply = await dispatcher.dispatch(ENDPOINT, HEADERS, BODY)

    assert reply.content == "Fallback joke."
    assert reply.via == "fallback"
    assert len(transport.requests) == 2

    fallback = transport.requests[1]
    assert fallback.method == "POST"
    assert str(fallback.url) == f"{ENDPOINT}/chat/completions"
    assert fallback.headers["Content-Type"] == "application/json"
    assert fallback.headers["X-Signature"] == "0xabc"
    assert json.loads(fallback.content) == BODY

    messages = [entry.message for entry in log.snapshot()]
    assert any(m.startswith("OpenAI request failed") for m in messages)
    assert "Direct request status: 200" in messages
    assert "Direct request succeeded!" in messages
    assert messages[-1] == "AI Response: Fallback joke."


@pytest.mark.asyncio
async def test_fallback_error_status_reraises_primary_failure(log):
    dispatcher, _ = _dispatcher(
        log,
        httpx.Response(401, json={"error": {"message": "invalid signature"}}),
        httpx.Response(502, text="upstream unavailable"),
    )

    with pytest.raises(PrimaryDispatchFailedError):
        await dispatcher.dispatch(ENDPOINT, HEADERS, BODY)

    assert dispatcher.last_fallback.status_code == 502
    assert dispatcher.last_fallback.body == "upstream unavailable"
    assert "Direct request error response: upstream unavailable" in [e.message for e in log.snapshot()]


@pytest.mark.asyncio
async def test_fallback_malformed_body_reraises_primary_failure(log):
    dispatcher, _ = _dispatcher(
        log,
        httpx.Response(401, json={"error": {"message": "invalid signature"}}),
        httpx.Response(200, json={"choices": []}),
    )

    with pytest.raises(PrimaryDispatchFailedError):
        await dispatcher.dispatch(ENDPOINT, HEADERS, BODY)


@pytest.mark.asyncio
async def test_fallback_transport_failure_carries_hints(log):
    dispatcher, _ = _dispatcher(
        log,
        httpx.ConnectError("connection refused"),
        httpx.ConnectError("connection refused"),
    )

    with pytest.raises(FallbackDispatchFailedError) as exc_info:
        await dispatcher.dispatch(ENDPOINT, HEADERS, BODY)

    assert exc_info.value.hints == TRANSPORT_HINTS
    assert isinstance(exc_info.value.__cause__, PrimaryDispatchFailedError)
    messages = [entry.message for entry in log.snapshot()]
    assert "💡 Solutions:" in messages
    assert TRANSPORT_HINTS[0] in messages


def test_remediation_hints_classify_errors():
    assert remediation_hints(RuntimeError("Blocked by CORS policy")) == CORS_HINTS
    assert remediation_hints(httpx.ConnectTimeout("slow")) == TRANSPORT_HINTS
    assert remediation_hints(RuntimeError("Failed to fetch")) == TRANSPORT_HINTS
    assert remediation_hints(ValueError("bad json")) == []


@pytest.mark.asyncio
async def test_primary_path_completes_with_empty_api_key(log):
    dispatcher, transport = _dispatcher(log, httpx.Response(200, json=chat_completion("Keyless.")))

    reply = await dispatcher.dispatch(ENDPOINT, HEADERS, BODY)

    assert reply.via == "primary"
    assert len(transport.requests) == 1
    assert transport.requests[0].headers["Authorization"] == f"Bearer {TEST_ADDRESS}"
    assert not any(m.startswith("OpenAI request failed") for m in (e.message for e in log.snapshot()))


@pytest.mark.asyncio
async def test_fallback_posts_the_hashed_bytes(log):
    body = {
        "messages": [{"role": "user", "content": "Un café ☕, s'il vous plaît"}],
        "model": MODEL,
    }
    dispatcher, transport = _dispatcher(
        log,
        httpx.ConnectError("connection refused"),
        httpx.Response(200, json=chat_completion("Voilà")),
    )

    await dispatcher.dispatch(ENDPOINT, HEADERS, body)

    expected = serialize_request_body(body).encode("utf-8")
    assert transport.requests[1].content == expected
    assert compute_request_hash(body) == encode_hex(keccak(transport.requests[1].content))
