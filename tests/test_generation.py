import asyncio
import json

import httpx
import pytest

from blueprint.credentials import CredentialSession
from blueprint.errors import AuthInvalid, GenerationFailed
from blueprint.gemini_client import GeminiClient
from blueprint.generation import build_workbook_prompt, generate_workbook


def _candidate(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def _run(handler, topic="Running 5k", credentials=None):
    async def go():
        client = GeminiClient(api_key="test-key", transport=httpx.MockTransport(handler))
        try:
            return await generate_workbook(topic, credentials or CredentialSession("test-key"), client=client)
        finally:
            await client.aclose()

    return asyncio.run(go())


def test_successful_generation_sends_schema_and_budget(workbook_data):
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json=_candidate(json.dumps(workbook_data)))

    doc = _run(handler)
    assert doc.WorkbookTitle == "Run Your First 5k"
    (request,) = requests
    assert request.url.params["key"] == "test-key"
    body = json.loads(request.content)
    config = body["generationConfig"]
    assert config["responseMimeType"] == "application/json"
    assert config["responseSchema"]["required"][0] == "WorkbookTitle"
    assert config["thinkingConfig"] == {"thinkingBudget": 4000}
    assert "Running 5k" in body["contents"][0]["parts"][0]["text"]


@pytest.mark.parametrize(
    "status, message",
    [
        (400, "API key not valid. Please pass a valid API key."),
        (401, "Unauthorized"),
        (403, "The caller does not have permission"),
        (404, "Requested entity was not found."),
    ],
)
def test_key_rejections_are_auth_invalid(status, message):
    def handler(request):
        return httpx.Response(status, json={"error": {"code": status, "message": message}})

    with pytest.raises(AuthInvalid):
        _run(handler)


@pytest.mark.parametrize("status", [429, 500, 503])
def test_other_http_errors_are_generation_failures(status):
    def handler(request):
        return httpx.Response(status, json={"error": {"code": status, "message": "try later"}})

    with pytest.raises(GenerationFailed):
        _run(handler)


def test_network_error_is_generation_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GenerationFailed):
        _run(handler)


@pytest.mark.parametrize(
    "payload",
    [
        {"candidates": []},
        _candidate(""),
        _candidate("this is not json"),
        _candidate(json.dumps({"WorkbookTitle": "Half a workbook"})),
    ],
)
def test_unusable_responses_are_generation_failures(payload):
    def handler(request):
        return httpx.Response(200, json=payload)

    with pytest.raises(GenerationFailed):
        _run(handler)


def test_rejected_thinking_budget_is_retried_without_it(workbook_data):
    bodies = []

    def handler(request):
        body = json.loads(request.content)
        bodies.append(body)
        if "thinkingConfig" in body["generationConfig"]:
            return httpx.Response(400, json={"error": {"message": "Thinking is not supported by this model."}})
        return httpx.Response(200, json=_candidate(json.dumps(workbook_data)))

    doc = _run(handler)
    assert doc.ReviewSection.reward_system.startswith("- New running socks")
    assert len(bodies) == 2
    assert "responseSchema" in bodies[1]["generationConfig"]


def test_missing_credential_never_calls_gemini():
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(AuthInvalid):
        _run(handler, credentials=CredentialSession())


def test_blank_topic_is_rejected():
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(ValueError):
        _run(handler, topic="   ")


def test_prompt_asks_for_bullets():
    prompt = build_workbook_prompt("Daily Meditation")
    assert prompt.count("Daily Meditation") == 2
    assert 'starting with "- " or "* "' in prompt
    assert "30 days" in prompt


def test_credential_selection():
    credentials = CredentialSession()
    assert not credentials.has_credential()

    async def pick():
        return "  chosen-key  "

    asyncio.run(credentials.request_credential_selection(pick))
    assert credentials.has_credential()
    assert credentials.api_key == "chosen-key"
    credentials.clear()
    assert not credentials.has_credential()
