"""
Tests for the Gemini deal extractor (HTTP layer mocked with httpx.MockTransport).
"""

import json

import httpx
import pytest

from src.analyst.extractor import (
    GeminiExtractor,
    build_extraction_prompt,
    build_generate_payload,
    extract_response_text,
)
from src.analyst.schemas import EXTRACTION_RESPONSE_SCHEMA
from src.common.retry import RetryPolicy
from tests.test_helpers import gemini_response, no_sleep, scripted_transport


def make_extractor(responses, requests=None, api_key="test-key"):
    client = httpx.AsyncClient(transport=scripted_transport(responses, requests))
    return GeminiExtractor(
        client=client,
        api_key=api_key,
        model="gemini-2.5-flash",
        base_url="https://gemini.test/v1beta",
        retry_policy=RetryPolicy(max_attempts=3),
        sleep=no_sleep,
    )


class TestPromptAndPayload:

    def test_prompt_includes_title_and_body(self):
        prompt = build_extraction_prompt("Selling my SaaS", "MRR $2k")
        assert "Post Title: Selling my SaaS" in prompt
        assert "Post Content: MRR $2k" in prompt
        assert "isSale" in prompt
        assert "lowQuality" in prompt

    def test_prompt_handles_missing_body(self):
        prompt = build_extraction_prompt("Title only", None)
        assert "Post Content: \n" in prompt

    def test_payload_uses_json_mode_and_schema(self):
        payload = build_generate_payload("hello")
        assert payload["contents"][0]["parts"][0]["text"] == "hello"
        config = payload["generationConfig"]
        assert config["responseMimeType"] == "application/json"
        assert config["responseSchema"] is EXTRACTION_RESPONSE_SCHEMA


class TestExtractResponseText:

    def test_happy_path(self):
        result = {"candidates": [{"content": {"parts": [{"text": "{}"}]}}]}
        assert extract_response_text(result) == "{}"

    @pytest.mark.parametrize("result", [
        {},
        {"candidates": []},
        {"candidates": [{"content": {"parts": []}}]},
        {"candidates": [{"content": {"parts": [{"text": ""}]}}]},
        None,
    ])
    def test_missing_parts(self, result):
        assert extract_response_text(result) is None


class TestGeminiExtractor:

    @pytest.mark.asyncio
    async def test_returns_parsed_payload(self, valid_payload):
        requests = []
        extractor = make_extractor([gemini_response(valid_payload)], requests)

        result = await extractor.extract("Selling my SaaS", "MRR $2k, asking $40k")

        assert result == valid_payload
        assert len(requests) == 1
        request = requests[0]
        assert request.url.path == "/v1beta/models/gemini-2.5-flash:generateContent"
        assert request.url.params["key"] == "test-key"
        body = json.loads(request.content)
        assert "Selling my SaaS" in body["contents"][0]["parts"][0]["text"]

    @pytest.mark.asyncio
    async def test_retries_rate_limit(self, valid_payload):
        requests = []
        extractor = make_extractor(
            [httpx.Response(429), httpx.Response(429), gemini_response(valid_payload)],
            requests,
        )
        result = await extractor.extract("t", "b")
        assert result == valid_payload
        assert len(requests) == 3

    @pytest.mark.asyncio
    async def test_rate_limited_every_attempt_returns_none(self):
        extractor = make_extractor([httpx.Response(429), httpx.Response(429), httpx.Response(429)])
        assert await extractor.extract("t", "b") is None

    @pytest.mark.asyncio
    async def test_server_error_returns_none_without_retry(self):
        requests = []
        extractor = make_extractor([httpx.Response(500, text="oops")], requests)
        assert await extractor.extract("t", "b") is None
        assert len(requests) == 1

    @pytest.mark.asyncio
    async def test_transport_error_returns_none(self):
        error = httpx.ConnectError("refused")
        extractor = make_extractor([error, error, error])
        assert await extractor.extract("t", "b") is None

    @pytest.mark.asyncio
    async def test_unparseable_text_returns_none(self):
        extractor = make_extractor([gemini_response("not json {")])
        assert await extractor.extract("t", "b") is None

    @pytest.mark.asyncio
    async def test_missing_content_returns_none(self):
        extractor = make_extractor([httpx.Response(200, json={"candidates": []})])
        assert await extractor.extract("t", "b") is None

    @pytest.mark.asyncio
    async def test_non_json_body_returns_none(self):
        extractor = make_extractor([httpx.Response(200, text="<html>")])
        assert await extractor.extract("t", "b") is None

    @pytest.mark.asyncio
    async def test_missing_api_key_skips_request(self):
        requests = []
        extractor = make_extractor([gemini_response({})], requests, api_key="")
        assert await extractor.extract("t", "b") is None
        assert requests == []

    @pytest.mark.asyncio
    async def test_does_not_close_injected_client(self):
        extractor = make_extractor([gemini_response({})])
        client = extractor._client
        async with extractor:
            pass
        assert not client.is_closed
        await client.aclose()
