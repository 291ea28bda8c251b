"""Tests for the Azure OpenAI and Gemini adapters with mocked transports."""
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
import httpx
import pytest
from openai import APIConnectionError
from projectgen.core.errors import ProviderUnavailable, ResponseParseError
from projectgen.providers.base import AnalysisResult, parse_analysis, strip_code_fences
from projectgen.providers.impl_azure import AzureOpenAIProvider
from projectgen.providers.impl_google import GoogleGeminiProvider

ANALYSIS_JSON = json.dumps({
    "projectName": "todo-app",
    "projectType": "productivity",
    "features": ["add todos", "mark done"],
    "uiRequirements": "clean and minimal",
    "techStack": ["Next.js", "Tailwind"],
})


def gemini_response(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def azure_client(content=None, error=None):
    client = MagicMock()
    if error is not None:
        client.chat.completions.create = AsyncMock(side_effect=error)
    else:
        message = SimpleNamespace(content=content)
        client.chat.completions.create = AsyncMock(
            return_value=SimpleNamespace(choices=[SimpleNamespace(message=message)])
        )
    return client


@pytest.mark.parametrize("text,expected", [
    ('```json\n{"a": 1}\n```', '{"a": 1}'),
    ('```\n[1]\n```', "[1]"),
    ('  {"a": 1}  ', '{"a": 1}'),
    ('```json\n{"a": 1}', '{"a": 1}'),
    ("", ""),
])
def test_strip_code_fences(text, expected):
    assert strip_code_fences(text) == expected


def test_parse_analysis_maps_fields():
    result = parse_analysis(ANALYSIS_JSON)

    assert result.suggested_name == "todo-app"
    assert result.kind == "productivity"
    assert result.features == ["add todos", "mark done"]
    assert result.stack == ["Next.js", "Tailwind"]


def test_parse_analysis_defaults_blank_name():
    assert parse_analysis('{"projectName": "  "}').suggested_name == "my-app"


@pytest.mark.parametrize("text", ["[]", "nope", "", "[" * 100000])
def test_parse_analysis_rejects_non_objects(text):
    with pytest.raises(ResponseParseError):
        parse_analysis(text)


@pytest.mark.asyncio
async def test_gemini_analyze_posts_to_generate_content():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["key"] = request.headers["x-goog-api-key"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=gemini_response(ANALYSIS_JSON))

    provider = GoogleGeminiProvider(
        api_key="g-key",
        api_base="https://gemini.test/v1beta",
        analysis_model="gemini-flash",
        transport=httpx.MockTransport(handler),
    )
    result = await provider.analyze("A todo app")

    assert result.suggested_name == "todo-app"
    assert seen["url"] == "https://gemini.test/v1beta/models/gemini-flash:generateContent"
    assert seen["key"] == "g-key"
    assert "A todo app" in seen["body"]["contents"][0]["parts"][0]["text"]
    assert seen["body"]["generationConfig"]["responseMimeType"] == "application/json"


@pytest.mark.asyncio
async def test_gemini_generate_files_returns_raw_text():
    raw = '```json\n[{"path": "a.txt", "content": "x"}]\n```'

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=gemini_response(raw))

    provider = GoogleGeminiProvider(api_key="g-key", transport=httpx.MockTransport(handler))

    assert await provider.generate_files(AnalysisResult()) == raw


@pytest.mark.asyncio
async def test_gemini_http_error_is_provider_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"error": "quota"})

    provider = GoogleGeminiProvider(api_key="g-key", transport=httpx.MockTransport(handler))

    with pytest.raises(ProviderUnavailable, match="HTTP 429"):
        await provider.generate_files(AnalysisResult())


@pytest.mark.asyncio
async def test_gemini_missing_candidates_is_parse_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"candidates": []})

    provider = GoogleGeminiProvider(api_key="g-key", transport=httpx.MockTransport(handler))

    with pytest.raises(ResponseParseError):
        await provider.generate_files(AnalysisResult())


@pytest.mark.asyncio
async def test_gemini_without_key_is_unavailable():
    with pytest.raises(ProviderUnavailable):
        await GoogleGeminiProvider(api_key="").analyze("x")


@pytest.mark.asyncio
async def test_azure_analyze_uses_json_mode():
    client = azure_client(content=ANALYSIS_JSON)
    provider = AzureOpenAIProvider(model_name="gpt-4o", client=client)

    result = await provider.analyze("A todo app")

    assert result.suggested_name == "todo-app"
    kwargs = client.chat.completions.create.await_args.kwargs
    assert kwargs["model"] == "gpt-4o"
    assert kwargs["response_format"] == {"type": "json_object"}
    assert kwargs["messages"][0]["role"] == "system"
    assert "A todo app" in kwargs["messages"][1]["content"]


@pytest.mark.asyncio
async def test_azure_generate_files_returns_raw_text():
    client = azure_client(content="[]")
    provider = AzureOpenAIProvider(client=client)

    assert await provider.generate_files(AnalysisResult()) == "[]"
    assert "response_format" not in client.chat.completions.create.await_args.kwargs


@pytest.mark.asyncio
async def test_azure_empty_content_degrades_to_default_analysis():
    provider = AzureOpenAIProvider(client=azure_client(content=None))

    result = await provider.analyze("x")

    assert result.suggested_name == "my-app"


@pytest.mark.asyncio
async def test_azure_connection_error_is_provider_unavailable():
    error = APIConnectionError(request=httpx.Request("POST", "https://azure.test"))
    provider = AzureOpenAIProvider(client=azure_client(error=error))

    with pytest.raises(ProviderUnavailable) as exc:
        await provider.generate_files(AnalysisResult())
    assert exc.value.provider == "azure"


def test_azure_unconfigured_client_raises():
    provider = AzureOpenAIProvider(api_key="", endpoint="")

    with pytest.raises(ProviderUnavailable):
        provider.client
