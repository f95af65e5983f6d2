"""
LLM client and completion adapter tests.
"""
from types import SimpleNamespace

import pytest

from src.config import settings
from src.core import AIErrorType, AIException, ConfigurationException, classify_provider_error
from src.generation.application import CompletionRequest
from src.generation.domain import NoResultsPlan, PromptAssembler, RequestContext
from src.generation.infrastructure import CompletionProviderAdapter
from src.infrastructure.llm import (
    ChatCompletionResult,
    ILLMClient,
    MockLLMClient,
    OpenAILLMClient,
    ZAIILLMClient,
    build_llm_client,
)
from tests.conftest import make_article


class RecordingClient(ILLMClient):
    """LLM client that echoes a canned reply and keeps the messages."""

    def __init__(self, reply="ok"):
        self.reply = reply
        self.calls = []

    async def chat_completion(self, messages, model, temperature=0.7, max_tokens=500):
        self.calls.append({"messages": messages, "model": model,
                           "temperature": temperature, "max_tokens": max_tokens})
        return ChatCompletionResult(self.reply, model, 1, 1, 0)


class HTTPError(Exception):
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


def fake_openai(create):
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


class TestErrorClassification:

    # 429 is a rate limit
    def test_rate_limit(self):
        assert classify_provider_error(HTTPError("slow down", 429)) == AIErrorType.RATE_LIMIT

    # Context window overflow
    def test_context_length(self):
        error = HTTPError("This model's maximum context length is 8192 tokens", 400)
        assert classify_provider_error(error) == AIErrorType.CONTEXT_LENGTH

    # Other HTTP failures
    def test_generation_error(self):
        assert classify_provider_error(HTTPError("bad gateway", 502)) == AIErrorType.GENERATION_ERROR

    # Status read from an attached response
    def test_status_on_response(self):
        error = Exception("limited")
        error.response = SimpleNamespace(status_code=429)
        assert classify_provider_error(error) == AIErrorType.RATE_LIMIT

    # Plain errors are unknown
    def test_unknown(self):
        assert classify_provider_error(RuntimeError("???")) == AIErrorType.UNKNOWN

    # Typed errors keep their type
    def test_ai_exception(self):
        error = AIException(AIErrorType.INVALID_API_KEY, "bad key")
        assert classify_provider_error(error) == AIErrorType.INVALID_API_KEY


class TestMockClient:

    # Grounded prompt gets a cited reply
    @pytest.mark.asyncio
    async def test_cites_first_article(self):
        context = RequestContext(relevant_articles=[make_article("kb-9")])
        text = PromptAssembler().assemble("Help", context, "formal").text

        result = await MockLLMClient().chat_completion([{"role": "user", "content": text}], "m")
        assert "(Article ID: kb-9)" in result.content

    # No articles gives the disclaimer
    @pytest.mark.asyncio
    async def test_no_articles(self):
        result = await MockLLMClient().chat_completion([{"role": "user", "content": "Hi"}], "m")
        assert result.content.startswith("I regret to inform you")
        assert "Article ID" not in result.content


class TestOpenAIClient:

    # Missing key fails at construction
    def test_missing_key(self, monkeypatch):
        monkeypatch.setattr(settings, "openai_api_key", None)
        with pytest.raises(ConfigurationException):
            OpenAILLMClient()

    # Successful completion is unwrapped
    @pytest.mark.asyncio
    async def test_completion(self):
        async def create(**kwargs):
            message = SimpleNamespace(content=f"reply from {kwargs['model']}")
            usage = SimpleNamespace(prompt_tokens=10, completion_tokens=3)
            return SimpleNamespace(choices=[SimpleNamespace(message=message)], usage=usage)

        client = OpenAILLMClient("sk-test")
        client._client = fake_openai(create)
        result = await client.chat_completion([{"role": "user", "content": "hi"}], "gpt-4o")

        assert result.content == "reply from gpt-4o"
        assert result.total_tokens == 13

    # SDK errors become classified AI errors
    @pytest.mark.asyncio
    async def test_error_classified(self):
        async def create(**kwargs):
            raise HTTPError("Rate limit reached", 429)

        client = OpenAILLMClient("sk-test")
        client._client = fake_openai(create)
        with pytest.raises(AIException) as exc_info:
            await client.chat_completion([{"role": "user", "content": "hi"}], "gpt-4o")
        assert exc_info.value.error_type == AIErrorType.RATE_LIMIT

    # Empty content is an invalid response
    @pytest.mark.asyncio
    async def test_empty_content(self):
        async def create(**kwargs):
            message = SimpleNamespace(content=None)
            return SimpleNamespace(choices=[SimpleNamespace(message=message)], usage=None)

        client = OpenAILLMClient("sk-test")
        client._client = fake_openai(create)
        with pytest.raises(AIException) as exc_info:
            await client.chat_completion([{"role": "user", "content": "hi"}], "gpt-4o")
        assert exc_info.value.error_type == AIErrorType.INVALID_RESPONSE


class TestZAIClient:

    @pytest.fixture
    def client(self):
        return ZAIILLMClient("zai-test")

    # Reply content is unwrapped from the SDK response
    @pytest.mark.asyncio
    async def test_completion(self, client):
        def create(**kwargs):
            message = SimpleNamespace(content=f"glm says hi to {kwargs['model']}")
            return SimpleNamespace(choices=[SimpleNamespace(message=message)])

        client._client = fake_openai(create)
        result = await client.chat_completion([{"role": "user", "content": "hi"}], "glm-4")
        assert result.content == "glm says hi to glm-4"

    # Missing content is an invalid response, not a blank reply
    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [None, ""])
    async def test_empty_content(self, client, content):
        def create(**kwargs):
            return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])

        client._client = fake_openai(create)
        with pytest.raises(AIException) as exc_info:
            await client.chat_completion([{"role": "user", "content": "hi"}], "glm-4")
        assert exc_info.value.error_type == AIErrorType.INVALID_RESPONSE

    # SDK errors become classified AI errors
    @pytest.mark.asyncio
    async def test_error_classified(self, client):
        def create(**kwargs):
            raise HTTPError("Too many requests", 429)

        client._client = fake_openai(create)
        with pytest.raises(AIException) as exc_info:
            await client.chat_completion([{"role": "user", "content": "hi"}], "glm-4")
        assert exc_info.value.error_type == AIErrorType.RATE_LIMIT


class TestClientFactory:

    # Mock provider by name
    def test_mock_provider(self):
        assert isinstance(build_llm_client("mock"), MockLLMClient)

    # Mock flag wins over the provider
    def test_mock_flag(self, monkeypatch):
        monkeypatch.setattr(settings, "mock_llm", True)
        assert isinstance(build_llm_client("openai"), MockLLMClient)

    # Unknown provider is a configuration error
    def test_unknown_provider(self, monkeypatch):
        monkeypatch.setattr(settings, "mock_llm", False)
        with pytest.raises(ConfigurationException):
            build_llm_client("llama")


class TestCompletionAdapter:

    @pytest.fixture
    def request_(self):
        return CompletionRequest(
            model_name="gpt-4o",
            temperature=0.3,
            max_tokens=100,
            template=NoResultsPlan.template,
            variables={"prompt": "Where is {it}?", "tone": "casual", "context": "", "history": ""},
        )

    # Template is rendered and sent as one user message
    @pytest.mark.asyncio
    async def test_renders_template(self, request_):
        client = RecordingClient("done")
        result = await CompletionProviderAdapter(client).complete(request_)

        assert result == "done"
        call = client.calls[0]
        assert call["model"] == "gpt-4o"
        assert call["temperature"] == 0.3
        assert call["max_tokens"] == 100
        assert call["messages"][0]["role"] == "user"
        assert "Where is {it}?" in call["messages"][0]["content"]
        assert "casual response" in call["messages"][0]["content"]

    # Per-request key builds a dedicated client
    @pytest.mark.asyncio
    async def test_request_api_key(self, request_):
        default, keyed, keys = RecordingClient("default"), RecordingClient("keyed"), []

        def factory(api_key=None):
            keys.append(api_key)
            return keyed

        request_.api_key = "sk-user"
        adapter = CompletionProviderAdapter(default, client_factory=factory)
        assert await adapter.complete(request_) == "keyed"
        assert keys == ["sk-user"]
        assert default.calls == []
