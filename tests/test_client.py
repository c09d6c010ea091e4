"""GeminiClient 单元测试

使用 httpx.MockTransport 模拟上游，验证请求构造、响应解包、错误分类。
"""

import json

import httpx
import pytest
from sidebyside.client import (
    AVAILABLE_MODELS,
    GeminiClient,
    api_version_from_base_url,
    validate_prompt,
)
from sidebyside.config import MAX_PROMPT_LENGTH, ServiceConfig
from sidebyside.exceptions import ApiError, NetworkError, ValidationError
from sidebyside.models import GenerationOptions, SafetyScore

TEST_API_KEY = "test-key"
TEST_BASE_URL = "https://gemini.test/v1beta"


class TestValidatePrompt:
    """validate_prompt() 测试"""

    def test_max_length_accepted(self):
        validate_prompt("a" * MAX_PROMPT_LENGTH)

    def test_one_over_max_rejected(self):
        with pytest.raises(ValidationError, match="too long"):
            validate_prompt("a" * (MAX_PROMPT_LENGTH + 1))

    def test_message_mentions_limit(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_prompt("a" * (MAX_PROMPT_LENGTH + 1))
        assert "30,000" in exc_info.value.message

    @pytest.mark.parametrize("prompt", ["", "   ", "\n\t"])
    def test_empty_rejected(self, prompt):
        with pytest.raises(ValidationError, match="cannot be empty"):
            validate_prompt(prompt)

    def test_method_delegates(self, make_client):
        client = make_client(lambda request: httpx.Response(200))
        with pytest.raises(ValidationError):
            client.validate_prompt("")


class TestClientConfig:
    """客户端配置校验测试"""

    def test_missing_api_key(self):
        with pytest.raises(ValidationError, match="API key is required"):
            GeminiClient(api_key="")

    def test_missing_base_url(self):
        with pytest.raises(ValidationError, match="Base URL is required"):
            GeminiClient(api_key="k", base_url="")

    def test_update_config_revalidates(self, make_client):
        client = make_client(lambda request: httpx.Response(200))
        with pytest.raises(ValidationError):
            client.update_config(api_key="")

    def test_update_base_url(self, make_client):
        client = make_client(lambda request: httpx.Response(200))
        client.update_config(base_url="https://other.test/v1/")
        assert client.base_url == "https://other.test/v1"
        assert client.api_version == "v1"

    def test_from_config(self):
        config = ServiceConfig(api_key="secret", base_url=TEST_BASE_URL, timeout_s=3)
        client = GeminiClient.from_config(config)
        assert client.base_url == TEST_BASE_URL
        assert client.api_version == "v1beta"

    def test_api_version_from_base_url(self):
        assert api_version_from_base_url("https://x.test/v1beta/") == "v1beta"

    def test_available_models(self, make_client):
        client = make_client(lambda request: httpx.Response(200))
        assert client.get_available_models() == list(AVAILABLE_MODELS)


class TestGenerateContent:
    """generate_content() 成功路径测试"""

    async def test_round_trip(self, make_client, gemini_body):
        """Hello -> Hi there! 完整往返"""
        client = make_client(lambda request: httpx.Response(200, json=gemini_body()))

        result = await client.generate_content("gemini-2.5-flash", "Hello")

        assert result.text == "Hi there!"
        assert result.model_id == "gemini-2.5-flash"
        assert result.response_time == result.end_time - result.start_time
        assert result.response_time >= 0
        assert result.timestamp == result.end_time
        assert result.quality_metrics.response_length.words == 2
        assert result.quality_metrics.finish_reason == "STOP"
        assert result.quality_metrics.safety_score == SafetyScore.SAFE
        assert result.technical_metadata.model_name == "Gemini 2.5 Flash"
        assert result.technical_metadata.api_version == "v1beta"
        assert result.technical_metadata.candidate_count == 1

    async def test_request_shape(self, make_client, gemini_body):
        """URL、key 查询参数与请求体"""
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json=gemini_body())

        client = make_client(handler)
        options = GenerationOptions(temperature=0.1, stop_sequences=("END",))
        result = await client.generate_content("gemini-2.0-flash", "Hello", options)

        request = captured[0]
        assert request.method == "POST"
        assert request.url.path == "/v1beta/models/gemini-2.0-flash:generateContent"
        assert request.url.params["key"] == TEST_API_KEY

        payload = json.loads(request.content)
        assert payload["contents"] == [{"role": "user", "parts": [{"text": "Hello"}]}]
        assert payload["generationConfig"]["temperature"] == 0.1
        assert payload["generationConfig"]["stopSequences"] == ["END"]
        assert len(payload["safetySettings"]) == 4

        assert result.performance_metrics.request_size == len(request.content)
        assert result.technical_metadata.request_config.temperature == 0.1
        assert result.technical_metadata.request_config.top_k == 40

    async def test_parts_concatenated_and_trimmed(self, make_client):
        body = {
            "candidates": [
                {"content": {"parts": [{"text": "  Hello "}, {"text": "world  "}]}},
            ]
        }
        client = make_client(lambda request: httpx.Response(200, json=body))

        result = await client.generate_content("gemini-2.5-pro", "Hi")

        assert result.text == "Hello world"
        assert result.quality_metrics.finish_reason == ""
        assert result.quality_metrics.safety_score == SafetyScore.NOT_AVAILABLE

    async def test_passthrough_fields(self, make_client, gemini_body):
        body = gemini_body(
            safety_ratings=[{"category": "HARM_CATEGORY_HARASSMENT", "probability": "MEDIUM"}],
            prompt_feedback={"blockReason": "OTHER"},
            model_version="gemini-2.5-flash-001",
        )
        client = make_client(lambda request: httpx.Response(200, json=body))

        result = await client.generate_content("gemini-2.5-flash", "Hello")

        tech = result.technical_metadata
        assert tech.model_version == "gemini-2.5-flash-001"
        assert tech.prompt_feedback is not None
        assert tech.prompt_feedback.block_reason == "OTHER"
        assert tech.safety_ratings[0].probability == "MEDIUM"
        assert result.quality_metrics.safety_score == SafetyScore.CAUTION_REQUIRED

    async def test_unknown_model_display_name(self, make_client, gemini_body):
        client = make_client(lambda request: httpx.Response(200, json=gemini_body()))
        result = await client.generate_content("my-custom-model", "Hello")
        assert result.technical_metadata.model_name == "my-custom-model"


class TestGenerateContentErrors:
    """generate_content() 错误分类测试"""

    async def test_empty_model_id(self, make_client):
        client = make_client(lambda request: httpx.Response(200))
        with pytest.raises(ValidationError, match="Model ID is required"):
            await client.generate_content("", "Hello")

    async def test_no_candidates(self, make_client):
        client = make_client(lambda request: httpx.Response(200, json={"candidates": []}))

        with pytest.raises(ApiError) as exc_info:
            await client.generate_content("gemini-2.5-flash", "Hello")

        assert exc_info.value.status is None
        assert exc_info.value.model_id == "gemini-2.5-flash"
        assert "No candidates" in exc_info.value.message

    async def test_no_parts(self, make_client):
        body = {"candidates": [{"content": {"parts": []}}]}
        client = make_client(lambda request: httpx.Response(200, json=body))

        with pytest.raises(ApiError, match="No content"):
            await client.generate_content("gemini-2.5-flash", "Hello")

    async def test_whitespace_only_text(self, make_client):
        body = {"candidates": [{"content": {"parts": [{"text": "   \n"}]}}]}
        client = make_client(lambda request: httpx.Response(200, json=body))

        with pytest.raises(ApiError, match="Empty response"):
            await client.generate_content("gemini-2.5-flash", "Hello")

    async def test_http_error_status(self, make_client):
        client = make_client(lambda request: httpx.Response(429, text="quota exceeded"))

        with pytest.raises(ApiError) as exc_info:
            await client.generate_content("gemini-2.5-pro", "Hello")

        error = exc_info.value
        assert error.status == 429
        assert error.model_id == "gemini-2.5-pro"
        assert "429" in error.message
        assert "quota exceeded" in error.message

    async def test_connect_error_is_network_error(self, make_client):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)

        with pytest.raises(NetworkError) as exc_info:
            await client.generate_content("gemini-2.5-flash", "Hello")

        assert exc_info.value.model_id == "gemini-2.5-flash"
        assert "gemini-2.5-flash" in exc_info.value.message

    async def test_timeout_is_network_error(self, make_client):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        client = make_client(handler)

        with pytest.raises(NetworkError):
            await client.generate_content("gemini-2.5-flash", "Hello")

    async def test_invalid_json_is_unexpected_api_error(self, make_client):
        client = make_client(lambda request: httpx.Response(200, content=b"not json"))

        with pytest.raises(ApiError) as exc_info:
            await client.generate_content("gemini-2.5-flash", "Hello")

        assert exc_info.value.status is None
        assert exc_info.value.message.startswith("Unexpected error")

    async def test_api_key_not_in_error_message(self, make_client):
        client = make_client(lambda request: httpx.Response(500, text="boom"))

        with pytest.raises(ApiError) as exc_info:
            await client.generate_content("gemini-2.5-flash", "Hello")

        assert TEST_API_KEY not in exc_info.value.message


class TestConnection:
    """test_connection() 测试"""

    async def test_success(self, make_client, gemini_body):
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json=gemini_body())

        client = make_client(handler)

        assert await client.test_connection() is True
        payload = json.loads(captured[0].content)
        assert payload["generationConfig"]["maxOutputTokens"] == 10
        assert "gemini-1.5-flash" in captured[0].url.path

    async def test_failure_returns_false(self, make_client):
        client = make_client(lambda request: httpx.Response(403, text="forbidden"))
        assert await client.test_connection() is False
