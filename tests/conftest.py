"""sidebyside 测试 fixtures"""

import httpx
import pytest
from sidebyside.client import GeminiClient
from sidebyside.metrics import MetricsCalculator
from sidebyside.models import CallResult, GenerationOptions

TEST_API_KEY = "test-key"
TEST_BASE_URL = "https://gemini.test/v1beta"


def _gemini_body(
    text: str | None = "Hi there!",
    finish_reason: str = "STOP",
    safety_ratings: list[dict] | None = None,
    prompt_feedback: dict | None = None,
    model_version: str | None = None,
) -> dict:
    body: dict = {
        "candidates": [
            {
                "content": {"parts": [{"text": text}], "role": "model"},
                "finishReason": finish_reason,
                "index": 0,
                "safetyRatings": (
                    safety_ratings
                    if safety_ratings is not None
                    else [
                        {"category": "HARM_CATEGORY_HARASSMENT", "probability": "NEGLIGIBLE"},
                        {"category": "HARM_CATEGORY_HATE_SPEECH", "probability": "LOW"},
                    ]
                ),
            }
        ],
    }
    if prompt_feedback is not None:
        body["promptFeedback"] = prompt_feedback
    if model_version is not None:
        body["modelVersion"] = model_version
    return body


@pytest.fixture
def gemini_body():
    """构造 generateContent 成功响应体的工厂"""
    return _gemini_body


@pytest.fixture
def make_client():
    """创建注入 MockTransport 的 GeminiClient 工厂"""

    def _make(handler) -> GeminiClient:
        return GeminiClient(
            api_key=TEST_API_KEY,
            base_url=TEST_BASE_URL,
            timeout_s=5,
            transport=httpx.MockTransport(handler),
        )

    return _make


@pytest.fixture
def make_call_result():
    """直接通过 MetricsCalculator 构造 CallResult 的工厂"""

    def _make(
        model_id: str = "gemini-2.5-flash",
        text: str = "Hi there!",
        prompt: str = "Hello",
        start_time: int = 1_000,
        response_time: int = 250,
    ) -> CallResult:
        return MetricsCalculator.compose(
            prompt=prompt,
            response_text=text,
            model_id=model_id,
            start_time=start_time,
            end_time=start_time + response_time,
            request_size=100,
            response_size=200,
            request_config=GenerationOptions().resolved(),
        )

    return _make
