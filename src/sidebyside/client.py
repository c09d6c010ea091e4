"""GeminiClient -- 单次模型调用执行器

对一个模型发出一次 generateContent 请求，测量耗时，校验并解包响应，
成功时通过 MetricsCalculator 组装 CallResult。
失败只以 ValidationError / NetworkError / ApiError 三种类型抛出，不重试。
"""

import time

import httpx
import structlog

from .config import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_S, MAX_PROMPT_LENGTH, ServiceConfig
from .exceptions import ApiError, NetworkError, ValidationError
from .metrics import MetricsCalculator
from .models import (
    CallResult,
    GenerationOptions,
    PromptFeedback,
    SafetyRating,
    now_ms,
)
from .request import build_request, serialize_request

log = structlog.get_logger()

# 连接类异常（未收到任何 HTTP 响应）-> NetworkError
_CONNECTION_ERROR_TYPES = (
    ConnectionError,
    OSError,
    TimeoutError,
    httpx.TransportError,
)

# 常用模型 ID（静态列表，不调用 API 查询）
AVAILABLE_MODELS: tuple[str, ...] = (
    "gemini-2.5-pro",
    "gemini-2.5-flash",
    "gemini-2.0-flash",
    "gemini-1.5-pro",
    "gemini-1.5-flash",
    "gemini-1.5-flash-8b",
    "gemini-1.0-pro",
)

CONNECTION_TEST_MODEL = "gemini-1.5-flash"


def validate_prompt(prompt: str) -> None:
    """调用前校验 prompt

    generate_content 不会自动调用此函数，调用方应在构造批次前校验。

    Raises:
        ValidationError: prompt 为空/仅空白，或超过 MAX_PROMPT_LENGTH 字符
    """
    if not prompt or not prompt.strip():
        raise ValidationError("Prompt cannot be empty")
    if len(prompt) > MAX_PROMPT_LENGTH:
        raise ValidationError(f"Prompt is too long (max {MAX_PROMPT_LENGTH:,} characters)")


def api_version_from_base_url(base_url: str) -> str:
    """取 base URL 的最后一段作为 API 版本（如 v1beta）"""
    return base_url.rstrip("/").rsplit("/", 1)[-1]


class GeminiClient:
    """Gemini REST 客户端

    每次调用使用独立的 httpx.AsyncClient，调用之间不共享连接与可变状态。
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """初始化客户端

        Args:
            api_key: Gemini API 密钥（作为 key 查询参数发送）
            base_url: API 基础 URL
            timeout_s: 传输层超时（秒）
            transport: 可选 httpx transport（测试时注入 MockTransport）

        Raises:
            ValidationError: api_key 或 base_url 为空
        """
        self._api_key = api_key
        self._base_url = (base_url or "").rstrip("/")
        self._timeout_s = timeout_s
        self._transport = transport
        self._validate_config()

    @classmethod
    def from_config(
        cls,
        config: ServiceConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "GeminiClient":
        return cls(
            api_key=config.api_key.get_secret_value(),
            base_url=config.base_url,
            timeout_s=config.timeout_s,
            transport=transport,
        )

    def _validate_config(self) -> None:
        if not self._api_key:
            raise ValidationError("API key is required")
        if not self._base_url:
            raise ValidationError("Base URL is required")

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def api_version(self) -> str:
        return api_version_from_base_url(self._base_url)

    def update_config(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout_s: float | None = None,
    ) -> None:
        """替换配置并重新校验"""
        if api_key is not None:
            self._api_key = api_key
        if base_url is not None:
            self._base_url = base_url.rstrip("/")
        if timeout_s is not None:
            self._timeout_s = timeout_s
        self._validate_config()

    def validate_prompt(self, prompt: str) -> None:
        validate_prompt(prompt)

    def get_available_models(self) -> list[str]:
        return list(AVAILABLE_MODELS)

    async def generate_content(
        self,
        model_id: str,
        prompt: str,
        options: GenerationOptions | None = None,
    ) -> CallResult:
        """调用单个模型生成内容

        Args:
            model_id: 模型 ID（非空）
            prompt: 用户 prompt
            options: 生成参数，None 时全部取默认值

        Returns:
            CallResult，包含文本、计时与三类指标

        Raises:
            ValidationError: model_id 为空
            NetworkError: 连接失败，未收到 HTTP 响应
            ApiError: 非成功状态、响应结构无效/为空，或其他未知异常
        """
        if not model_id:
            raise ValidationError("Model ID is required")

        options = options or GenerationOptions()
        start_time = now_ms()
        started = time.monotonic()

        try:
            payload = build_request(prompt, options)
            body = serialize_request(payload)

            log.debug(
                "gemini_call_start",
                model_id=model_id,
                request_size=len(body),
            )

            response = await self._post(model_id, body)

            if not response.is_success:
                raise ApiError(
                    f"API request failed: {response.status_code} "
                    f"{response.reason_phrase}. {response.text}",
                    model_id=model_id,
                    status=response.status_code,
                )

            data = response.json()
            end_time = start_time + int((time.monotonic() - started) * 1000)

            result = self._handle_response(
                data,
                model_id=model_id,
                prompt=prompt,
                options=options,
                start_time=start_time,
                end_time=end_time,
                request_size=len(body),
                response_size=len(response.content),
            )

            log.info(
                "gemini_call_completed",
                model_id=model_id,
                duration_ms=result.response_time,
                total_tokens=result.performance_metrics.token_usage.total,
                estimated_cost=result.performance_metrics.estimated_cost,
                finish_reason=result.quality_metrics.finish_reason,
            )
            return result

        except (ApiError, NetworkError) as e:
            self._log_failure(model_id, e, started)
            raise
        except Exception as e:
            self._log_failure(model_id, e, started)
            if isinstance(e, _CONNECTION_ERROR_TYPES):
                raise NetworkError(
                    f"Network error while calling {model_id}: {e}",
                    model_id=model_id,
                ) from e
            raise ApiError(
                f"Unexpected error: {str(e) or 'Unknown error'}",
                model_id=model_id,
            ) from e

    async def _post(self, model_id: str, body: bytes) -> httpx.Response:
        url = f"{self._base_url}/models/{model_id}:generateContent"
        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=self._timeout_s,
        ) as http_client:
            return await http_client.post(
                url,
                params={"key": self._api_key},
                content=body,
                headers={"Content-Type": "application/json"},
            )

    def _handle_response(
        self,
        data,
        *,
        model_id: str,
        prompt: str,
        options: GenerationOptions,
        start_time: int,
        end_time: int,
        request_size: int,
        response_size: int,
    ) -> CallResult:
        """校验响应结构并组装 CallResult

        仅使用第一个 candidate；至少存在一个非空 text part 才视为有效。
        """
        candidates = data.get("candidates") if isinstance(data, dict) else None
        if not candidates:
            raise ApiError("No candidates returned from API", model_id=model_id)

        candidate = candidates[0] or {}
        parts = (candidate.get("content") or {}).get("parts") or []
        if not parts:
            raise ApiError("No content in API response", model_id=model_id)

        text = "".join(part.get("text") or "" for part in parts).strip()
        if not text:
            raise ApiError("Empty response from API", model_id=model_id)

        safety_ratings = tuple(
            SafetyRating.model_validate(r) for r in candidate.get("safetyRatings") or []
        )
        feedback_data = data.get("promptFeedback")
        prompt_feedback = (
            PromptFeedback.model_validate(feedback_data) if feedback_data else None
        )

        return MetricsCalculator.compose(
            prompt=prompt,
            response_text=text,
            model_id=model_id,
            start_time=start_time,
            end_time=end_time,
            request_size=request_size,
            response_size=response_size,
            request_config=options.resolved(),
            safety_ratings=safety_ratings,
            finish_reason=candidate.get("finishReason") or "",
            prompt_feedback=prompt_feedback,
            candidate_count=len(candidates),
            model_version=data.get("modelVersion"),
            api_version=self.api_version,
        )

    @staticmethod
    def _log_failure(model_id: str, error: Exception, started: float) -> None:
        log.error(
            "gemini_call_failed",
            model_id=model_id,
            error=str(error),
            error_type=type(error).__name__,
            duration_ms=int((time.monotonic() - started) * 1000),
        )

    async def test_connection(self, model_id: str = CONNECTION_TEST_MODEL) -> bool:
        """发送一次最小请求检查 API 可用性

        此方法不抛出异常，失败时返回 False。
        """
        try:
            await self.generate_content(
                model_id,
                "Hello",
                GenerationOptions(max_output_tokens=10),
            )
            return True
        except Exception as e:
            log.warning("connection_test_failed", model_id=model_id, error=str(e))
            return False
