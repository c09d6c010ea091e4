"""数据模型 -- 生成参数、调用结果、指标记录、批次结果

所有引擎返回的记录均为 frozen pydantic 模型，构造后不可修改。
时间字段统一为 Unix 纪元毫秒整数。
"""

import time
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from .exceptions import ApiError, NetworkError, ValidationError

# 生成参数默认值
DEFAULT_TEMPERATURE = 0.7
DEFAULT_TOP_K = 40
DEFAULT_TOP_P = 0.95
DEFAULT_MAX_OUTPUT_TOKENS = 2048


def now_ms() -> int:
    """当前时间（Unix 纪元毫秒）"""
    return int(time.time() * 1000)


class ReadingLevel(StrEnum):
    """可读性等级（简化 Flesch Reading Ease 分段）"""

    VERY_EASY = "Very Easy"
    EASY = "Easy"
    FAIRLY_EASY = "Fairly Easy"
    STANDARD = "Standard"
    FAIRLY_DIFFICULT = "Fairly Difficult"
    DIFFICULT = "Difficult"
    VERY_DIFFICULT = "Very Difficult"
    NOT_AVAILABLE = "N/A"


class SafetyScore(StrEnum):
    """粗粒度安全评分"""

    SAFE = "Safe"
    CAUTION_REQUIRED = "Caution Required"
    NOT_AVAILABLE = "Not Available"


class ContentCategory(StrEnum):
    """启发式内容标签"""

    CODE = "Code"
    QA = "Q&A"
    INSTRUCTIONS = "Instructions"
    LONG_FORM = "Long-form"
    GENERAL = "General"


class Language(StrEnum):
    """启发式语言检测结果"""

    ENGLISH = "English"
    OTHER = "Other/Mixed"


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, protected_namespaces=())


class _WireModel(BaseModel):
    """与上游 JSON 互转的模型：字段 snake_case，线上 camelCase"""

    model_config = ConfigDict(
        frozen=True,
        protected_namespaces=(),
        populate_by_name=True,
        alias_generator=to_camel,
    )


# ============================================================
# 请求侧
# ============================================================


class GenerationConfig(_WireModel):
    """已应用默认值的生成配置 -- 回显到 TechnicalMetadata.request_config"""

    temperature: float = Field(description="采样温度")
    top_k: int = Field(description="Top-K 采样")
    top_p: float = Field(description="Top-P 采样")
    max_output_tokens: int = Field(description="最大输出 token 数")
    stop_sequences: tuple[str, ...] | None = Field(
        default=None,
        description="停止序列（有序）",
    )

    def to_wire(self) -> dict:
        """序列化为上游 generationConfig 字段（camelCase，省略空 stopSequences）"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class GenerationOptions(_FrozenModel):
    """单次调用的生成参数 -- 每个字段独立可选，缺省时取默认值"""

    temperature: float | None = Field(default=None, ge=0.0, le=2.0, description="采样温度")
    top_k: int | None = Field(default=None, ge=1, description="Top-K 采样")
    top_p: float | None = Field(default=None, ge=0.0, le=1.0, description="Top-P 采样")
    max_output_tokens: int | None = Field(default=None, ge=1, description="最大输出 token 数")
    stop_sequences: tuple[str, ...] | None = Field(default=None, description="停止序列")

    def resolved(self) -> GenerationConfig:
        """应用默认值，返回完整的 GenerationConfig"""
        return GenerationConfig(
            temperature=(
                self.temperature if self.temperature is not None else DEFAULT_TEMPERATURE
            ),
            top_k=self.top_k if self.top_k is not None else DEFAULT_TOP_K,
            top_p=self.top_p if self.top_p is not None else DEFAULT_TOP_P,
            max_output_tokens=(
                self.max_output_tokens
                if self.max_output_tokens is not None
                else DEFAULT_MAX_OUTPUT_TOKENS
            ),
            stop_sequences=self.stop_sequences,
        )


class SafetySetting(_FrozenModel):
    """安全类别阈值"""

    category: str
    threshold: str


# ============================================================
# 上游透传字段
# ============================================================


class SafetyRating(_WireModel):
    """上游按危害类别给出的风险评级"""

    category: str = Field(default="", description="危害类别")
    probability: str = Field(default="", description="概率等级（NEGLIGIBLE/LOW/MEDIUM/HIGH）")


class PromptFeedback(_WireModel):
    """上游对 prompt 本身的反馈"""

    safety_ratings: tuple[SafetyRating, ...] = Field(default=())
    block_reason: str | None = Field(default=None)


# ============================================================
# 指标
# ============================================================


class TokenUsage(_FrozenModel):
    """Token 使用估算（按字符数估算，非真实 tokenizer 计数）"""

    input: int = Field(default=0, ge=0, description="输入 token 估算")
    output: int = Field(default=0, ge=0, description="输出 token 估算")
    total: int = Field(default=0, ge=0, description="总 token 估算")


class PerformanceMetrics(_FrozenModel):
    """性能指标"""

    response_time: int = Field(ge=0, description="耗时（毫秒）")
    start_time: int = Field(description="开始时间（纪元毫秒）")
    end_time: int = Field(description="结束时间（纪元毫秒）")
    token_usage: TokenUsage = Field(default_factory=TokenUsage)
    estimated_cost: float = Field(default=0.0, ge=0.0, description="估算 USD 成本")
    throughput: float = Field(default=0.0, ge=0.0, description="tokens/秒")
    request_size: int = Field(default=0, ge=0, description="请求体字节数")
    response_size: int = Field(default=0, ge=0, description="响应体字节数")


class ResponseLength(_FrozenModel):
    """响应长度统计"""

    characters: int = Field(default=0, ge=0)
    words: int = Field(default=0, ge=0)
    sentences: int = Field(default=0, ge=0)
    paragraphs: int = Field(default=0, ge=0)
    estimated_tokens: int = Field(default=0, ge=0)


class QualityMetrics(_FrozenModel):
    """启发式质量信号"""

    response_length: ResponseLength = Field(default_factory=ResponseLength)
    estimated_reading_level: ReadingLevel = ReadingLevel.NOT_AVAILABLE
    safety_score: SafetyScore = SafetyScore.NOT_AVAILABLE
    finish_reason: str = Field(default="", description="上游 finishReason 透传")
    content_categories: tuple[ContentCategory, ...] = Field(default=(ContentCategory.GENERAL,))
    language_detected: Language = Language.OTHER


class TechnicalMetadata(_FrozenModel):
    """技术元数据 -- 请求配置回显 + 上游透传字段"""

    model_version: str = Field(description="上游报告的模型版本，缺失时为模型 ID")
    model_name: str = Field(description="展示名称（目录中查不到时为模型 ID）")
    api_version: str = Field(description="API 版本（取自 base URL 末段）")
    request_config: GenerationConfig
    safety_settings: tuple[SafetySetting, ...] = Field(default=())
    safety_ratings: tuple[SafetyRating, ...] = Field(default=())
    prompt_feedback: PromptFeedback | None = None
    candidate_count: int = Field(default=0, ge=0)


# ============================================================
# 调用结果
# ============================================================


class CallResult(_FrozenModel):
    """单次成功调用的结果

    timestamp == end_time；response_time == end_time - start_time。
    """

    text: str = Field(min_length=1, description="去除首尾空白后的响应文本")
    model_id: str = Field(description="模型 ID")
    timestamp: int = Field(description="调用完成时间（纪元毫秒）")
    start_time: int
    end_time: int
    response_time: int = Field(ge=0, description="耗时（毫秒）")
    performance_metrics: PerformanceMetrics
    quality_metrics: QualityMetrics
    technical_metadata: TechnicalMetadata

    @model_validator(mode="after")
    def _check_timing(self) -> "CallResult":
        if self.response_time != self.end_time - self.start_time:
            raise ValueError("response_time 必须等于 end_time - start_time")
        return self


SlotErrorKind = Literal["api_error", "network_error", "validation_error", "unexpected_error"]


class SlotError(_FrozenModel):
    """单个 slot 的失败结果"""

    kind: SlotErrorKind
    message: str
    model_id: str
    status: int | None = Field(default=None, description="上游 HTTP 状态码（仅 api_error）")
    timestamp: int = Field(default_factory=now_ms)

    @classmethod
    def from_exception(cls, exc: BaseException, model_id: str) -> "SlotError":
        """将任意异常转换为 SlotError，归属到指定模型"""
        status = None
        if isinstance(exc, ApiError):
            kind: SlotErrorKind = "api_error"
            status = exc.status
        elif isinstance(exc, NetworkError):
            kind = "network_error"
        elif isinstance(exc, ValidationError):
            kind = "validation_error"
        else:
            kind = "unexpected_error"

        return cls(
            kind=kind,
            message=str(exc) or "Unknown error",
            model_id=getattr(exc, "model_id", None) or model_id,
            status=status,
        )


class BatchResult(_FrozenModel):
    """一次批量调用的结果

    每个 slot 恰好出现在 results 或 errors 之一。
    """

    results: dict[str, CallResult] = Field(default_factory=dict)
    errors: dict[str, SlotError] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_disjoint(self) -> "BatchResult":
        overlap = self.results.keys() & self.errors.keys()
        if overlap:
            raise ValueError(f"slot 同时出现在 results 与 errors 中: {sorted(overlap)}")
        return self

    @property
    def slots(self) -> list[str]:
        return [*self.results, *self.errors]

    @property
    def succeeded(self) -> list[str]:
        return list(self.results)

    @property
    def failed(self) -> list[str]:
        return list(self.errors)

    def outcome(self, slot: str) -> CallResult | SlotError | None:
        """按 slot 取结果或错误；未知 slot 返回 None"""
        return self.results.get(slot) or self.errors.get(slot)
