"""指标计算 -- 纯函数，无 I/O，结果确定

从 (prompt, 响应文本, 计时) 推导性能、质量与技术元数据。
所有文本分析均为启发式近似：阈值与公式保持固定，不做"改进"。
"""

import math
import re
from collections.abc import Mapping, Sequence
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field

from .catalog import display_name
from .models import (
    CallResult,
    ContentCategory,
    GenerationConfig,
    Language,
    PerformanceMetrics,
    PromptFeedback,
    QualityMetrics,
    ReadingLevel,
    ResponseLength,
    SafetyRating,
    SafetyScore,
    TechnicalMetadata,
    TokenUsage,
)
from .request import SAFETY_SETTINGS

# ============================================================
# Token / 成本 / 吞吐
# ============================================================

# 粗略估算：约 4 个字符 1 个 token，与真实 tokenizer 计数不一致
CHARS_PER_TOKEN = 4


class ModelPricing(BaseModel):
    """每 1000 token 的 USD 单价"""

    model_config = ConfigDict(frozen=True)

    input_per_1k: float = Field(ge=0.0)
    output_per_1k: float = Field(ge=0.0)


PRICING: Mapping[str, ModelPricing] = MappingProxyType(
    {
        "gemini-2.5-pro": ModelPricing(input_per_1k=0.00125, output_per_1k=0.01),
        "gemini-2.5-flash": ModelPricing(input_per_1k=0.0003, output_per_1k=0.0025),
        "gemini-2.5-flash-lite-preview-06-17": ModelPricing(
            input_per_1k=0.0001, output_per_1k=0.0004
        ),
        "gemini-2.0-flash": ModelPricing(input_per_1k=0.0001, output_per_1k=0.0004),
        "gemini-2.0-flash-lite": ModelPricing(input_per_1k=0.000075, output_per_1k=0.0003),
        "gemini-2.0-pro": ModelPricing(input_per_1k=0.00125, output_per_1k=0.005),
        "gemini-1.5-pro": ModelPricing(input_per_1k=0.00125, output_per_1k=0.005),
        "gemini-1.5-flash": ModelPricing(input_per_1k=0.000075, output_per_1k=0.0003),
        "gemini-1.5-flash-8b": ModelPricing(input_per_1k=0.0000375, output_per_1k=0.00015),
        "gemini-1.0-pro": ModelPricing(input_per_1k=0.0005, output_per_1k=0.0015),
    }
)

# 未知模型使用的默认费率
DEFAULT_PRICING = ModelPricing(input_per_1k=0.0005, output_per_1k=0.0015)

# 小于 1ms 的耗时按 1ms 计算，吞吐始终为有限值
MIN_RESPONSE_TIME_MS = 1


def estimate_tokens(text: str) -> int:
    """按字符数估算 token：ceil(len / 4)

    这是近似值，不是权威计数。
    """
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def get_pricing(model_id: str) -> ModelPricing:
    return PRICING.get(model_id, DEFAULT_PRICING)


def estimate_cost(model_id: str, input_tokens: int, output_tokens: int) -> float:
    """估算 USD 成本；未知模型回退到 DEFAULT_PRICING"""
    pricing = get_pricing(model_id)
    return (input_tokens / 1000) * pricing.input_per_1k + (
        output_tokens / 1000
    ) * pricing.output_per_1k


def calculate_throughput(total_tokens: int, response_time_ms: int) -> float:
    """tokens/秒；response_time_ms < 1 时按 1ms 计算"""
    elapsed_ms = max(response_time_ms, MIN_RESPONSE_TIME_MS)
    return total_tokens / (elapsed_ms / 1000)


# ============================================================
# 长度分析
# ============================================================

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")


def count_words(text: str) -> int:
    return len(text.split())


def count_sentences(text: str) -> int:
    return sum(1 for fragment in _SENTENCE_SPLIT.split(text) if fragment.strip())


def count_paragraphs(text: str) -> int:
    return sum(1 for block in _PARAGRAPH_SPLIT.split(text) if block.strip())


def analyze_length(text: str) -> ResponseLength:
    return ResponseLength(
        characters=len(text),
        words=count_words(text),
        sentences=count_sentences(text),
        paragraphs=count_paragraphs(text),
        estimated_tokens=estimate_tokens(text),
    )


# ============================================================
# 可读性（简化 Flesch Reading Ease）
# ============================================================

_NON_LETTER = re.compile(r"[^a-z]")
_SILENT_SUFFIX = re.compile(r"(?:[^laeiouy]es|ed|[^laeiouy]e)$")
_LEADING_Y = re.compile(r"^y")
_VOWEL_GROUP = re.compile(r"[aeiouy]{1,2}")

_READING_BANDS: tuple[tuple[float, ReadingLevel], ...] = (
    (90, ReadingLevel.VERY_EASY),
    (80, ReadingLevel.EASY),
    (70, ReadingLevel.FAIRLY_EASY),
    (60, ReadingLevel.STANDARD),
    (50, ReadingLevel.FAIRLY_DIFFICULT),
    (30, ReadingLevel.DIFFICULT),
)


def count_syllables(word: str) -> int:
    """音节启发式：长度 <= 3 记 1；去掉尾部 es/ed/e 与首字母 y 后统计元音簇，至少 1"""
    word = _NON_LETTER.sub("", word.lower())
    if len(word) <= 3:
        return 1
    word = _SILENT_SUFFIX.sub("", word)
    word = _LEADING_Y.sub("", word)
    return max(1, len(_VOWEL_GROUP.findall(word)))


def flesch_reading_ease(text: str) -> float | None:
    """206.835 - 1.015 * (词/句) - 84.6 * (音节/词)；无句子或无词时返回 None"""
    words = text.split()
    sentences = count_sentences(text)
    if sentences == 0 or not words:
        return None
    syllables = sum(count_syllables(w) for w in words)
    return 206.835 - 1.015 * (len(words) / sentences) - 84.6 * (syllables / len(words))


def estimate_reading_level(text: str) -> ReadingLevel:
    score = flesch_reading_ease(text)
    if score is None:
        return ReadingLevel.NOT_AVAILABLE
    for threshold, level in _READING_BANDS:
        if score >= threshold:
            return level
    return ReadingLevel.VERY_DIFFICULT


# ============================================================
# 安全 / 分类 / 语言
# ============================================================

_CAUTION_PROBABILITIES = frozenset({"HIGH", "MEDIUM"})

# 十个常见英文功能词，按不区分大小写的子串包含计数
ENGLISH_MARKERS: tuple[str, ...] = (
    "the",
    "and",
    "is",
    "in",
    "to",
    "of",
    "a",
    "that",
    "it",
    "for",
)
ENGLISH_MIN_MATCHES = 3

LONG_FORM_CHARS = 500


def score_safety(ratings: Sequence[SafetyRating]) -> SafetyScore:
    if not ratings:
        return SafetyScore.NOT_AVAILABLE
    if any(r.probability.upper() in _CAUTION_PROBABILITIES for r in ratings):
        return SafetyScore.CAUTION_REQUIRED
    return SafetyScore.SAFE


def categorize_content(text: str) -> tuple[ContentCategory, ...]:
    """启发式标签，可同时命中多个；均未命中时为 General"""
    categories: list[ContentCategory] = []
    if "```" in text or "function" in text or "class" in text:
        categories.append(ContentCategory.CODE)
    if text.count("?") > 1:
        categories.append(ContentCategory.QA)
    if "Step" in text or "1." in text or "2." in text:
        categories.append(ContentCategory.INSTRUCTIONS)
    if len(text) > LONG_FORM_CHARS:
        categories.append(ContentCategory.LONG_FORM)
    return tuple(categories) or (ContentCategory.GENERAL,)


def detect_language(text: str) -> Language:
    """粗粒度语言判断，不是语言识别模型"""
    lowered = text.lower()
    matches = sum(1 for marker in ENGLISH_MARKERS if marker in lowered)
    return Language.ENGLISH if matches > ENGLISH_MIN_MATCHES else Language.OTHER


# ============================================================
# 组装
# ============================================================


class MetricsCalculator:
    """指标组装器

    将 Executor 收集的原始数据组装为三类指标记录与最终 CallResult。
    所有方法均为静态方法，无状态。
    """

    @staticmethod
    def performance(
        *,
        prompt: str,
        response_text: str,
        model_id: str,
        start_time: int,
        end_time: int,
        request_size: int,
        response_size: int,
    ) -> PerformanceMetrics:
        input_tokens = estimate_tokens(prompt)
        output_tokens = estimate_tokens(response_text)
        total_tokens = input_tokens + output_tokens
        response_time = end_time - start_time
        return PerformanceMetrics(
            response_time=response_time,
            start_time=start_time,
            end_time=end_time,
            token_usage=TokenUsage(
                input=input_tokens,
                output=output_tokens,
                total=total_tokens,
            ),
            estimated_cost=estimate_cost(model_id, input_tokens, output_tokens),
            throughput=calculate_throughput(total_tokens, response_time),
            request_size=request_size,
            response_size=response_size,
        )

    @staticmethod
    def quality(
        *,
        response_text: str,
        safety_ratings: Sequence[SafetyRating],
        finish_reason: str,
    ) -> QualityMetrics:
        return QualityMetrics(
            response_length=analyze_length(response_text),
            estimated_reading_level=estimate_reading_level(response_text),
            safety_score=score_safety(safety_ratings),
            finish_reason=finish_reason,
            content_categories=categorize_content(response_text),
            language_detected=detect_language(response_text),
        )

    @staticmethod
    def technical(
        *,
        model_id: str,
        request_config: GenerationConfig,
        safety_ratings: Sequence[SafetyRating],
        prompt_feedback: PromptFeedback | None,
        candidate_count: int,
        model_version: str | None = None,
        api_version: str = "",
    ) -> TechnicalMetadata:
        return TechnicalMetadata(
            model_version=model_version or model_id,
            model_name=display_name(model_id),
            api_version=api_version,
            request_config=request_config,
            safety_settings=SAFETY_SETTINGS,
            safety_ratings=tuple(safety_ratings),
            prompt_feedback=prompt_feedback,
            candidate_count=candidate_count,
        )

    @classmethod
    def compose(
        cls,
        *,
        prompt: str,
        response_text: str,
        model_id: str,
        start_time: int,
        end_time: int,
        request_size: int,
        response_size: int,
        request_config: GenerationConfig,
        safety_ratings: Sequence[SafetyRating] = (),
        finish_reason: str = "",
        prompt_feedback: PromptFeedback | None = None,
        candidate_count: int = 1,
        model_version: str | None = None,
        api_version: str = "",
    ) -> CallResult:
        """由一次成功调用的原始数据构造完整 CallResult"""
        return CallResult(
            text=response_text,
            model_id=model_id,
            timestamp=end_time,
            start_time=start_time,
            end_time=end_time,
            response_time=end_time - start_time,
            performance_metrics=cls.performance(
                prompt=prompt,
                response_text=response_text,
                model_id=model_id,
                start_time=start_time,
                end_time=end_time,
                request_size=request_size,
                response_size=response_size,
            ),
            quality_metrics=cls.quality(
                response_text=response_text,
                safety_ratings=safety_ratings,
                finish_reason=finish_reason,
            ),
            technical_metadata=cls.technical(
                model_id=model_id,
                request_config=request_config,
                safety_ratings=safety_ratings,
                prompt_feedback=prompt_feedback,
                candidate_count=candidate_count,
                model_version=model_version,
                api_version=api_version,
            ),
        )
