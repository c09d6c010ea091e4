"""模型目录 -- 只读静态表

引擎只从目录读取 id/name 用于展示；未知模型 ID 原样回退。
"""

from collections.abc import Mapping
from enum import StrEnum
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field


class ModelGeneration(StrEnum):
    V1_0 = "1.0"
    V1_5 = "1.5"
    V2_0 = "2.0"
    V2_5 = "2.5"
    EMBEDDING = "embedding"


class ModelCategory(StrEnum):
    FLAGSHIP = "flagship"
    BALANCED = "balanced"
    FAST = "fast"
    LITE = "lite"
    PRO = "pro"
    SPECIALIZED = "specialized"
    LIVE = "live"
    EXPERIMENTAL = "experimental"
    LEGACY = "legacy"


class ModelInfo(BaseModel):
    """目录条目"""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="API 使用的模型 ID")
    name: str = Field(description="展示名称")
    description: str = ""
    context_window: str = Field(default="", description="上下文窗口标签，如 1M tokens")
    generation: ModelGeneration
    category: ModelCategory
    features: tuple[str, ...] = ()


def _model(
    id: str,
    name: str,
    description: str,
    context_window: str,
    generation: str,
    category: str,
    features: list[str],
) -> ModelInfo:
    return ModelInfo(
        id=id,
        name=name,
        description=description,
        context_window=context_window,
        generation=ModelGeneration(generation),
        category=ModelCategory(category),
        features=tuple(features),
    )


_CATALOG: dict[str, ModelInfo] = {
    # 2.5 系列
    "gemini-2.5-pro": _model(
        "gemini-2.5-pro",
        "Gemini 2.5 Pro",
        "Most intelligent thinking model with enhanced reasoning and coding capabilities",
        "1M tokens",
        "2.5",
        "flagship",
        ["thinking", "reasoning", "coding", "multimodal", "audio", "video", "pdf"],
    ),
    "gemini-2.5-flash": _model(
        "gemini-2.5-flash",
        "Gemini 2.5 Flash",
        "Best price-performance model with adaptive thinking capabilities",
        "1M tokens",
        "2.5",
        "balanced",
        ["thinking", "fast", "cost-effective", "multimodal", "audio", "video"],
    ),
    "gemini-2.5-flash-lite-preview": _model(
        "gemini-2.5-flash-lite-preview-06-17",
        "Gemini 2.5 Flash Lite",
        "Most cost-efficient model optimized for high throughput",
        "1M tokens",
        "2.5",
        "lite",
        ["cost-effective", "high-throughput", "multimodal"],
    ),
    "gemini-2.5-flash-preview-tts": _model(
        "gemini-2.5-flash-preview-tts",
        "Gemini 2.5 Flash TTS",
        "Text-to-speech model for audio generation",
        "8K tokens",
        "2.5",
        "specialized",
        ["text-to-speech", "audio-generation"],
    ),
    "gemini-2.5-pro-preview-tts": _model(
        "gemini-2.5-pro-preview-tts",
        "Gemini 2.5 Pro TTS",
        "Advanced text-to-speech with premium quality",
        "8K tokens",
        "2.5",
        "specialized",
        ["text-to-speech", "premium-audio"],
    ),
    # 2.0 系列
    "gemini-2.0-flash": _model(
        "gemini-2.0-flash",
        "Gemini 2.0 Flash",
        "Next-gen features with improved speed and native tool use",
        "1M tokens",
        "2.0",
        "fast",
        ["fast", "tool-use", "multimodal", "realtime-streaming"],
    ),
    "gemini-2.0-flash-thinking": _model(
        "gemini-2.0-flash-thinking",
        "Gemini 2.0 Flash Thinking",
        "Experimental model that exposes reasoning process",
        "1M tokens",
        "2.0",
        "experimental",
        ["thinking", "reasoning-visibility", "experimental"],
    ),
    "gemini-2.0-flash-lite": _model(
        "gemini-2.0-flash-lite",
        "Gemini 2.0 Flash Lite",
        "Cost-efficient version optimized for low latency",
        "1M tokens",
        "2.0",
        "lite",
        ["cost-effective", "low-latency", "multimodal"],
    ),
    "gemini-2.0-pro": _model(
        "gemini-2.0-pro",
        "Gemini 2.0 Pro",
        "Advanced capabilities with enhanced performance",
        "1M tokens",
        "2.0",
        "pro",
        ["advanced", "multimodal", "enhanced-performance"],
    ),
    "gemini-2.0-flash-preview-image-generation": _model(
        "gemini-2.0-flash-preview-image-generation",
        "Gemini 2.0 Flash Image Gen",
        "Conversational image generation and editing",
        "32K tokens",
        "2.0",
        "specialized",
        ["image-generation", "conversational", "image-editing"],
    ),
    # 1.5 系列
    "gemini-1.5-pro": _model(
        "gemini-1.5-pro",
        "Gemini 1.5 Pro",
        "Mid-size multimodal model optimized for complex reasoning",
        "2M tokens",
        "1.5",
        "pro",
        ["complex-reasoning", "multimodal", "long-context"],
    ),
    "gemini-1.5-flash": _model(
        "gemini-1.5-flash",
        "Gemini 1.5 Flash",
        "Fast and versatile performance across diverse tasks",
        "1M tokens",
        "1.5",
        "balanced",
        ["versatile", "fast", "multimodal"],
    ),
    "gemini-1.5-flash-8b": _model(
        "gemini-1.5-flash-8b",
        "Gemini 1.5 Flash 8B",
        "Smaller model for high volume and lower intelligence tasks",
        "1M tokens",
        "1.5",
        "lite",
        ["high-volume", "cost-effective", "multimodal"],
    ),
    # 1.0 系列（遗留）
    "gemini-1.0-pro": _model(
        "gemini-1.0-pro",
        "Gemini 1.0 Pro",
        "Legacy model maintained for compatibility",
        "32K tokens",
        "1.0",
        "legacy",
        ["legacy", "compatibility"],
    ),
    "gemini-1.0-ultra": _model(
        "gemini-1.0-ultra",
        "Gemini 1.0 Ultra",
        "Legacy ultra model for complex tasks",
        "32K tokens",
        "1.0",
        "legacy",
        ["legacy", "complex-tasks"],
    ),
    # Live API
    "gemini-2.5-flash-live": _model(
        "gemini-2.5-flash-live",
        "Gemini 2.5 Flash Live",
        "Low-latency bidirectional voice and video interactions",
        "1M tokens",
        "2.5",
        "live",
        ["live-api", "voice", "video", "real-time"],
    ),
    "gemini-2.0-flash-live": _model(
        "gemini-2.0-flash-live",
        "Gemini 2.0 Flash Live",
        "Real-time audio and video processing",
        "1M tokens",
        "2.0",
        "live",
        ["live-api", "audio", "video", "real-time"],
    ),
    # Embedding
    "gemini-embedding": _model(
        "gemini-embedding",
        "Gemini Embedding",
        "State-of-the-art text embeddings for semantic understanding",
        "8K tokens",
        "embedding",
        "specialized",
        ["embeddings", "semantic-search", "retrieval"],
    ),
    "text-embedding-004": _model(
        "text-embedding-004",
        "Text Embedding 004",
        "High-performance text embeddings with 768 dimensions",
        "2K tokens",
        "embedding",
        "specialized",
        ["embeddings", "text-only", "retrieval"],
    ),
}

GEMINI_MODELS: Mapping[str, ModelInfo] = MappingProxyType(_CATALOG)

SLOT_IDS: tuple[str, ...] = ("column1", "column2", "column3")

DEFAULT_MODEL_SELECTION: Mapping[str, str] = MappingProxyType(
    {
        "column1": "gemini-2.5-pro",
        "column2": "gemini-2.5-flash",
        "column3": "gemini-2.0-flash",
    }
)


def get_model(model_id: str) -> ModelInfo | None:
    """按目录 key 查询，找不到时再按条目 id 查询"""
    if model_id in GEMINI_MODELS:
        return GEMINI_MODELS[model_id]
    for info in GEMINI_MODELS.values():
        if info.id == model_id:
            return info
    return None


def display_name(model_id: str) -> str:
    """展示名称，未知模型回退为原始 ID"""
    info = get_model(model_id)
    return info.name if info is not None else model_id


def models_by_category(category: str) -> list[ModelInfo]:
    return [m for m in GEMINI_MODELS.values() if m.category == category]


def models_by_generation(generation: str) -> list[ModelInfo]:
    return [m for m in GEMINI_MODELS.values() if m.generation == generation]


def models_by_feature(feature: str) -> list[ModelInfo]:
    return [m for m in GEMINI_MODELS.values() if feature in m.features]
