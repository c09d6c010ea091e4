"""sidebyside -- 多模型并发对比引擎

同一 prompt 并发发往最多三个 Gemini 模型，隔离单个调用的失败，
并为每个响应计算统一的性能/质量/技术指标。
"""

# 核心组件
from .batch import BatchOrchestrator
from .catalog import DEFAULT_MODEL_SELECTION, GEMINI_MODELS, ModelInfo, display_name, get_model
from .client import GeminiClient, validate_prompt

# 配置
from .config import ServiceConfig, load_service_config

# 异常
from .exceptions import ApiError, CompareError, NetworkError, ValidationError
from .export import SessionExport, build_session_export, write_export
from .metrics import MetricsCalculator, estimate_cost, estimate_tokens

# 数据模型
from .models import (
    BatchResult,
    CallResult,
    GenerationOptions,
    PerformanceMetrics,
    QualityMetrics,
    SlotError,
    TechnicalMetadata,
)
from .request import build_request

__all__ = [
    "BatchResult",
    "CallResult",
    "GenerationOptions",
    "PerformanceMetrics",
    "QualityMetrics",
    "SlotError",
    "TechnicalMetadata",
    "GeminiClient",
    "BatchOrchestrator",
    "MetricsCalculator",
    "build_request",
    "validate_prompt",
    "estimate_tokens",
    "estimate_cost",
    "GEMINI_MODELS",
    "DEFAULT_MODEL_SELECTION",
    "ModelInfo",
    "get_model",
    "display_name",
    "SessionExport",
    "build_session_export",
    "write_export",
    "ServiceConfig",
    "load_service_config",
    "CompareError",
    "ValidationError",
    "NetworkError",
    "ApiError",
]
