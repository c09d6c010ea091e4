"""会话导出 -- 将一次批量调用的结果与对比摘要序列化为 JSON 文档"""

from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path

import structlog
from pydantic import BaseModel, ConfigDict, Field

from .catalog import display_name
from .models import (
    BatchResult,
    CallResult,
    PerformanceMetrics,
    QualityMetrics,
    SafetyScore,
    SlotError,
    TechnicalMetadata,
)

log = structlog.get_logger()

NOT_AVAILABLE = "N/A"

# 安全评分排序：Safe 最优，Caution Required 最差
_SAFETY_RANK: dict[SafetyScore, int] = {
    SafetyScore.SAFE: 2,
    SafetyScore.NOT_AVAILABLE: 1,
    SafetyScore.CAUTION_REQUIRED: 0,
}


class SessionSummary(BaseModel):
    timestamp: str = Field(description="导出时间（ISO-8601 UTC）")
    prompt: str
    models_tested: list[str] = Field(default_factory=list)
    total_responses: int = 0
    total_cost: float = 0.0
    average_response_time: float = 0.0


class SlotExport(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_id: str
    model_name: str
    response: str
    performance_metrics: PerformanceMetrics
    quality_metrics: QualityMetrics
    technical_metadata: TechnicalMetadata


class ComparisonSummary(BaseModel):
    """对比摘要，值为模型展示名称；无成功结果时为 N/A"""

    fastest_model: str = NOT_AVAILABLE
    slowest_model: str = NOT_AVAILABLE
    most_cost_effective: str = NOT_AVAILABLE
    longest_response: str = NOT_AVAILABLE
    best_safety_score: str = NOT_AVAILABLE


class SessionExport(BaseModel):
    session: SessionSummary
    responses: dict[str, SlotExport | None] = Field(default_factory=dict)
    errors: dict[str, SlotError] = Field(default_factory=dict)
    comparison: ComparisonSummary = Field(default_factory=ComparisonSummary)


def _slot_export(result: CallResult) -> SlotExport:
    return SlotExport(
        model_id=result.model_id,
        model_name=display_name(result.model_id),
        response=result.text,
        performance_metrics=result.performance_metrics,
        quality_metrics=result.quality_metrics,
        technical_metadata=result.technical_metadata,
    )


def build_comparison(results: Mapping[str, CallResult]) -> ComparisonSummary:
    """按最快/最慢/最便宜/最长/最安全归约；并列时保留 slot 顺序中的第一个"""
    if not results:
        return ComparisonSummary()

    items = list(results.values())

    def name(result: CallResult) -> str:
        return display_name(result.model_id)

    return ComparisonSummary(
        fastest_model=name(min(items, key=lambda r: r.response_time)),
        slowest_model=name(max(items, key=lambda r: r.response_time)),
        most_cost_effective=name(
            min(items, key=lambda r: r.performance_metrics.estimated_cost)
        ),
        longest_response=name(
            max(items, key=lambda r: r.quality_metrics.response_length.characters)
        ),
        best_safety_score=name(
            max(items, key=lambda r: _SAFETY_RANK[r.quality_metrics.safety_score])
        ),
    )


def build_session_export(
    prompt: str,
    batch: BatchResult,
    slot_models: Mapping[str, str] | None = None,
    exported_at: datetime | None = None,
) -> SessionExport:
    """构造导出文档

    Args:
        prompt: 本次批量调用的 prompt
        batch: 批量调用结果
        slot_models: slot -> 模型映射；提供时每个 slot 都出现在 responses 中
        exported_at: 导出时间，默认当前 UTC 时间

    Returns:
        SessionExport
    """
    exported_at = exported_at or datetime.now(UTC)
    results = batch.results

    slots = list(slot_models or {})
    for slot in batch.slots:
        if slot not in slots:
            slots.append(slot)

    responses: dict[str, SlotExport | None] = {
        slot: _slot_export(results[slot]) if slot in results else None for slot in slots
    }

    total_cost = sum(r.performance_metrics.estimated_cost for r in results.values())
    average_response_time = (
        sum(r.response_time for r in results.values()) / len(results) if results else 0.0
    )

    return SessionExport(
        session=SessionSummary(
            timestamp=exported_at.isoformat(),
            prompt=prompt,
            models_tested=[r.model_id for r in results.values()],
            total_responses=len(results),
            total_cost=total_cost,
            average_response_time=average_response_time,
        ),
        responses=responses,
        errors=dict(batch.errors),
        comparison=build_comparison(results),
    )


def export_filename(exported_at: datetime) -> str:
    return f"gemini-comparison-{exported_at.date().isoformat()}.json"


def write_export(export: SessionExport, directory: str | Path) -> Path:
    """写入导出文件，返回文件路径"""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    exported_at = datetime.fromisoformat(export.session.timestamp)
    path = directory / export_filename(exported_at)
    path.write_text(export.model_dump_json(indent=2), encoding="utf-8")

    log.info(
        "session_exported",
        path=str(path),
        total_responses=export.session.total_responses,
    )
    return path
