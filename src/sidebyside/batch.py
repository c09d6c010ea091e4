"""BatchOrchestrator -- 多 slot 并发调用

同一 prompt 并发发往 {slot -> model} 映射中的每个模型。
等待全部 slot 结束，任何 slot 的失败都不会取消、延迟或影响其他 slot。
"""

import asyncio
from collections.abc import Mapping

import structlog
from ulid import ULID

from .models import BatchResult, CallResult, GenerationOptions, SlotError

log = structlog.get_logger()


class BatchOrchestrator:
    """批量调用编排器

    每个 slot 的结果归入 results 或 errors 之一，二者互斥。
    """

    def __init__(self, client) -> None:
        """
        Args:
            client: 提供 generate_content(model_id, prompt, options) 的执行器
                    （GeminiClient 或测试替身）
        """
        self._client = client

    async def execute_batch(
        self,
        slot_models: Mapping[str, str],
        prompt: str,
        options: GenerationOptions | None = None,
    ) -> BatchResult:
        """并发执行所有 slot 并汇总结果

        Args:
            slot_models: slot -> 模型 ID 映射
            prompt: 用户 prompt（调用方应已通过 validate_prompt 校验）
            options: 所有 slot 共用的生成参数（不可变）

        Returns:
            BatchResult；此方法不因单个 slot 失败而抛出异常
        """
        batch_id = str(ULID())
        slots = list(slot_models.items())

        with structlog.contextvars.bound_contextvars(batch_id=batch_id):
            log.info(
                "batch_started",
                slot_count=len(slots),
                models=[model_id for _, model_id in slots],
            )

            outcomes = await asyncio.gather(
                *(
                    self._run_slot(slot, model_id, prompt, options)
                    for slot, model_id in slots
                ),
                return_exceptions=True,
            )

            results: dict[str, CallResult] = {}
            errors: dict[str, SlotError] = {}
            for (slot, model_id), outcome in zip(slots, outcomes, strict=True):
                if isinstance(outcome, CallResult):
                    results[slot] = outcome
                elif isinstance(outcome, SlotError):
                    errors[slot] = outcome
                elif isinstance(outcome, BaseException):
                    # _run_slot 之外逃逸的异常（如任务被取消）
                    errors[slot] = SlotError.from_exception(outcome, model_id)
                else:
                    errors[slot] = SlotError.from_exception(
                        TypeError(f"Unexpected slot result: {type(outcome).__name__}"),
                        model_id,
                    )

            log.info(
                "batch_completed",
                succeeded=len(results),
                failed=len(errors),
            )

        return BatchResult(results=results, errors=errors)

    async def _run_slot(
        self,
        slot: str,
        model_id: str,
        prompt: str,
        options: GenerationOptions | None,
    ) -> CallResult | SlotError:
        """执行单个 slot，异常在此转为 SlotError"""
        try:
            return await self._client.generate_content(model_id, prompt, options)
        except Exception as e:
            log.warning(
                "batch_slot_failed",
                slot=slot,
                model_id=model_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return SlotError.from_exception(e, model_id)
