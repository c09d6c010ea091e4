"""CLI 入口模块 -- python -m sidebyside <command>

支持的命令：
  models                                  列出模型目录
  compare <prompt> [model ...] [--export] 并发调用最多三个模型并对比
  test-connection                         检查 API 可用性
"""

import asyncio
import sys

from .batch import BatchOrchestrator
from .catalog import DEFAULT_MODEL_SELECTION, GEMINI_MODELS, SLOT_IDS, display_name
from .client import GeminiClient, validate_prompt
from .config import get_db_path, get_export_dir, load_service_config
from .exceptions import ValidationError
from .export import build_session_export, write_export
from .logging_config import setup_logging
from .models import BatchResult
from .store import open_prompt_store

USAGE = """用法: python -m sidebyside <command>
命令:
  models                                  列出模型目录
  compare <prompt> [model ...] [--export] 并发调用最多三个模型并对比
  test-connection                         检查 API 可用性"""


def main() -> None:
    """CLI 主入口"""
    setup_logging()

    if len(sys.argv) < 2:
        print(USAGE)
        sys.exit(1)

    command, args = sys.argv[1], sys.argv[2:]

    if command == "models":
        list_models()
    elif command == "compare":
        export = "--export" in args
        args = [a for a in args if a != "--export"]
        if not args:
            print(USAGE)
            sys.exit(1)
        prompt, models = args[0], args[1:]
        if len(models) > len(SLOT_IDS):
            print(f"最多指定 {len(SLOT_IDS)} 个模型")
            sys.exit(1)
        sys.exit(asyncio.run(compare(prompt, models, export)))
    elif command == "test-connection":
        sys.exit(asyncio.run(test_connection()))
    else:
        print(f"未知命令: {command}")
        print("可用命令: models, compare, test-connection")
        sys.exit(1)


def list_models() -> None:
    """按代际分组打印模型目录"""
    grouped: dict[str, list[str]] = {}
    for info in GEMINI_MODELS.values():
        grouped.setdefault(info.generation.value, []).append(
            f"  {info.id:<45} {info.name} [{info.category.value}, {info.context_window}]"
        )
    for generation in sorted(grouped, reverse=True):
        print(f"Gemini {generation}:")
        print("\n".join(grouped[generation]))


async def _resolve_api_key(store) -> str | None:
    config = load_service_config()
    return config.api_key.get_secret_value() or await store.prompts.load_api_key()


async def compare(prompt: str, models: list[str], export: bool = False) -> int:
    """执行一次批量对比并打印结果

    Returns:
        进程退出码：全部 slot 失败或参数无效时为 1
    """
    try:
        validate_prompt(prompt)
    except ValidationError as e:
        print(f"prompt 无效: {e}")
        return 1

    config = load_service_config()
    slot_models = dict(DEFAULT_MODEL_SELECTION)
    slot_models.update(zip(SLOT_IDS, models, strict=False))

    store = await open_prompt_store(get_db_path())
    try:
        api_key = await _resolve_api_key(store)
        if not api_key:
            print("未找到 API key: 请设置 GEMINI_API_KEY 环境变量")
            return 1

        client = GeminiClient(
            api_key=api_key,
            base_url=config.base_url,
            timeout_s=config.timeout_s,
        )
        batch = await BatchOrchestrator(client).execute_batch(slot_models, prompt)
        await store.prompts.add_to_history(prompt)
    finally:
        await store.close()

    print_batch(slot_models, batch)

    if export:
        path = write_export(
            build_session_export(prompt, batch, slot_models),
            get_export_dir(),
        )
        print(f"已导出: {path}")

    return 0 if batch.results else 1


def print_batch(slot_models: dict[str, str], batch: BatchResult) -> None:
    for slot, model_id in slot_models.items():
        print(f"===== {slot}: {display_name(model_id)} =====")
        if slot in batch.results:
            result = batch.results[slot]
            perf = result.performance_metrics
            quality = result.quality_metrics
            print(result.text)
            print(
                f"-- {result.response_time}ms | "
                f"{perf.token_usage.total} tokens (估算) | "
                f"${perf.estimated_cost:.6f} | "
                f"{perf.throughput:.1f} tok/s | "
                f"{quality.estimated_reading_level} | "
                f"{quality.safety_score}"
            )
        else:
            error = batch.errors[slot]
            print(f"[错误] {error.model_id}: {error.message}")
        print()


async def test_connection() -> int:
    store = await open_prompt_store(get_db_path())
    try:
        api_key = await _resolve_api_key(store)
    finally:
        await store.close()

    if not api_key:
        print("未找到 API key: 请设置 GEMINI_API_KEY 环境变量")
        return 1

    config = load_service_config()
    client = GeminiClient(api_key=api_key, base_url=config.base_url, timeout_s=config.timeout_s)
    ok = await client.test_connection()
    print("连接正常" if ok else "连接失败")
    return 0 if ok else 1


if __name__ == "__main__":
    main()
