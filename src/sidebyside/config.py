"""配置加载 -- 环境变量优先，不硬编码密钥

ServiceConfig 描述 Gemini 调用所需的连接参数；
其余可配置常量（数据目录、导出目录、prompt 长度上限等）以模块级函数/常量提供。
"""

import os
from pathlib import Path

import structlog
from pydantic import BaseModel, Field, SecretStr

log = structlog.get_logger()

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

DEFAULT_TIMEOUT_S = 60.0

# prompt 字符数上限（保守值）
MAX_PROMPT_LENGTH: int = 30_000

# prompt 历史保留条数
HISTORY_LIMIT: int = 50


class ServiceConfig(BaseModel):
    """Gemini 调用配置 -- 从环境变量加载

    环境变量:
        GEMINI_API_KEY: API 密钥（作为 key 查询参数发送）
        GEMINI_BASE_URL: API 基础 URL
        SIDEBYSIDE_TIMEOUT_S: 单次调用传输层超时（秒，默认 60）
    """

    api_key: SecretStr = Field(
        default=SecretStr(""),
        description="Gemini API 密钥",
    )
    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Gemini API 基础 URL（含版本段，如 /v1beta）",
    )
    timeout_s: float = Field(
        default=DEFAULT_TIMEOUT_S,
        gt=0,
        description="单次调用传输层超时（秒）",
    )


def load_service_config() -> ServiceConfig:
    """从环境变量加载 ServiceConfig

    环境变量映射:
        GEMINI_API_KEY -> api_key (默认 "")
        GEMINI_BASE_URL -> base_url (默认 DEFAULT_BASE_URL)
        SIDEBYSIDE_TIMEOUT_S -> timeout_s (默认 60)

    Returns:
        ServiceConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("GEMINI_API_KEY"):
        kwargs["api_key"] = SecretStr(val.strip())

    if val := os.environ.get("GEMINI_BASE_URL"):
        kwargs["base_url"] = val

    if val := os.environ.get("SIDEBYSIDE_TIMEOUT_S"):
        try:
            timeout_s = float(val)
            if timeout_s <= 0:
                raise ValueError(val)
            kwargs["timeout_s"] = timeout_s
        except ValueError:
            log.warning(
                "invalid_timeout_config",
                env_var="SIDEBYSIDE_TIMEOUT_S",
                value=val,
                fallback=DEFAULT_TIMEOUT_S,
            )

    return ServiceConfig(**kwargs)


def _get_base_dir() -> Path:
    """获取数据基础目录"""
    return Path(os.environ.get("SIDEBYSIDE_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径（模板、历史、API key 存储）"""
    return os.environ.get(
        "SIDEBYSIDE_DB_PATH",
        str(_get_base_dir() / "sqlite" / "sidebyside.db"),
    )


def get_export_dir() -> Path:
    """获取对比结果导出目录"""
    return Path(
        os.environ.get(
            "SIDEBYSIDE_EXPORT_DIR",
            str(_get_base_dir() / "exports"),
        )
    )
