"""PromptStore -- API key、prompt 模板、历史记录、编辑器状态的持久化

批量调用引擎不依赖此模块；它只是调用方的 prompt/密钥来源。
读取失败（缺失、损坏）时返回默认值，不中断调用方流程。
"""

import json
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

import structlog
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError
from ulid import ULID

from ..config import HISTORY_LIMIT
from ..exceptions import ValidationError
from ..models import now_ms
from .kv_store import SqliteKeyValueStore

log = structlog.get_logger()

API_KEY_KEY = "gemini-api-key"
TEMPLATES_KEY = "gemini-prompt-templates"
HISTORY_KEY = "gemini-prompt-history"
COMPOSER_STATE_KEY = "gemini-composer-state"

TEMPLATE_EXPORT_VERSION = "1.0"
UNCATEGORIZED = "Other"

# update_template 可修改的字段
_EDITABLE_TEMPLATE_FIELDS = frozenset({"name", "category", "content", "description", "tags"})


class PromptTemplate(BaseModel):
    """Prompt 模板"""

    id: str = Field(description="模板 ID（ULID）")
    name: str
    category: str = ""
    content: str
    description: str | None = None
    tags: list[str] | None = None
    created_at: int = Field(description="创建时间（纪元毫秒）")
    updated_at: int = Field(description="更新时间（纪元毫秒）")


class ComposerState(BaseModel):
    """Prompt 编辑器界面状态"""

    content: str = ""
    is_visible: bool = False
    width: int = 350


class PromptStore:
    """Prompt 相关数据的存取接口，基于键值存储"""

    def __init__(self, kv: SqliteKeyValueStore) -> None:
        self._kv = kv

    # ============================================================
    # API key
    # ============================================================

    async def save_api_key(self, api_key: str) -> None:
        """保存 API key（去除首尾空白）；空值不保存"""
        if not api_key or not api_key.strip():
            log.warning("empty_api_key_not_saved")
            return
        await self._kv.put(API_KEY_KEY, api_key.strip())

    async def load_api_key(self) -> str | None:
        value = await self._kv.get(API_KEY_KEY)
        if isinstance(value, str) and value.strip():
            return value
        return None

    async def clear_api_key(self) -> None:
        await self._kv.delete(API_KEY_KEY)

    # ============================================================
    # 模板
    # ============================================================

    async def load_templates(self) -> list[PromptTemplate]:
        raw = await self._kv.get(TEMPLATES_KEY)
        if not isinstance(raw, list):
            return []
        try:
            return [PromptTemplate.model_validate(item) for item in raw]
        except PydanticValidationError as e:
            log.warning("templates_load_failed", error=str(e))
            return []

    async def save_templates(self, templates: Iterable[PromptTemplate]) -> None:
        await self._kv.put(TEMPLATES_KEY, [t.model_dump() for t in templates])

    async def add_template(
        self,
        name: str,
        category: str,
        content: str,
        description: str | None = None,
        tags: list[str] | None = None,
    ) -> PromptTemplate:
        """新增模板，自动生成 id 与时间戳"""
        now = now_ms()
        template = PromptTemplate(
            id=str(ULID()),
            name=name,
            category=category,
            content=content,
            description=description,
            tags=tags,
            created_at=now,
            updated_at=now,
        )
        templates = await self.load_templates()
        templates.append(template)
        await self.save_templates(templates)
        return template

    async def update_template(self, template_id: str, **updates: Any) -> PromptTemplate | None:
        """更新模板字段并刷新 updated_at；模板不存在时不做任何修改，返回 None

        Raises:
            ValueError: updates 包含不可编辑的字段
        """
        unknown = set(updates) - _EDITABLE_TEMPLATE_FIELDS
        if unknown:
            raise ValueError(f"不可编辑的模板字段: {sorted(unknown)}")

        templates = await self.load_templates()
        for index, template in enumerate(templates):
            if template.id == template_id:
                updated = PromptTemplate.model_validate(
                    {**template.model_dump(), **updates, "updated_at": now_ms()}
                )
                templates[index] = updated
                await self.save_templates(templates)
                return updated
        return None

    async def delete_template(self, template_id: str) -> None:
        templates = await self.load_templates()
        await self.save_templates(t for t in templates if t.id != template_id)

    # ============================================================
    # 历史记录
    # ============================================================

    async def load_history(self) -> list[str]:
        raw = await self._kv.get(HISTORY_KEY)
        if not isinstance(raw, list):
            return []
        return [p for p in raw if isinstance(p, str)]

    async def save_history(self, history: list[str]) -> None:
        """保存历史（最新在前），最多保留 HISTORY_LIMIT 条"""
        await self._kv.put(HISTORY_KEY, history[:HISTORY_LIMIT])

    async def add_to_history(self, prompt: str) -> None:
        """将 prompt 置于历史首位；重复项移除，空白 prompt 忽略"""
        if not prompt.strip():
            return
        history = await self.load_history()
        await self.save_history([prompt, *(p for p in history if p != prompt)])

    # ============================================================
    # 编辑器状态
    # ============================================================

    async def save_composer_state(self, state: ComposerState) -> None:
        await self._kv.put(COMPOSER_STATE_KEY, state.model_dump())

    async def load_composer_state(self) -> ComposerState:
        raw = await self._kv.get(COMPOSER_STATE_KEY)
        if not isinstance(raw, dict):
            return ComposerState()
        try:
            return ComposerState.model_validate(raw)
        except PydanticValidationError as e:
            log.warning("composer_state_load_failed", error=str(e))
            return ComposerState()


# ============================================================
# 纯函数工具
# ============================================================


def group_templates_by_category(
    templates: Iterable[PromptTemplate],
) -> dict[str, list[PromptTemplate]]:
    """按 category 分组，空 category 归入 Other"""
    grouped: dict[str, list[PromptTemplate]] = {}
    for template in templates:
        grouped.setdefault(template.category or UNCATEGORIZED, []).append(template)
    return grouped


def search_templates(templates: Iterable[PromptTemplate], query: str) -> list[PromptTemplate]:
    """在 name/content/description/tags 中不区分大小写搜索"""
    needle = query.lower()

    def matches(t: PromptTemplate) -> bool:
        return (
            needle in t.name.lower()
            or needle in t.content.lower()
            or (t.description is not None and needle in t.description.lower())
            or any(needle in tag.lower() for tag in t.tags or [])
        )

    return [t for t in templates if matches(t)]


def export_templates_document(
    templates: Iterable[PromptTemplate],
    exported_at: datetime | None = None,
) -> dict:
    """构造模板导出文档 {version, exported_at, templates}"""
    exported_at = exported_at or datetime.now(UTC)
    return {
        "version": TEMPLATE_EXPORT_VERSION,
        "exported_at": exported_at.isoformat(),
        "templates": [t.model_dump() for t in templates],
    }


def parse_templates_document(text: str) -> list[PromptTemplate]:
    """解析模板导出文档

    Raises:
        ValidationError: JSON 无效、缺少 templates 列表或条目字段不合法
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError("Invalid template file format") from e

    templates = data.get("templates") if isinstance(data, dict) else None
    if not isinstance(templates, list):
        raise ValidationError("Invalid template file format")

    try:
        return [PromptTemplate.model_validate(item) for item in templates]
    except PydanticValidationError as e:
        raise ValidationError("Invalid template file format") from e
