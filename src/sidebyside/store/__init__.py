"""sidebyside Store -- SQLite 持久化实现

提供工厂函数创建共享数据库连接的 Store 实例组。
"""

from pathlib import Path

import aiosqlite

from .kv_store import SqliteKeyValueStore
from .prompt_store import (
    ComposerState,
    PromptStore,
    PromptTemplate,
    export_templates_document,
    group_templates_by_category,
    parse_templates_document,
    search_templates,
)
from .sqlite_init import init_db


class StoreHandle:
    """Store 实例组 -- 共享同一个数据库连接"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn
        self.kv = SqliteKeyValueStore(conn)
        self.prompts = PromptStore(self.kv)

    async def close(self) -> None:
        await self.conn.close()


async def open_prompt_store(db_path: str | Path) -> StoreHandle:
    """创建 Store 实例组

    Args:
        db_path: SQLite 数据库文件路径（目录不存在时自动创建）

    Returns:
        StoreHandle 实例，使用完毕后调用 close()
    """
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(str(db_path))
    await init_db(conn)

    return StoreHandle(conn)


__all__ = [
    "StoreHandle",
    "open_prompt_store",
    "init_db",
    "SqliteKeyValueStore",
    "PromptStore",
    "PromptTemplate",
    "ComposerState",
    "group_templates_by_category",
    "search_templates",
    "export_templates_document",
    "parse_templates_document",
]
