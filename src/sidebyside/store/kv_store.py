"""SqliteKeyValueStore -- JSON 值的键值存储

put/get/delete 三个操作；值以 JSON 文本保存，每次写入后提交。
"""

import json
from datetime import UTC, datetime
from typing import Any

import aiosqlite
import structlog

log = structlog.get_logger()


class SqliteKeyValueStore:
    """键值存储的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def get(self, key: str) -> Any | None:
        """读取并解析 JSON 值；不存在或内容损坏时返回 None"""
        cursor = await self._conn.execute(
            "SELECT value FROM kv_store WHERE key = ?",
            (key,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as e:
            log.warning("kv_value_corrupted", key=key, error=str(e))
            return None

    async def put(self, key: str, value: Any) -> None:
        await self._conn.execute(
            """
            INSERT INTO kv_store (key, value, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
            """,
            (
                key,
                json.dumps(value, ensure_ascii=False),
                datetime.now(UTC).isoformat(),
            ),
        )
        await self._conn.commit()

    async def delete(self, key: str) -> None:
        await self._conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        await self._conn.commit()
