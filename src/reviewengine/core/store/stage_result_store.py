"""StageResultStore SQLite 实现

按 (task_id, stage) 存储，阶段重跑时覆盖旧结果。
"""

import asyncio
import json

import aiosqlite

from ..models.stage_result import StageResult
from .task_store import dt_to_str, str_to_dt


class SqliteStageResultStore:
    """StageResultStore 的 SQLite 实现"""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        self._conn = conn
        self._write_lock = write_lock or asyncio.Lock()

    async def save_result(self, result: StageResult) -> None:
        """写入或覆盖阶段结果并提交"""
        async with self._write_lock:
            try:
                await self._conn.execute(
                    """
                    INSERT OR REPLACE INTO stage_results (task_id, stage, success, output,
                                                          error_message, started_at,
                                                          ended_at, data)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        result.task_id,
                        result.stage.value,
                        int(result.success),
                        result.output,
                        result.error_message,
                        dt_to_str(result.started_at),
                        dt_to_str(result.ended_at),
                        json.dumps(result.data, ensure_ascii=False, default=str),
                    ),
                )
                await self._conn.commit()
            except Exception:
                await self._conn.rollback()
                raise

    async def get_result(self, task_id: str, stage: str) -> StageResult | None:
        """查询指定阶段的结果"""
        cursor = await self._conn.execute(
            """
            SELECT task_id, stage, success, output, error_message, started_at,
                   ended_at, data
            FROM stage_results WHERE task_id = ? AND stage = ?
            """,
            (task_id, stage),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_result(row)

    async def list_results(self, task_id: str) -> list[StageResult]:
        """查询任务的全部阶段结果，按结束时间排序"""
        cursor = await self._conn.execute(
            """
            SELECT task_id, stage, success, output, error_message, started_at,
                   ended_at, data
            FROM stage_results WHERE task_id = ? ORDER BY ended_at
            """,
            (task_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_result(row) for row in rows]

    @staticmethod
    def _row_to_result(row: aiosqlite.Row) -> StageResult:
        """将数据库行转换为 StageResult 模型"""
        return StageResult(
            task_id=row[0],
            stage=row[1],
            success=bool(row[2]),
            output=row[3],
            error_message=row[4],
            started_at=str_to_dt(row[5]),
            ended_at=str_to_dt(row[6]),
            data=json.loads(row[7]),
        )
