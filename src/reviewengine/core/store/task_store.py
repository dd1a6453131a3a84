"""TaskStore SQLite 实现

save_task 使用乐观锁：UPDATE ... WHERE version = ?，0 行受影响即版本冲突。
所有 Store 共享同一连接，写操作（执行到提交/回滚）在 write_lock 内完成，
避免一个写入者的回滚撤销另一个写入者尚未提交的语句。
"""

import asyncio
from datetime import UTC, datetime

import aiosqlite

from ..exceptions import TaskVersionConflictError
from ..models.enums import ExecutionStage, TaskStatus
from ..models.task import AuditInfo, Task, TaskConfiguration

_TASK_COLUMNS = """
    task_id, task_name, task_type, status, current_stage, retry_count,
    configuration, error_message, started_at, completed_at, next_retry_at,
    retry_exhausted, created_by, created_at, updated_by, updated_at, version
"""

# 阶段 sweep 关注的状态：COMPLETED 表示等待下一阶段接手
_SWEEPABLE_STATUSES = (
    TaskStatus.PENDING.value,
    TaskStatus.RUNNING.value,
    TaskStatus.COMPLETED.value,
)


def dt_to_str(value: datetime | None) -> str | None:
    """统一为 UTC 微秒精度 ISO 字符串，保证 SQL 中字符串比较与时间顺序一致"""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def str_to_dt(value: str | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromisoformat(value)


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        self._conn = conn
        self.write_lock = write_lock or asyncio.Lock()

    async def create_task(self, task: Task) -> None:
        """插入任务记录（不提交，由调用方控制事务）"""
        await self._conn.execute(
            f"INSERT INTO tasks ({_TASK_COLUMNS}) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                task.task_id,
                task.task_name,
                task.task_type.value,
                task.status.value,
                task.current_stage.value,
                task.retry_count,
                task.configuration.model_dump_json(),
                task.error_message,
                dt_to_str(task.started_at),
                dt_to_str(task.completed_at),
                dt_to_str(task.next_retry_at),
                int(task.retry_exhausted),
                task.audit.created_by,
                dt_to_str(task.audit.created_at),
                task.audit.updated_by,
                dt_to_str(task.audit.updated_at),
                task.audit.version,
            ),
        )

    async def save_task(self, task: Task) -> Task:
        """乐观锁保存并提交

        成功后 task.audit.version 自增。

        Raises:
            TaskVersionConflictError: 数据库中的版本已被其他写入者更新
        """
        expected_version = task.audit.version
        async with self.write_lock:
            try:
                cursor = await self._conn.execute(
                    """
                    UPDATE tasks
                    SET task_name = ?, status = ?, current_stage = ?, retry_count = ?,
                        configuration = ?, error_message = ?, started_at = ?,
                        completed_at = ?, next_retry_at = ?, retry_exhausted = ?,
                        updated_by = ?, updated_at = ?, version = version + 1
                    WHERE task_id = ? AND version = ?
                    """,
                    (
                        task.task_name,
                        task.status.value,
                        task.current_stage.value,
                        task.retry_count,
                        task.configuration.model_dump_json(),
                        task.error_message,
                        dt_to_str(task.started_at),
                        dt_to_str(task.completed_at),
                        dt_to_str(task.next_retry_at),
                        int(task.retry_exhausted),
                        task.audit.updated_by,
                        dt_to_str(task.audit.updated_at),
                        task.task_id,
                        expected_version,
                    ),
                )
                if cursor.rowcount > 0:
                    await self._conn.commit()
            except Exception:
                await self._conn.rollback()
                raise

        # 0 行受影响时未写入任何内容，无需回滚
        if cursor.rowcount == 0:
            raise TaskVersionConflictError(task.task_id, expected_version)

        task.audit.version = expected_version + 1
        return task

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        cursor = await self._conn.execute(
            f"SELECT {_TASK_COLUMNS} FROM tasks WHERE task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def list_tasks(
        self,
        status: str | None = None,
        stage: str | None = None,
    ) -> list[Task]:
        """查询任务列表，支持按状态/阶段筛选，按 created_at 倒序"""
        clauses: list[str] = []
        params: list[str] = []
        if status:
            clauses.append("status = ?")
            params.append(status)
        if stage:
            clauses.append("current_stage = ?")
            params.append(stage)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        cursor = await self._conn.execute(
            f"SELECT {_TASK_COLUMNS} FROM tasks {where} ORDER BY created_at DESC",
            params,
        )
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def find_non_final_stage_tasks(self) -> list[Task]:
        """阶段 sweep 的候选：未到终点阶段且处于 PENDING/RUNNING/COMPLETED"""
        cursor = await self._conn.execute(
            f"""
            SELECT {_TASK_COLUMNS} FROM tasks
            WHERE current_stage != ? AND status IN (?, ?, ?)
            ORDER BY created_at
            """,
            (ExecutionStage.REVIEW_COMPLETED.value, *_SWEEPABLE_STATUSES),
        )
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def find_retry_candidates(self, now: datetime) -> list[Task]:
        """重试 sweep 的候选：FAILED、未永久失败、next_retry_at 为空或已到期"""
        cursor = await self._conn.execute(
            f"""
            SELECT {_TASK_COLUMNS} FROM tasks
            WHERE status = ? AND retry_exhausted = 0
              AND (next_retry_at IS NULL OR next_retry_at <= ?)
            ORDER BY updated_at
            """,
            (TaskStatus.FAILED.value, dt_to_str(now)),
        )
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def find_timeout_tasks(self, now: datetime) -> list[Task]:
        """RUNNING 且已超过 timeout_seconds 的任务（仅观测用）"""
        running = await self.list_tasks(status=TaskStatus.RUNNING.value)
        return [task for task in running if task.is_timeout(now)]

    async def count_by_status(self) -> dict[str, int]:
        """按状态统计任务数量"""
        cursor = await self._conn.execute(
            "SELECT status, COUNT(*) FROM tasks GROUP BY status"
        )
        rows = await cursor.fetchall()
        counts = {status.value: 0 for status in TaskStatus}
        for row in rows:
            counts[row[0]] = row[1]
        return counts

    async def delete_task(self, task_id: str) -> bool:
        """删除任务（级联删除合同详情和阶段结果）"""
        async with self.write_lock:
            try:
                cursor = await self._conn.execute(
                    "DELETE FROM tasks WHERE task_id = ?",
                    (task_id,),
                )
                await self._conn.commit()
            except Exception:
                await self._conn.rollback()
                raise
        return cursor.rowcount > 0

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        return Task(
            task_id=row[0],
            task_name=row[1],
            task_type=row[2],
            status=row[3],
            current_stage=row[4],
            retry_count=row[5],
            configuration=TaskConfiguration.model_validate_json(row[6]),
            error_message=row[7],
            started_at=str_to_dt(row[8]),
            completed_at=str_to_dt(row[9]),
            next_retry_at=str_to_dt(row[10]),
            retry_exhausted=bool(row[11]),
            audit=AuditInfo(
                created_by=row[12],
                created_at=datetime.fromisoformat(row[13]),
                updated_by=row[14],
                updated_at=datetime.fromisoformat(row[15]),
                version=row[16],
            ),
        )
