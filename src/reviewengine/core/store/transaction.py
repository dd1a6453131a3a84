"""Task + ContractTaskDetails 原子创建

在同一 SQLite 事务内写入任务与合同详情，失败时整体回滚。
整个事务持有 task_store.write_lock，与其他写入者串行。
"""

import aiosqlite

from ..models.contract_task import ContractTaskDetails
from ..models.task import Task
from .contract_task_store import SqliteContractTaskStore
from .task_store import SqliteTaskStore


async def create_task_with_details(
    conn: aiosqlite.Connection,
    task_store: SqliteTaskStore,
    contract_task_store: SqliteContractTaskStore,
    task: Task,
    details: ContractTaskDetails | None = None,
) -> None:
    """在同一事务内原子写入任务及其合同详情

    Args:
        conn: 数据库连接（需在同一连接上操作以保证事务性）
        task_store: TaskStore 实例
        contract_task_store: ContractTaskStore 实例
        task: 新任务
        details: 合同详情，非合同类任务可为 None

    Raises:
        Exception: 如果事务提交失败，自动回滚
    """
    async with task_store.write_lock:
        try:
            await task_store.create_task(task)
            if details is not None:
                await contract_task_store.insert_details(details)
            await conn.commit()
        except Exception:
            await conn.rollback()
            raise
