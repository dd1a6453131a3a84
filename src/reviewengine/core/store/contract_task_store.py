"""ContractTaskStore SQLite 实现

存储层不保证 task_id 唯一，按 task_id 查询返回全部匹配行，由服务层校验 1:1。
"""

import json
from datetime import datetime

import aiosqlite

from ..models.contract_task import ContractTaskDetails
from .task_store import dt_to_str


class SqliteContractTaskStore:
    """ContractTaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def insert_details(self, details: ContractTaskDetails) -> None:
        """插入合同详情（不提交，由调用方控制事务）"""
        await self._conn.execute(
            """
            INSERT INTO contract_tasks (task_id, contract_id, file_uuid, contract_title,
                                        review_type, contract_type, business_tags,
                                        industry, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                details.task_id,
                details.contract_id,
                details.file_uuid,
                details.contract_title,
                details.review_type.value,
                details.contract_type,
                json.dumps(details.business_tags, ensure_ascii=False),
                details.industry,
                dt_to_str(details.created_at),
            ),
        )

    async def find_by_task_id(self, task_id: str) -> list[ContractTaskDetails]:
        """查询任务关联的全部合同详情行"""
        cursor = await self._conn.execute(
            """
            SELECT task_id, contract_id, file_uuid, contract_title, review_type,
                   contract_type, business_tags, industry, created_at
            FROM contract_tasks WHERE task_id = ? ORDER BY id
            """,
            (task_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_details(row) for row in rows]

    @staticmethod
    def _row_to_details(row: aiosqlite.Row) -> ContractTaskDetails:
        """将数据库行转换为 ContractTaskDetails 模型"""
        return ContractTaskDetails(
            task_id=row[0],
            contract_id=row[1],
            file_uuid=row[2],
            contract_title=row[3],
            review_type=row[4],
            contract_type=row[5],
            business_tags=json.loads(row[6]),
            industry=row[7],
            created_at=datetime.fromisoformat(row[8]),
        )
