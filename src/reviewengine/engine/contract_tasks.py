"""ContractTaskService -- 合同详情查询与 1:1 约束校验

存储层允许同一 task_id 存在多行合同详情；本服务是唯一的读取入口，
发现缺失或重复时抛出领域异常。
"""

from reviewengine.core.exceptions import (
    ContractTaskNotFoundError,
    DuplicateContractTaskError,
)
from reviewengine.core.models import ContractTaskDetails
from reviewengine.core.store.protocols import ContractTaskStore


class ContractTaskService:
    """合同详情服务"""

    def __init__(self, contract_task_store: ContractTaskStore) -> None:
        self._store = contract_task_store

    async def find_optional(self, task_id: str) -> ContractTaskDetails | None:
        """查询合同详情，不存在返回 None

        Raises:
            DuplicateContractTaskError: 同一任务关联了多条合同详情
        """
        rows = await self._store.find_by_task_id(task_id)
        if len(rows) > 1:
            raise DuplicateContractTaskError(task_id, len(rows))
        return rows[0] if rows else None

    async def get_details(self, task_id: str) -> ContractTaskDetails:
        """查询合同详情

        Raises:
            ContractTaskNotFoundError: 任务没有合同详情
            DuplicateContractTaskError: 同一任务关联了多条合同详情
        """
        details = await self.find_optional(task_id)
        if details is None:
            raise ContractTaskNotFoundError(task_id)
        return details
