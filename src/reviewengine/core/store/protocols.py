"""Store Protocol 接口定义

定义 TaskStore、ContractTaskStore、StageResultStore 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
执行器与聚合器只依赖这些接口，测试可以替换为内存实现或 spy。
"""

from datetime import datetime
from typing import Protocol

from ..models.contract_task import ContractTaskDetails
from ..models.stage_result import StageResult
from ..models.task import Task


class TaskStore(Protocol):
    """Task 存储接口"""

    async def create_task(self, task: Task) -> None:
        """插入任务记录"""
        ...

    async def save_task(self, task: Task) -> Task:
        """乐观锁保存；版本不匹配时抛出 TaskVersionConflictError"""
        ...

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        ...

    async def list_tasks(
        self,
        status: str | None = None,
        stage: str | None = None,
    ) -> list[Task]:
        """查询任务列表，支持按状态/阶段筛选"""
        ...

    async def find_non_final_stage_tasks(self) -> list[Task]:
        """未到终点阶段的在途任务"""
        ...

    async def find_retry_candidates(self, now: datetime) -> list[Task]:
        """到期可重试的 FAILED 任务"""
        ...

    async def find_timeout_tasks(self, now: datetime) -> list[Task]:
        """运行超时的任务"""
        ...

    async def count_by_status(self) -> dict[str, int]:
        """按状态统计"""
        ...

    async def delete_task(self, task_id: str) -> bool:
        """删除任务"""
        ...


class ContractTaskStore(Protocol):
    """合同详情存储接口（不保证 task_id 唯一）"""

    async def insert_details(self, details: ContractTaskDetails) -> None:
        """插入合同详情"""
        ...

    async def find_by_task_id(self, task_id: str) -> list[ContractTaskDetails]:
        """查询任务关联的全部合同详情"""
        ...


class StageResultStore(Protocol):
    """阶段结果存储接口"""

    async def save_result(self, result: StageResult) -> None:
        """写入或覆盖阶段结果"""
        ...

    async def get_result(self, task_id: str, stage: str) -> StageResult | None:
        """查询指定阶段结果"""
        ...

    async def list_results(self, task_id: str) -> list[StageResult]:
        """查询任务全部阶段结果"""
        ...
