"""TaskService -- 任务创建/查询/取消/重试业务逻辑

API 侧的写操作与调度器并发修改同一任务行：
同一进程内按 task_id 加锁串行化，遇到乐观锁冲突时重新读取最新版本再试。
"""

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime

import structlog
from pydantic import BaseModel, Field

from reviewengine.core.exceptions import RetryExhausted, TaskVersionConflictError
from reviewengine.core.models import (
    ContractTaskDetails,
    ExecutionStage,
    RetryPolicy,
    ReviewType,
    StageResult,
    Task,
    TaskConfiguration,
    TaskType,
)
from reviewengine.core.store import StoreGroup, create_task_with_details
from reviewengine.engine.contract_tasks import ContractTaskService

log = structlog.get_logger()


class CreateContractReviewRequest(BaseModel):
    """创建合同审查任务请求"""

    task_name: str = Field(min_length=1, max_length=200, description="任务名称")
    task_type: TaskType = Field(default=TaskType.CONTRACT_REVIEW, description="任务类型")
    contract_id: str = Field(min_length=1, description="合同 ID")
    file_uuid: str = Field(min_length=1, description="合同文件引用")
    contract_title: str = Field(default="", description="合同标题")
    review_type: ReviewType = Field(default=ReviewType.FULL_REVIEW, description="审查类型")
    contract_type: str = Field(default="", description="合同类型")
    business_tags: list[str] = Field(default_factory=list, description="业务标签")
    industry: str = Field(default="", description="所属行业")
    retry_policy: RetryPolicy | None = Field(default=None, description="重试策略")
    timeout_seconds: int = Field(default=3600, ge=1, description="超时时间（秒）")
    priority: int = Field(default=0, description="优先级")
    custom_settings: dict = Field(default_factory=dict, description="自定义设置")


class TaskDetail(BaseModel):
    """任务详情：任务 + 合同详情 + 阶段结果"""

    task: Task
    contract: ContractTaskDetails | None = None
    stage_results: list[StageResult] = Field(default_factory=list)


class TaskService:
    """任务业务服务"""

    _task_locks: dict[str, asyncio.Lock] = {}
    _task_locks_guard = asyncio.Lock()
    _max_conflict_retries = 3

    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group
        self._contract_tasks = ContractTaskService(store_group.contract_task_store)

    async def create_contract_review(
        self,
        request: CreateContractReviewRequest,
        actor_id: str,
    ) -> TaskDetail:
        """创建任务与合同详情（单事务）"""
        task = Task.create(
            task_name=request.task_name,
            actor_id=actor_id,
            task_type=request.task_type,
            configuration=TaskConfiguration(
                retry_policy=request.retry_policy,
                timeout_seconds=request.timeout_seconds,
                priority=request.priority,
                custom_settings=request.custom_settings,
            ),
        )
        details = ContractTaskDetails(
            task_id=task.task_id,
            contract_id=request.contract_id,
            file_uuid=request.file_uuid,
            contract_title=request.contract_title,
            review_type=request.review_type,
            contract_type=request.contract_type,
            business_tags=request.business_tags,
            industry=request.industry,
            created_at=task.audit.created_at,
        )
        await create_task_with_details(
            self._stores.conn,
            self._stores.task_store,
            self._stores.contract_task_store,
            task,
            details,
        )
        log.info(
            "contract_review_task_created",
            task_id=task.task_id,
            contract_id=details.contract_id,
            stage=task.current_stage.value,
            actor_id=actor_id,
        )
        return TaskDetail(task=task, contract=details)

    async def get_task(self, task_id: str) -> Task | None:
        """查询任务"""
        return await self._stores.task_store.get_task(task_id)

    async def get_task_detail(self, task_id: str) -> TaskDetail | None:
        """查询任务详情，不存在返回 None"""
        task = await self._stores.task_store.get_task(task_id)
        if task is None:
            return None
        return TaskDetail(
            task=task,
            contract=await self._contract_tasks.find_optional(task_id),
            stage_results=await self._stores.stage_result_store.list_results(task_id),
        )

    async def list_tasks(
        self,
        status: str | None = None,
        stage: str | None = None,
    ) -> list[Task]:
        """查询任务列表"""
        return await self._stores.task_store.list_tasks(status, stage)

    async def get_statistics(self) -> dict:
        """按状态与阶段统计"""
        by_status = await self._stores.task_store.count_by_status()
        tasks = await self._stores.task_store.list_tasks()
        by_stage = {stage.value: 0 for stage in ExecutionStage}
        exhausted = 0
        for task in tasks:
            by_stage[task.current_stage.value] += 1
            exhausted += int(task.retry_exhausted)
        return {
            "total": sum(by_status.values()),
            "by_status": by_status,
            "by_stage": by_stage,
            "retry_exhausted": exhausted,
        }

    async def find_timeout_tasks(self) -> list[Task]:
        """运行超时的任务"""
        return await self._stores.task_store.find_timeout_tasks(datetime.now(UTC))

    async def cancel_task(self, task_id: str, actor_id: str) -> Task | None:
        """取消任务

        Returns:
            更新后的 Task，如果任务不存在返回 None

        Raises:
            InvalidStateTransition: 任务状态不允许取消
        """
        try:
            task = await self._mutate_task(task_id, lambda t: t.cancel(actor_id))
        finally:
            await self._cleanup_task_lock(task_id)
        if task is not None:
            log.info("task_cancelled", task_id=task_id, actor_id=actor_id)
        return task

    async def retry_task(self, task_id: str, actor_id: str) -> Task | None:
        """手动重试失败任务

        Raises:
            InvalidStateTransition: 任务不是 FAILED
            RetryExhausted: 重试次数耗尽（永久失败标记已持久化）
        """
        exhausted: list[RetryExhausted] = []

        def _retry(task: Task) -> None:
            try:
                task.retry(actor_id)
            except RetryExhausted as e:
                # 永久失败标记仍需落盘
                exhausted.append(e)

        task = await self._mutate_task(task_id, _retry)
        if exhausted:
            await self._cleanup_task_lock(task_id)
            raise exhausted[0]
        if task is not None:
            log.info(
                "task_retried_manually",
                task_id=task_id,
                retry_count=task.retry_count,
                actor_id=actor_id,
            )
        return task

    async def delete_task(self, task_id: str) -> bool:
        """删除任务及其合同详情、阶段结果"""
        lock = await self._get_task_lock(task_id)
        async with lock:
            deleted = await self._stores.task_store.delete_task(task_id)
        await self._cleanup_task_lock(task_id)
        if deleted:
            log.info("task_deleted", task_id=task_id)
        return deleted

    async def _mutate_task(
        self,
        task_id: str,
        mutate: Callable[[Task], None],
    ) -> Task | None:
        """读取最新版本 -> 修改 -> 乐观锁保存；冲突时重试"""
        lock = await self._get_task_lock(task_id)
        async with lock:
            for attempt in range(1, self._max_conflict_retries + 1):
                task = await self._stores.task_store.get_task(task_id)
                if task is None:
                    return None
                mutate(task)
                try:
                    return await self._stores.task_store.save_task(task)
                except TaskVersionConflictError:
                    log.warning(
                        "task_version_conflict_retry",
                        task_id=task_id,
                        attempt=attempt,
                    )
                    if attempt >= self._max_conflict_retries:
                        raise
        return None

    @classmethod
    async def _get_task_lock(cls, task_id: str) -> asyncio.Lock:
        """获取 task 级别锁，序列化同一任务的 API 写操作。"""
        async with cls._task_locks_guard:
            lock = cls._task_locks.get(task_id)
            if lock is None:
                lock = asyncio.Lock()
                cls._task_locks[task_id] = lock
            return lock

    @classmethod
    async def _cleanup_task_lock(cls, task_id: str) -> None:
        """任务取消、永久失败或删除后清理 lock，避免全局字典无限增长。"""
        async with cls._task_locks_guard:
            lock = cls._task_locks.get(task_id)
            if lock is not None and not lock.locked():
                cls._task_locks.pop(task_id, None)
