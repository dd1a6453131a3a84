"""ContractReviewAggregator -- 阶段聚合调度核心

两个入口由调度器按各自固定间隔调用：
- process_tasks_by_stage: 查询未到终点阶段的在途任务，按持久化的 current_stage 分组，
  分发给注册的阶段执行器；未注册的阶段以 debug 日志跳过；单个阶段批次失败不影响其他阶段
- retry_failed_tasks: 复活到期的 FAILED 任务；重试次数耗尽的任务标记为永久失败

retry_count 只由 Task.retry() 维护。
"""

from collections import defaultdict
from datetime import UTC, datetime

import structlog
from pydantic import BaseModel, Field

from reviewengine.core.config import SYSTEM_ACTOR
from reviewengine.core.exceptions import (
    InvalidStateTransition,
    TaskVersionConflictError,
)
from reviewengine.core.models import ExecutionStage, Task
from reviewengine.core.store.protocols import TaskStore

from .executors.base import BatchReport, StageExecutor

log = structlog.get_logger()


class SweepReport(BaseModel):
    """一次阶段 sweep 的汇总"""

    task_count: int = Field(default=0, description="本轮查询到的在途任务数")
    batches: list[BatchReport] = Field(default_factory=list, description="各阶段批次汇总")
    skipped_stages: list[ExecutionStage] = Field(
        default_factory=list, description="无注册执行器而跳过的阶段"
    )
    failed_stages: list[ExecutionStage] = Field(
        default_factory=list, description="批次处理异常的阶段"
    )


class RetrySweepReport(BaseModel):
    """一次重试 sweep 的汇总"""

    candidates: int = Field(default=0, description="候选任务数")
    retried: int = Field(default=0, description="已重置为 PENDING 的任务数")
    exhausted: int = Field(default=0, description="标记为永久失败的任务数")
    skipped: int = Field(default=0, description="版本冲突跳过的任务数")
    deferred: int = Field(default=0, description="异常后推迟重试的任务数")


class ContractReviewAggregator:
    """合同审查任务聚合处理器"""

    def __init__(
        self,
        task_store: TaskStore,
        executors: list[StageExecutor] | None = None,
        actor_id: str = SYSTEM_ACTOR,
    ) -> None:
        self._task_store = task_store
        self._executors: dict[ExecutionStage, StageExecutor] = {}
        self._actor_id = actor_id
        for executor in executors or []:
            self.register_executor(executor)

    def register_executor(self, executor: StageExecutor) -> None:
        """注册阶段执行器，同一阶段后注册的覆盖先注册的"""
        self._executors[executor.stage] = executor

    @property
    def registered_stages(self) -> list[ExecutionStage]:
        return list(self._executors)

    async def process_tasks_by_stage(self) -> SweepReport:
        """按阶段聚合并分发在途任务"""
        report = SweepReport()
        tasks = await self._task_store.find_non_final_stage_tasks()
        if not tasks:
            log.debug("stage_sweep_no_tasks")
            return report

        report.task_count = len(tasks)
        buckets: dict[ExecutionStage, list[Task]] = defaultdict(list)
        for task in tasks:
            buckets[task.current_stage].append(task)

        log.info(
            "stage_sweep_started",
            task_count=len(tasks),
            stages={stage.value: len(bucket) for stage, bucket in buckets.items()},
        )

        for stage, bucket in buckets.items():
            executor = self._executors.get(stage)
            if executor is None:
                log.debug("stage_not_implemented_skip", stage=stage.value, task_count=len(bucket))
                report.skipped_stages.append(stage)
                continue
            try:
                report.batches.append(await executor.process_batch(bucket))
            except Exception as e:
                report.failed_stages.append(stage)
                log.error(
                    "stage_batch_failed",
                    stage=stage.value,
                    task_count=len(bucket),
                    error=str(e),
                    error_type=type(e).__name__,
                )

        log.info(
            "stage_sweep_completed",
            task_count=report.task_count,
            skipped_stages=[stage.value for stage in report.skipped_stages],
            failed_stages=[stage.value for stage in report.failed_stages],
        )
        return report

    async def retry_failed_tasks(self, now: datetime | None = None) -> RetrySweepReport:
        """复活到期的失败任务"""
        now = now or datetime.now(UTC)
        report = RetrySweepReport()
        tasks = await self._task_store.find_retry_candidates(now)
        report.candidates = len(tasks)
        if not tasks:
            log.debug("retry_sweep_no_tasks")
            return report

        log.info("retry_sweep_started", task_count=len(tasks))

        for task in tasks:
            try:
                if not task.can_retry():
                    task.mark_retry_exhausted(self._actor_id)
                    await self._task_store.save_task(task)
                    report.exhausted += 1
                    log.warning(
                        "task_retry_exhausted",
                        task_id=task.task_id,
                        retry_count=task.retry_count,
                        max_retries=task.max_retries,
                    )
                    continue

                task.retry(self._actor_id)
                await self._task_store.save_task(task)
                report.retried += 1
                log.info(
                    "task_retried",
                    task_id=task.task_id,
                    stage=task.current_stage.value,
                    retry_count=task.retry_count,
                )
            except (TaskVersionConflictError, InvalidStateTransition) as e:
                report.skipped += 1
                log.warning("task_retry_skipped", task_id=task.task_id, reason=str(e))
            except Exception as e:
                report.deferred += 1
                log.error(
                    "task_retry_failed",
                    task_id=task.task_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                await self._defer_retry(task.task_id, now)

        log.info(
            "retry_sweep_completed",
            candidates=report.candidates,
            retried=report.retried,
            exhausted=report.exhausted,
            skipped=report.skipped,
            deferred=report.deferred,
        )
        return report

    async def _defer_retry(self, task_id: str, now: datetime) -> None:
        """按重试策略推迟下一次重试（重新读取最新版本后写入 next_retry_at）"""
        try:
            fresh = await self._task_store.get_task(task_id)
            if fresh is None:
                return
            fresh.schedule_next_retry(self._actor_id, now)
            await self._task_store.save_task(fresh)
        except Exception as e:
            log.error("task_retry_defer_failed", task_id=task_id, error=str(e))
