"""StageExecutor -- 阶段执行器公共模板

每个任务独立处理，一个任务失败不影响同批其他任务：
1. enter_stage（RUNNING）并持久化
2. 读取合同详情（及前置阶段结果），调用阶段协作方
3. 成功：尽力写入 StageResult，complete()（同时推进阶段）并持久化；
   协作方返回 done=False 时任务保持 RUNNING，下一轮继续轮询
4. 第 2 步抛出的任何异常：fail() 记录原因并持久化，计入失败数

业务结论（高风险、不合规）属于成功。版本冲突和过期状态属于瞬时情况，本轮跳过。
process_batch 永不抛出，只记录汇总计数。
"""

from abc import ABC, abstractmethod
from datetime import UTC, datetime
from enum import StrEnum

import structlog
from pydantic import BaseModel, Field

from reviewengine.collaborators.models import StageOutcome
from reviewengine.core.config import STAGE_OUTPUT_MAX_LENGTH, SYSTEM_ACTOR
from reviewengine.core.exceptions import (
    InvalidStateTransition,
    MissingStageResultError,
    TaskVersionConflictError,
)
from reviewengine.core.models import (
    ContractTaskDetails,
    ExecutionStage,
    StageResult,
    Task,
)
from reviewengine.core.store.protocols import StageResultStore, TaskStore

from ..contract_tasks import ContractTaskService

log = structlog.get_logger()


class TaskOutcome(StrEnum):
    """单个任务在本轮的处理结果"""

    ADVANCED = "advanced"
    IN_PROGRESS = "in_progress"
    FAILED = "failed"
    SKIPPED = "skipped"


class BatchReport(BaseModel):
    """一个阶段批次的处理汇总"""

    stage: ExecutionStage = Field(description="阶段")
    advanced: int = Field(default=0, description="完成并推进到下一阶段的任务数")
    in_progress: int = Field(default=0, description="外部工作进行中、保持 RUNNING 的任务数")
    failed: int = Field(default=0, description="程序失败、标记为 FAILED 的任务数")
    skipped: int = Field(default=0, description="版本冲突或状态已变化、本轮跳过的任务数")

    @property
    def succeeded(self) -> int:
        return self.advanced + self.in_progress

    @property
    def total(self) -> int:
        return self.advanced + self.in_progress + self.failed + self.skipped

    def record(self, outcome: TaskOutcome) -> None:
        if outcome == TaskOutcome.ADVANCED:
            self.advanced += 1
        elif outcome == TaskOutcome.IN_PROGRESS:
            self.in_progress += 1
        elif outcome == TaskOutcome.FAILED:
            self.failed += 1
        else:
            self.skipped += 1


class StageExecutor(ABC):
    """阶段执行器基类，子类只实现 _perform_stage_work"""

    stage: ExecutionStage
    display_name: str = ""

    def __init__(
        self,
        task_store: TaskStore,
        stage_result_store: StageResultStore,
        contract_tasks: ContractTaskService,
        actor_id: str = SYSTEM_ACTOR,
    ) -> None:
        self._task_store = task_store
        self._stage_result_store = stage_result_store
        self._contract_tasks = contract_tasks
        self._actor_id = actor_id

    async def process_batch(self, tasks: list[Task]) -> BatchReport:
        """处理一批处于本阶段的任务"""
        report = BatchReport(stage=self.stage)
        log.info("stage_batch_started", stage=self.stage.value, task_count=len(tasks))

        for task in tasks:
            try:
                outcome = await self._process_single_task(task)
            except (TaskVersionConflictError, InvalidStateTransition) as e:
                # 其他写入者已修改该任务，留给下一轮按最新状态处理
                outcome = TaskOutcome.SKIPPED
                log.warning(
                    "stage_task_skipped",
                    task_id=task.task_id,
                    stage=self.stage.value,
                    reason=str(e),
                )
            except Exception as e:
                outcome = TaskOutcome.FAILED
                await self._handle_task_execution_failure(task, e)
            report.record(outcome)

        log.info(
            "stage_batch_completed",
            stage=self.stage.value,
            advanced=report.advanced,
            in_progress=report.in_progress,
            failed=report.failed,
            skipped=report.skipped,
        )
        return report

    async def _process_single_task(self, task: Task) -> TaskOutcome:
        if task.enter_stage(self._actor_id):
            await self._task_store.save_task(task)
            log.debug("stage_task_started", task_id=task.task_id, stage=self.stage.value)

        details = await self._contract_tasks.get_details(task.task_id)
        outcome = await self._perform_stage_work(task, details)

        if not outcome.done:
            log.info(
                "stage_task_in_progress",
                task_id=task.task_id,
                stage=self.stage.value,
                output=outcome.output,
            )
            return TaskOutcome.IN_PROGRESS

        await self._save_stage_result(
            StageResult(
                task_id=task.task_id,
                stage=self.stage,
                success=True,
                output=outcome.output[:STAGE_OUTPUT_MAX_LENGTH],
                started_at=task.started_at,
                ended_at=datetime.now(UTC),
                data=outcome.data,
            )
        )
        task.complete(self._actor_id)
        await self._task_store.save_task(task)

        log.info(
            "stage_task_advanced",
            task_id=task.task_id,
            stage=self.stage.value,
            next_stage=task.current_stage.value,
        )
        return TaskOutcome.ADVANCED

    @abstractmethod
    async def _perform_stage_work(
        self,
        task: Task,
        details: ContractTaskDetails,
    ) -> StageOutcome:
        """调用阶段协作方；抛出的任何异常都按程序失败处理"""

    async def _require_stage_result(
        self,
        task: Task,
        stage: ExecutionStage,
    ) -> StageResult:
        """读取前置阶段结果，缺失时抛出 MissingStageResultError"""
        result = await self._stage_result_store.get_result(task.task_id, stage.value)
        if result is None or not result.success:
            raise MissingStageResultError(task.task_id, stage.value)
        return result

    async def _save_stage_result(self, result: StageResult) -> None:
        """尽力写入阶段结果，失败只记录日志"""
        try:
            await self._stage_result_store.save_result(result)
        except Exception as e:
            log.warning(
                "stage_result_save_failed",
                task_id=result.task_id,
                stage=result.stage.value,
                error=str(e),
            )

    async def _handle_task_execution_failure(self, task: Task, error: Exception) -> None:
        """程序执行失败：标记 FAILED 以进入重试流程；保存失败只记录日志"""
        message = f"{self.display_name or self.stage.value}程序执行失败: {error}"
        log.error(
            "stage_task_failed",
            task_id=task.task_id,
            stage=self.stage.value,
            error=str(error),
            error_type=type(error).__name__,
        )

        try:
            task.fail(message, self._actor_id)
            await self._task_store.save_task(task)
        except Exception as save_error:
            log.error(
                "stage_task_fail_save_failed",
                task_id=task.task_id,
                stage=self.stage.value,
                error=str(save_error),
            )
            return

        await self._save_stage_result(
            StageResult(
                task_id=task.task_id,
                stage=self.stage,
                success=False,
                error_message=message,
                started_at=task.started_at,
                ended_at=task.completed_at,
            )
        )
