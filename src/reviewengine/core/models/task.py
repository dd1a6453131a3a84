"""Task Domain Model -- 审查任务聚合根

status 描述当前阶段内本地工作单元的状态，current_stage 描述流水线位置，两者正交。
所有修改方法都显式接收 actor_id 并写入 audit.updated_by；
状态流转在任何修改之前校验，非法请求抛出 InvalidStateTransition 且任务保持原状。
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import BaseModel, Field
from ulid import ULID

from ..exceptions import InvalidStateTransition, RetryExhausted
from .enums import ExecutionStage, TaskStatus, TaskType, validate_transition
from .retry_policy import RetryPolicy

MAX_RETRY_EXCEEDED_MESSAGE = "Max retry count exceeded"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TaskConfiguration(BaseModel):
    """任务配置（内嵌重试策略 + 自定义设置）"""

    retry_policy: RetryPolicy | None = Field(
        default=None, description="重试策略，None 时使用默认策略"
    )
    timeout_seconds: int = Field(default=3600, ge=1, description="超时时间（秒）")
    priority: int = Field(default=0, description="优先级")
    custom_settings: dict[str, Any] = Field(
        default_factory=dict, description="自定义设置"
    )


class AuditInfo(BaseModel):
    """审计信息 + 乐观锁版本号"""

    created_by: str = Field(description="创建者")
    created_at: datetime = Field(description="创建时间")
    updated_by: str = Field(description="最后修改者")
    updated_at: datetime = Field(description="最后修改时间")
    version: int = Field(default=1, ge=1, description="乐观锁版本号，每次成功保存 +1")


class Task(BaseModel):
    """审查任务"""

    task_id: str = Field(description="唯一标识，ULID 格式")
    task_name: str = Field(description="任务名称")
    task_type: TaskType = Field(default=TaskType.CONTRACT_REVIEW, description="任务类型")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="当前状态")
    current_stage: ExecutionStage = Field(
        default=ExecutionStage.CLAUSE_EXTRACTION, description="流水线当前阶段"
    )
    retry_count: int = Field(default=0, ge=0, description="已重试次数")
    configuration: TaskConfiguration = Field(
        default_factory=TaskConfiguration, description="任务配置"
    )
    error_message: str | None = Field(default=None, description="最近一次失败原因")
    started_at: datetime | None = Field(default=None, description="本阶段开始时间")
    completed_at: datetime | None = Field(default=None, description="本阶段结束时间")
    next_retry_at: datetime | None = Field(
        default=None, description="重试 sweep 最早可复活该任务的时间"
    )
    retry_exhausted: bool = Field(default=False, description="重试耗尽，永久失败")
    audit: AuditInfo = Field(description="审计信息")

    @classmethod
    def create(
        cls,
        task_name: str,
        actor_id: str,
        task_type: TaskType = TaskType.CONTRACT_REVIEW,
        configuration: TaskConfiguration | None = None,
    ) -> "Task":
        """创建新任务：PENDING，初始阶段由任务类型决定"""
        now = _utcnow()
        return cls(
            task_id=str(ULID()),
            task_name=task_name,
            task_type=task_type,
            current_stage=task_type.initial_stage(),
            configuration=configuration or TaskConfiguration(),
            audit=AuditInfo(
                created_by=actor_id,
                created_at=now,
                updated_by=actor_id,
                updated_at=now,
            ),
        )

    @property
    def retry_policy(self) -> RetryPolicy:
        return self.configuration.retry_policy or RetryPolicy.default_policy()

    @property
    def max_retries(self) -> int:
        return self.retry_policy.max_retries

    @property
    def awaiting_next_stage(self) -> bool:
        """上一阶段已完成、等待下一阶段执行器接手"""
        return (
            self.status == TaskStatus.COMPLETED
            and not self.current_stage.is_final_stage()
        )

    # ---- 状态流转 ----

    def start(self, actor_id: str) -> None:
        """PENDING -> RUNNING"""
        self._transition(TaskStatus.RUNNING, actor_id)
        self.started_at = self.audit.updated_at
        self.completed_at = None

    def complete(self, actor_id: str) -> None:
        """RUNNING -> COMPLETED，同时推进到下一阶段"""
        self._transition(TaskStatus.COMPLETED, actor_id)
        self.completed_at = self.audit.updated_at
        self.current_stage = self.current_stage.next_stage()
        self.error_message = None

    def fail(self, message: str, actor_id: str) -> None:
        """RUNNING -> FAILED，记录原因并计算最早重试时间"""
        self._transition(TaskStatus.FAILED, actor_id)
        now = self.audit.updated_at
        self.completed_at = now
        self.error_message = message
        self.next_retry_at = now + timedelta(
            milliseconds=self.retry_policy.calculate_delay(self.retry_count)
        )

    def cancel(self, actor_id: str) -> None:
        """PENDING/RUNNING -> CANCELLED；阶段间等待中的任务也可取消"""
        if self.awaiting_next_stage:
            self._transition(TaskStatus.CANCELLED, actor_id, allowed_from=TaskStatus.PENDING)
        else:
            self._transition(TaskStatus.CANCELLED, actor_id)
        self.completed_at = self.audit.updated_at
        self.next_retry_at = None

    def enter_stage(self, actor_id: str) -> bool:
        """执行器接手当前阶段

        Returns:
            True 表示本阶段新启动；False 表示任务已在 RUNNING（外部工作进行中，继续轮询）

        Raises:
            InvalidStateTransition: FAILED / CANCELLED / 已到终点阶段的任务
        """
        if self.status == TaskStatus.RUNNING:
            return False
        if self.awaiting_next_stage:
            # 阶段交接：重新打开为 PENDING 后再启动
            self.status = TaskStatus.PENDING
        self.start(actor_id)
        return True

    # ---- 重试 ----

    def can_retry(self) -> bool:
        return (
            self.status == TaskStatus.FAILED
            and not self.retry_exhausted
            and self.retry_policy.can_retry(self.retry_count)
        )

    def retry(self, actor_id: str) -> None:
        """FAILED -> PENDING，retry_count + 1，保留失败时的阶段

        Raises:
            InvalidStateTransition: 任务不是 FAILED
            RetryExhausted: 重试次数耗尽，任务已被标记为永久失败
        """
        if self.status != TaskStatus.FAILED:
            raise InvalidStateTransition(self.task_id, self.status, TaskStatus.PENDING)
        if not self.can_retry():
            self.mark_retry_exhausted(actor_id)
            raise RetryExhausted(self.task_id, self.retry_count, self.max_retries)
        self._transition(TaskStatus.PENDING, actor_id)
        self.retry_count += 1
        self.started_at = None
        self.completed_at = None
        self.next_retry_at = None

    def mark_retry_exhausted(self, actor_id: str) -> None:
        """永久失败：保持 FAILED，不再被重试 sweep 选中"""
        if self.status != TaskStatus.FAILED:
            raise InvalidStateTransition(self.task_id, self.status, TaskStatus.FAILED)
        if not self.retry_exhausted:
            last_error = self.error_message
            self.error_message = (
                f"{MAX_RETRY_EXCEEDED_MESSAGE} (last error: {last_error})"
                if last_error
                else MAX_RETRY_EXCEEDED_MESSAGE
            )
        self.retry_exhausted = True
        self.next_retry_at = None
        self._touch(actor_id)

    def schedule_next_retry(self, actor_id: str, now: datetime | None = None) -> None:
        """按重试策略推迟下一次重试"""
        now = now or _utcnow()
        self.next_retry_at = now + timedelta(
            milliseconds=self.retry_policy.calculate_delay(self.retry_count)
        )
        self._touch(actor_id, now)

    def is_timeout(self, now: datetime | None = None) -> bool:
        """RUNNING 超过 timeout_seconds（仅供观测，不会中断执行）"""
        if self.status != TaskStatus.RUNNING or self.started_at is None:
            return False
        now = now or _utcnow()
        deadline = self.started_at + timedelta(seconds=self.configuration.timeout_seconds)
        return now > deadline

    # ---- 内部 ----

    def _transition(
        self,
        target: TaskStatus,
        actor_id: str,
        allowed_from: TaskStatus | None = None,
    ) -> None:
        # allowed_from 用于阶段交接：COMPLETED 视同 PENDING 校验
        from_status = allowed_from or self.status
        if not validate_transition(from_status, target):
            raise InvalidStateTransition(self.task_id, self.status, target)
        self.status = target
        self._touch(actor_id)

    def _touch(self, actor_id: str, now: datetime | None = None) -> None:
        self.audit.updated_by = actor_id
        self.audit.updated_at = now or _utcnow()
