"""Review Engine Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .contract_task import ContractTaskDetails
from .enums import (
    FINISHED_STATES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    ExecutionStage,
    ReviewType,
    RiskLevel,
    TaskStatus,
    TaskType,
    validate_transition,
)
from .retry_policy import RetryPolicy
from .stage_result import StageResult
from .task import MAX_RETRY_EXCEEDED_MESSAGE, AuditInfo, Task, TaskConfiguration

__all__ = [
    # 枚举
    "TaskStatus",
    "ExecutionStage",
    "TaskType",
    "ReviewType",
    "RiskLevel",
    # 状态机
    "VALID_TRANSITIONS",
    "TERMINAL_STATES",
    "FINISHED_STATES",
    "validate_transition",
    # Task
    "Task",
    "TaskConfiguration",
    "AuditInfo",
    "MAX_RETRY_EXCEEDED_MESSAGE",
    # RetryPolicy
    "RetryPolicy",
    # 合同详情 / 阶段结果
    "ContractTaskDetails",
    "StageResult",
]
