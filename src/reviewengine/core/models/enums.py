"""枚举定义 -- 任务状态机与审查流水线阶段

包含 TaskStatus 状态机、ExecutionStage 流水线阶段、TaskType、ReviewType、RiskLevel 枚举，
以及 VALID_TRANSITIONS 合法流转映射和 TERMINAL_STATES / FINISHED_STATES 集合。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """Task 状态机"""

    # 活跃状态
    PENDING = "PENDING"
    RUNNING = "RUNNING"

    # 结束状态（FAILED 可经 retry 回到 PENDING）
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


# 合法状态流转
VALID_TRANSITIONS: dict[TaskStatus, set[TaskStatus]] = {
    TaskStatus.PENDING: {TaskStatus.RUNNING, TaskStatus.CANCELLED},
    TaskStatus.RUNNING: {
        TaskStatus.COMPLETED,
        TaskStatus.FAILED,
        TaskStatus.CANCELLED,
    },
    # 仅 retry 使用
    TaskStatus.FAILED: {TaskStatus.PENDING},
    # 终态不可再流转
    TaskStatus.COMPLETED: set(),
    TaskStatus.CANCELLED: set(),
}

TERMINAL_STATES: set[TaskStatus] = {
    TaskStatus.COMPLETED,
    TaskStatus.CANCELLED,
}

# completed_at 必须有值的状态
FINISHED_STATES: set[TaskStatus] = {
    TaskStatus.COMPLETED,
    TaskStatus.FAILED,
    TaskStatus.CANCELLED,
}


class ExecutionStage(StrEnum):
    """审查流水线阶段，声明顺序即流水线顺序"""

    PENDING = "PENDING"
    DOCUMENT_PARSING = "DOCUMENT_PARSING"
    CLAUSE_EXTRACTION = "CLAUSE_EXTRACTION"
    MODEL_REVIEW = "MODEL_REVIEW"
    REPORT_GENERATION = "REPORT_GENERATION"
    REVIEW_COMPLETED = "REVIEW_COMPLETED"
    # 停靠标记，不参与推进
    FAILED = "FAILED"

    def next_stage(self) -> "ExecutionStage":
        """返回下一阶段；REVIEW_COMPLETED 与 FAILED 映射到自身"""
        if self in _SELF_LOOP_STAGES:
            return self
        return _PIPELINE[_PIPELINE.index(self) + 1]

    def is_final_stage(self) -> bool:
        """仅 REVIEW_COMPLETED 为流水线终点"""
        return self is ExecutionStage.REVIEW_COMPLETED


_PIPELINE: list[ExecutionStage] = [
    ExecutionStage.PENDING,
    ExecutionStage.DOCUMENT_PARSING,
    ExecutionStage.CLAUSE_EXTRACTION,
    ExecutionStage.MODEL_REVIEW,
    ExecutionStage.REPORT_GENERATION,
    ExecutionStage.REVIEW_COMPLETED,
]

_SELF_LOOP_STAGES: frozenset[ExecutionStage] = frozenset(
    {ExecutionStage.REVIEW_COMPLETED, ExecutionStage.FAILED}
)


class TaskType(StrEnum):
    """任务类型"""

    CONTRACT_REVIEW = "CONTRACT_REVIEW"
    CLAUSE_EXTRACTION = "CLAUSE_EXTRACTION"
    RISK_ANALYSIS = "RISK_ANALYSIS"
    COMPLIANCE_CHECK = "COMPLIANCE_CHECK"
    BATCH_REVIEW = "BATCH_REVIEW"
    IMMEDIATE_REVIEW = "IMMEDIATE_REVIEW"

    def initial_stage(self) -> ExecutionStage:
        """合同审查类任务直接从条款抽取开始，其他类型从文档解析开始"""
        if self in _CONTRACT_REVIEW_TYPES:
            return ExecutionStage.CLAUSE_EXTRACTION
        return ExecutionStage.DOCUMENT_PARSING


_CONTRACT_REVIEW_TYPES: frozenset[TaskType] = frozenset(
    {TaskType.CONTRACT_REVIEW, TaskType.BATCH_REVIEW, TaskType.IMMEDIATE_REVIEW}
)


class ReviewType(StrEnum):
    """合同审查类型"""

    FULL_REVIEW = "FULL_REVIEW"
    RISK_ASSESSMENT = "RISK_ASSESSMENT"
    COMPLIANCE_CHECK = "COMPLIANCE_CHECK"
    CLAUSE_ANALYSIS = "CLAUSE_ANALYSIS"
    CUSTOM = "CUSTOM"


class RiskLevel(StrEnum):
    """风险等级（模型审查结论，属业务结果而非执行错误）"""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


def validate_transition(from_status: TaskStatus, to_status: TaskStatus) -> bool:
    """验证状态流转是否合法

    Args:
        from_status: 当前状态
        to_status: 目标状态

    Returns:
        True 如果流转合法，否则 False
    """
    allowed = VALID_TRANSITIONS.get(from_status, set())
    return to_status in allowed
