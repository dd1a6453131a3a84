"""Core 领域异常体系

状态机、重试、持久化冲突与合同任务 1:1 约束相关的异常。
"""


class ReviewEngineError(Exception):
    """Core 包基础异常"""


class InvalidStateTransition(ReviewEngineError):
    """非法状态流转，在任何修改发生前抛出"""

    def __init__(self, task_id: str, from_status: str, to_status: str) -> None:
        """
        Args:
            task_id: 任务 ID
            from_status: 当前状态
            to_status: 请求的目标状态
        """
        super().__init__(
            f"Invalid state transition for task {task_id}: {from_status} -> {to_status}"
        )
        self.task_id = task_id
        self.from_status = from_status
        self.to_status = to_status


class RetryExhausted(ReviewEngineError):
    """重试次数耗尽，任务已被标记为永久失败"""

    def __init__(self, task_id: str, retry_count: int, max_retries: int) -> None:
        super().__init__(
            f"Max retry count exceeded for task {task_id}: {retry_count}/{max_retries}"
        )
        self.task_id = task_id
        self.retry_count = retry_count
        self.max_retries = max_retries


class TaskVersionConflictError(ReviewEngineError):
    """乐观锁版本冲突

    属于瞬时错误：调用方应在本轮跳过该任务，留给下一轮 sweep。
    """

    def __init__(self, task_id: str, expected_version: int) -> None:
        super().__init__(
            f"Task {task_id} was modified concurrently (expected version {expected_version})"
        )
        self.task_id = task_id
        self.expected_version = expected_version


class TaskNotFoundError(ReviewEngineError):
    """任务不存在"""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class ContractTaskNotFoundError(ReviewEngineError):
    """任务缺少关联的合同详情"""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Contract task details not found for task: {task_id}")
        self.task_id = task_id


class DuplicateContractTaskError(ReviewEngineError):
    """同一任务关联了多条合同详情，违反 1:1 约束"""

    def __init__(self, task_id: str, count: int) -> None:
        super().__init__(
            f"Task {task_id} has {count} contract task details, expected at most one"
        )
        self.task_id = task_id
        self.count = count


class MissingStageResultError(ReviewEngineError):
    """后续阶段所需的前置阶段结果缺失（数据完整性错误，按程序失败处理）"""

    def __init__(self, task_id: str, stage: str) -> None:
        super().__init__(f"Stage result {stage} is missing for task {task_id}")
        self.task_id = task_id
        self.stage = stage
