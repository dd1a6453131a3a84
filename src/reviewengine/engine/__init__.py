"""Review Engine -- 阶段执行器、聚合器与调度器"""

from .aggregator import ContractReviewAggregator, RetrySweepReport, SweepReport
from .config import SchedulerConfig, load_scheduler_config
from .contract_tasks import ContractTaskService
from .executors import (
    BatchReport,
    ClauseExtractionExecutor,
    ModelReviewExecutor,
    ReportGenerationExecutor,
    StageExecutor,
    TaskOutcome,
)
from .scheduler import PROCESS_SWEEP, RETRY_SWEEP, ReviewScheduler

__all__ = [
    "ContractReviewAggregator",
    "SweepReport",
    "RetrySweepReport",
    "ContractTaskService",
    "StageExecutor",
    "BatchReport",
    "TaskOutcome",
    "ClauseExtractionExecutor",
    "ModelReviewExecutor",
    "ReportGenerationExecutor",
    "ReviewScheduler",
    "PROCESS_SWEEP",
    "RETRY_SWEEP",
    "SchedulerConfig",
    "load_scheduler_config",
]
