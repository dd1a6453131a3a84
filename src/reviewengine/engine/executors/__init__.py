"""阶段执行器"""

from .base import BatchReport, StageExecutor, TaskOutcome
from .clause_extraction import ClauseExtractionExecutor
from .model_review import ModelReviewExecutor
from .report_generation import ReportGenerationExecutor

__all__ = [
    "StageExecutor",
    "BatchReport",
    "TaskOutcome",
    "ClauseExtractionExecutor",
    "ModelReviewExecutor",
    "ReportGenerationExecutor",
]
