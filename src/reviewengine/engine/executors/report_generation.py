"""ReportGenerationExecutor -- 报告生成阶段

以模型审查结果为输入；完成后任务推进到 REVIEW_COMPLETED，不再被 sweep 选中。
"""

from reviewengine.collaborators.models import StageOutcome
from reviewengine.collaborators.protocols import ReportGenerationCollaborator
from reviewengine.core.models import ContractTaskDetails, ExecutionStage, Task

from .base import StageExecutor


class ReportGenerationExecutor(StageExecutor):
    """报告生成执行器"""

    stage = ExecutionStage.REPORT_GENERATION
    display_name = "报告生成"

    def __init__(self, collaborator: ReportGenerationCollaborator, **kwargs) -> None:
        super().__init__(**kwargs)
        self._collaborator = collaborator

    async def _perform_stage_work(
        self,
        task: Task,
        details: ContractTaskDetails,
    ) -> StageOutcome:
        review_result = await self._require_stage_result(task, ExecutionStage.MODEL_REVIEW)
        return await self._collaborator.generate_report(task, details, review_result)
