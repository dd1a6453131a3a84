"""ModelReviewExecutor -- 模型审查阶段

以条款抽取阶段的结果为输入。高风险、不合规等结论都是成功结果，照常推进到报告生成。
"""

from reviewengine.collaborators.models import StageOutcome
from reviewengine.collaborators.protocols import ModelReviewCollaborator
from reviewengine.core.models import ContractTaskDetails, ExecutionStage, Task

from .base import StageExecutor


class ModelReviewExecutor(StageExecutor):
    """模型审查执行器"""

    stage = ExecutionStage.MODEL_REVIEW
    display_name = "模型审查"

    def __init__(self, collaborator: ModelReviewCollaborator, **kwargs) -> None:
        super().__init__(**kwargs)
        self._collaborator = collaborator

    async def _perform_stage_work(
        self,
        task: Task,
        details: ContractTaskDetails,
    ) -> StageOutcome:
        clause_result = await self._require_stage_result(
            task, ExecutionStage.CLAUSE_EXTRACTION
        )
        return await self._collaborator.review_contract(task, details, clause_result)
