"""ClauseExtractionExecutor -- 条款抽取阶段

抽取服务是异步的：服务返回抽取进行中时任务保持 RUNNING，下一轮 sweep 再次轮询。
"""

from reviewengine.collaborators.models import StageOutcome
from reviewengine.collaborators.protocols import ClauseExtractionCollaborator
from reviewengine.core.models import ContractTaskDetails, ExecutionStage, Task

from .base import StageExecutor


class ClauseExtractionExecutor(StageExecutor):
    """条款抽取执行器"""

    stage = ExecutionStage.CLAUSE_EXTRACTION
    display_name = "条款抽取"

    def __init__(self, collaborator: ClauseExtractionCollaborator, **kwargs) -> None:
        super().__init__(**kwargs)
        self._collaborator = collaborator

    async def _perform_stage_work(
        self,
        task: Task,
        details: ContractTaskDetails,
    ) -> StageOutcome:
        return await self._collaborator.extract_clauses(task, details)
