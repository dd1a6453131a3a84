"""SimulatedCollaborator -- 三个阶段的确定性模拟实现

用于本地运行与测试，行为可通过任务 custom_settings 控制：
    simulated_pending_polls: 条款抽取前 N 次轮询返回 done=False
    simulated_failure_stage: 在指定阶段抛出 CollaboratorError
    simulated_risk_level: 模型审查给出的总体风险等级（默认 MEDIUM）
"""

import asyncio

from reviewengine.core.models import (
    ContractTaskDetails,
    ExecutionStage,
    RiskLevel,
    StageResult,
    Task,
)

from .exceptions import CollaboratorError
from .models import ExtractedClause, ModelReviewResult, RiskItem, StageOutcome
from .report_builder import ReportBuilder

_SIMULATED_CLAUSES = [
    ExtractedClause(
        clause_id="C1",
        clause_type="PAYMENT",
        clause_title="付款条款",
        clause_content="甲方应在验收合格后 30 日内支付合同价款。",
    ),
    ExtractedClause(
        clause_id="C2",
        clause_type="LIABILITY",
        clause_title="违约责任",
        clause_content="任何一方违约，应赔偿对方因此遭受的全部损失。",
    ),
    ExtractedClause(
        clause_id="C3",
        clause_type="TERMINATION",
        clause_title="合同解除",
        clause_content="经双方协商一致，可以解除本合同。",
    ),
]

_RISK_SCORES = {RiskLevel.LOW: 20.0, RiskLevel.MEDIUM: 60.0, RiskLevel.HIGH: 90.0}


class SimulatedCollaborator:
    """模拟协作方，同时满足三个阶段的协作方接口"""

    def __init__(self, latency_s: float = 0.0) -> None:
        self._latency_s = latency_s
        self._extraction_polls: dict[str, int] = {}
        self._report_builder = ReportBuilder()

    async def extract_clauses(
        self,
        task: Task,
        details: ContractTaskDetails,
    ) -> StageOutcome:
        await self._simulate_work(task, ExecutionStage.CLAUSE_EXTRACTION)

        pending_polls = int(task.configuration.custom_settings.get("simulated_pending_polls", 0))
        polls = self._extraction_polls.get(task.task_id, 0)
        if polls < pending_polls:
            self._extraction_polls[task.task_id] = polls + 1
            return StageOutcome(done=False, output="条款抽取进行中: PROCESSING")
        self._extraction_polls.pop(task.task_id, None)

        return StageOutcome(
            output=f"条款抽取完成，共 {len(_SIMULATED_CLAUSES)} 个条款",
            data={
                "extraction_status": "COMPLETED",
                "clause_count": len(_SIMULATED_CLAUSES),
                "clauses": [clause.model_dump() for clause in _SIMULATED_CLAUSES],
            },
        )

    async def review_contract(
        self,
        task: Task,
        details: ContractTaskDetails,
        clause_result: StageResult,
    ) -> StageOutcome:
        await self._simulate_work(task, ExecutionStage.MODEL_REVIEW)

        level = RiskLevel(
            str(task.configuration.custom_settings.get("simulated_risk_level", "MEDIUM")).upper()
        )
        clauses = clause_result.data.get("clauses", [])
        risk_items = [
            RiskItem(
                factor_name=f"{clause.get('clause_title') or '条款'}风险",
                risk_level=level,
                risk_score=_RISK_SCORES[level],
                risk_summary=f"{clause.get('clause_title') or '条款'}存在{level.value}级风险",
                recommendation="建议明确相关条款的具体约定",
                risk_clause_id=clause.get("clause_id"),
                origin_contract_text=(clause.get("clause_content") or "")[:1000],
            )
            for clause in clauses[:2]
        ]
        result = ModelReviewResult(
            overall_risk_level=level,
            confidence=0.9,
            summary=f"{details.contract_title or details.contract_id} 总体风险等级为 {level.value}",
            recommendations="建议定期审查合同执行情况",
            risk_items=risk_items,
        )
        return StageOutcome(output=result.summary, data=result.model_dump(mode="json"))

    async def generate_report(
        self,
        task: Task,
        details: ContractTaskDetails,
        review_result: StageResult,
    ) -> StageOutcome:
        await self._simulate_work(task, ExecutionStage.REPORT_GENERATION)
        return await self._report_builder.generate_report(task, details, review_result)

    async def _simulate_work(self, task: Task, stage: ExecutionStage) -> None:
        if self._latency_s:
            await asyncio.sleep(self._latency_s)
        if task.configuration.custom_settings.get("simulated_failure_stage") == stage.value:
            raise CollaboratorError(f"模拟 {stage.value} 失败")
