"""SimulatedCollaborator + ReportBuilder 测试

测试内容：
1. 模拟条款抽取：固定条款、pending 轮询次数
2. 模拟模型审查：风险等级可配置
3. 模拟失败阶段
4. 报告组装：统计、建议汇总、数据损坏
"""

import pytest
from reviewengine.collaborators import (
    CollaboratorError,
    ModelReviewResult,
    ReportBuilder,
    ResponseFormatError,
    RiskItem,
    SimulatedCollaborator,
)
from reviewengine.core.models import ExecutionStage, RiskLevel, StageResult


def _review_result(task_id: str, review: ModelReviewResult) -> StageResult:
    return StageResult(
        task_id=task_id,
        stage=ExecutionStage.MODEL_REVIEW,
        success=True,
        output=review.summary,
        data=review.model_dump(mode="json"),
    )


class TestSimulatedCollaborator:
    """模拟协作方"""

    async def test_extract_clauses(self, review_task, contract_details):
        outcome = await SimulatedCollaborator().extract_clauses(review_task, contract_details)
        assert outcome.done is True
        assert outcome.data["clause_count"] == 3
        assert [c["clause_id"] for c in outcome.data["clauses"]] == ["C1", "C2", "C3"]

    async def test_pending_polls(self, review_task, contract_details):
        """前 N 次轮询返回进行中"""
        review_task.configuration.custom_settings["simulated_pending_polls"] = 2
        collaborator = SimulatedCollaborator()

        first = await collaborator.extract_clauses(review_task, contract_details)
        second = await collaborator.extract_clauses(review_task, contract_details)
        third = await collaborator.extract_clauses(review_task, contract_details)

        assert [first.done, second.done, third.done] == [False, False, True]

    @pytest.mark.parametrize("level", ["LOW", "MEDIUM", "HIGH"])
    async def test_review_contract_level(
        self, level, review_task, contract_details, clause_result
    ):
        review_task.configuration.custom_settings["simulated_risk_level"] = level
        outcome = await SimulatedCollaborator().review_contract(
            review_task, contract_details, clause_result
        )
        review = ModelReviewResult.model_validate(outcome.data)
        assert review.overall_risk_level == RiskLevel(level)
        assert len(review.risk_items) == 2

    async def test_failure_stage(self, review_task, contract_details, clause_result):
        review_task.configuration.custom_settings["simulated_failure_stage"] = "MODEL_REVIEW"
        collaborator = SimulatedCollaborator()

        # 其他阶段不受影响
        assert (await collaborator.extract_clauses(review_task, contract_details)).done
        with pytest.raises(CollaboratorError):
            await collaborator.review_contract(review_task, contract_details, clause_result)


class TestReportBuilder:
    """报告组装"""

    async def test_high_risk_report(self, review_task, contract_details):
        review = ModelReviewResult(
            overall_risk_level=RiskLevel.HIGH,
            confidence=0.9,
            summary="存在高风险",
            recommendations="整体建议",
            risk_items=[
                RiskItem(risk_level=RiskLevel.HIGH, risk_score=90, recommendation="修改付款条款"),
                RiskItem(risk_level=RiskLevel.LOW, risk_score=20),
            ],
        )
        outcome = await ReportBuilder().generate_report(
            review_task, contract_details, _review_result(review_task.task_id, review)
        )

        report = outcome.data
        assert outcome.done is True
        assert "高风险" in outcome.output
        assert report["report_id"].startswith("RPT_")
        assert report["task_id"] == review_task.task_id
        assert report["contract_id"] == "CT-001"
        assert report["summary"]["overall_risk_level"] == "HIGH"
        assert report["summary"]["overall_risk_score"] == 55.0
        assert report["summary"]["high_risk_items"] == 1
        assert report["summary"]["low_risk_items"] == 1
        assert report["recommendations"] == ["整体建议", "修改付款条款"]

    async def test_low_risk_report(self, review_task, contract_details):
        review = ModelReviewResult(overall_risk_level=RiskLevel.LOW)
        outcome = await ReportBuilder().generate_report(
            review_task, contract_details, _review_result(review_task.task_id, review)
        )
        assert outcome.data["summary"]["total_review_items"] == 0
        assert outcome.data["summary"]["overall_risk_score"] == 0.0
        assert "LOW" in outcome.output

    async def test_corrupted_review_data(self, review_task, contract_details):
        broken = StageResult(
            task_id=review_task.task_id,
            stage=ExecutionStage.MODEL_REVIEW,
            success=True,
            data={"overall_risk_level": "NOT_A_LEVEL"},
        )
        with pytest.raises(ResponseFormatError):
            await ReportBuilder().generate_report(review_task, contract_details, broken)
