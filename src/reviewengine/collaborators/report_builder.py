"""ReportBuilder -- 基于模型审查结果本地组装审查报告

风险合同生成包含风险说明的报告，低风险合同生成常规报告；两者都是成功结果。
"""

from datetime import UTC, datetime

from pydantic import ValidationError
from ulid import ULID

from reviewengine.core.models import ContractTaskDetails, RiskLevel, StageResult, Task

from .exceptions import ResponseFormatError
from .models import ModelReviewResult, StageOutcome

REPORT_TYPE = "COMPREHENSIVE_REVIEW"
REPORT_VERSION = "1.0"


class ReportBuilder:
    """报告生成协作方"""

    async def generate_report(
        self,
        task: Task,
        details: ContractTaskDetails,
        review_result: StageResult,
    ) -> StageOutcome:
        """组装报告

        Raises:
            ResponseFormatError: 模型审查结果数据损坏
        """
        try:
            review = ModelReviewResult.model_validate(review_result.data)
        except ValidationError as e:
            raise ResponseFormatError(f"模型审查结果数据无法读取: {e}") from e

        level_counts = {level.value: 0 for level in RiskLevel}
        for item in review.risk_items:
            level_counts[item.risk_level.value] += 1
        scores = [item.risk_score for item in review.risk_items]
        average_score = round(sum(scores) / len(scores), 1) if scores else 0.0

        recommendations = [
            item.recommendation for item in review.risk_items if item.recommendation
        ]
        if review.recommendations:
            recommendations.insert(0, review.recommendations)

        report = {
            "report_id": f"RPT_{ULID()}",
            "report_type": REPORT_TYPE,
            "task_id": task.task_id,
            "contract_id": details.contract_id,
            "contract_title": details.contract_title,
            "summary": {
                "overall_risk_level": review.overall_risk_level.value,
                "overall_risk_score": average_score,
                "confidence": review.confidence,
                "total_review_items": len(review.risk_items),
                "high_risk_items": level_counts[RiskLevel.HIGH.value],
                "medium_risk_items": level_counts[RiskLevel.MEDIUM.value],
                "low_risk_items": level_counts[RiskLevel.LOW.value],
            },
            "review_summary": review.summary,
            "recommendations": recommendations,
            "compliance_issues": review.compliance_issues,
            "risk_items": [item.model_dump(mode="json") for item in review.risk_items],
            "generated_at": datetime.now(UTC).isoformat(),
            "version": REPORT_VERSION,
        }

        if review.overall_risk_level == RiskLevel.HIGH:
            output = f"审查报告已生成：{details.contract_title or details.contract_id} 存在高风险，请重点关注"
        else:
            output = f"审查报告已生成：总体风险等级 {review.overall_risk_level.value}"
        return StageOutcome(output=output, data=report)
