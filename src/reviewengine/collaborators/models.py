"""数据模型 -- StageOutcome + 条款 / 模型审查结果

StageOutcome 是所有阶段协作方的统一返回类型；
ExtractedClause / RiskItem / ModelReviewResult 是各阶段写入 StageResult.data 的载荷。
"""

from typing import Any

from pydantic import BaseModel, Field

from reviewengine.core.models import RiskLevel


class StageOutcome(BaseModel):
    """阶段协作方调用结果

    done=False 表示外部工作仍在进行（如条款抽取服务尚未完成），
    任务保持 RUNNING 留待下一轮 sweep 轮询，不写入阶段结果也不推进阶段。
    """

    done: bool = Field(default=True, description="阶段工作是否已完成")
    output: str = Field(default="", description="自由文本输出，写入 StageResult.output")
    data: dict[str, Any] = Field(
        default_factory=dict, description="结构化载荷，写入 StageResult.data"
    )


class ExtractedClause(BaseModel):
    """抽取到的合同条款"""

    clause_id: str | None = Field(default=None, description="条款 ID")
    clause_type: str = Field(default="OTHER", description="条款类型")
    clause_title: str = Field(default="", description="条款标题")
    clause_content: str = Field(default="", description="条款内容")


class RiskItem(BaseModel):
    """风险项"""

    factor_name: str = Field(default="未知风险", description="风险因素名称")
    risk_level: RiskLevel = Field(default=RiskLevel.MEDIUM, description="风险等级")
    risk_score: float = Field(default=60.0, ge=0.0, le=100.0, description="风险分数")
    confidence: float = Field(default=0.8, ge=0.0, le=1.0, description="置信度")
    risk_summary: str = Field(default="", max_length=100, description="风险摘要")
    recommendation: str = Field(default="", max_length=500, description="修改建议")
    risk_clause_id: str | None = Field(default=None, description="关联条款 ID")
    origin_contract_text: str | None = Field(
        default=None, max_length=1000, description="合同原文"
    )


class ModelReviewResult(BaseModel):
    """模型审查结论

    overall_risk_level 是业务结论：HIGH 同样是成功的审查结果。
    """

    overall_risk_level: RiskLevel = Field(
        default=RiskLevel.MEDIUM, description="总体风险等级"
    )
    confidence: float = Field(default=0.5, ge=0.0, le=1.0, description="置信度")
    summary: str = Field(default="", max_length=2000, description="审查摘要")
    recommendations: str = Field(default="", max_length=2000, description="审查建议")
    risk_items: list[RiskItem] = Field(default_factory=list, description="风险项")
    compliance_issues: dict[str, Any] = Field(
        default_factory=dict, description="合规问题"
    )
