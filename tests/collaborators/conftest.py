"""collaborators 测试 fixtures"""

from datetime import UTC, datetime

import pytest
from reviewengine.core.models import (
    ContractTaskDetails,
    ExecutionStage,
    StageResult,
    Task,
)


@pytest.fixture
def review_task() -> Task:
    return Task.create(task_name="采购合同审查", actor_id="tester")


@pytest.fixture
def contract_details(review_task: Task) -> ContractTaskDetails:
    return ContractTaskDetails(
        task_id=review_task.task_id,
        contract_id="CT-001",
        file_uuid="file-uuid-001",
        contract_title="设备采购合同",
        contract_type="PURCHASE",
        business_tags=["采购", "设备"],
        industry="制造业",
        created_at=datetime.now(UTC),
    )


@pytest.fixture
def clause_result(review_task: Task) -> StageResult:
    """条款抽取阶段的成功结果"""
    return StageResult(
        task_id=review_task.task_id,
        stage=ExecutionStage.CLAUSE_EXTRACTION,
        success=True,
        output="条款抽取完成，共 2 个条款",
        data={
            "extraction_status": "COMPLETED",
            "clause_count": 2,
            "clauses": [
                {
                    "clause_id": "C1",
                    "clause_type": "PAYMENT",
                    "clause_title": "付款条款",
                    "clause_content": "验收合格后 30 日内付款。",
                },
                {
                    "clause_id": "C2",
                    "clause_type": "LIABILITY",
                    "clause_title": "违约责任",
                    "clause_content": "违约方赔偿全部损失。",
                },
            ],
        },
    )
