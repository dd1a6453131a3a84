"""Collaborator Protocol 接口定义

每个阶段一个协作方接口，各自只有一个方法。
执行器依赖这些接口；生产环境注入远程客户端，测试注入确定性模拟实现。
"""

from typing import Protocol

from reviewengine.core.models import ContractTaskDetails, StageResult, Task

from .models import StageOutcome


class ClauseExtractionCollaborator(Protocol):
    """条款抽取"""

    async def extract_clauses(
        self,
        task: Task,
        details: ContractTaskDetails,
    ) -> StageOutcome:
        """触发/轮询条款抽取；未完成时返回 done=False"""
        ...


class ModelReviewCollaborator(Protocol):
    """模型审查"""

    async def review_contract(
        self,
        task: Task,
        details: ContractTaskDetails,
        clause_result: StageResult,
    ) -> StageOutcome:
        """基于条款抽取结果执行模型审查"""
        ...


class ReportGenerationCollaborator(Protocol):
    """报告生成"""

    async def generate_report(
        self,
        task: Task,
        details: ContractTaskDetails,
        review_result: StageResult,
    ) -> StageOutcome:
        """基于模型审查结果生成审查报告"""
        ...
