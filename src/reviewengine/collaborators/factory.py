"""Collaborator 装配 -- 按配置模式构建三个阶段的协作方"""

import structlog

from .clause_client import ClauseServiceClient
from .config import CollaboratorConfig
from .protocols import (
    ClauseExtractionCollaborator,
    ModelReviewCollaborator,
    ReportGenerationCollaborator,
)
from .report_builder import ReportBuilder
from .review_client import LiteLLMReviewClient
from .simulated import SimulatedCollaborator

log = structlog.get_logger()


class CollaboratorSet:
    """三个阶段协作方的组合"""

    def __init__(
        self,
        clause_extraction: ClauseExtractionCollaborator,
        model_review: ModelReviewCollaborator,
        report_generation: ReportGenerationCollaborator,
        mode: str,
    ) -> None:
        self.clause_extraction = clause_extraction
        self.model_review = model_review
        self.report_generation = report_generation
        self.mode = mode


def build_collaborators(config: CollaboratorConfig) -> CollaboratorSet:
    """按 config.mode 构建协作方

    remote: 条款抽取走 HTTP 服务，模型审查走 LiteLLM Proxy，报告本地组装。
    simulated: 三个阶段都使用确定性模拟实现。
    """
    if config.mode == "remote":
        collaborators = CollaboratorSet(
            clause_extraction=ClauseServiceClient(
                base_url=config.clause_service_url,
                timeout_s=config.timeout_s,
            ),
            model_review=LiteLLMReviewClient(
                proxy_base_url=config.proxy_base_url,
                proxy_api_key=config.proxy_api_key.get_secret_value(),
                model_alias=config.review_model,
                timeout_s=config.timeout_s,
            ),
            report_generation=ReportBuilder(),
            mode=config.mode,
        )
    else:
        simulated = SimulatedCollaborator()
        collaborators = CollaboratorSet(
            clause_extraction=simulated,
            model_review=simulated,
            report_generation=simulated,
            mode=config.mode,
        )

    log.info(
        "collaborators_built",
        mode=config.mode,
        clause_service_url=config.clause_service_url if config.mode == "remote" else "",
    )
    return collaborators
