"""Review Engine Collaborators -- 阶段外部协作方

条款抽取、模型审查、报告生成三个阶段的接口、远程实现与模拟实现。
"""

from .clause_client import ClauseServiceClient
from .config import CollaboratorConfig, load_collaborator_config
from .exceptions import CollaboratorError, ResponseFormatError, ServiceUnreachableError
from .factory import CollaboratorSet, build_collaborators
from .models import ExtractedClause, ModelReviewResult, RiskItem, StageOutcome
from .protocols import (
    ClauseExtractionCollaborator,
    ModelReviewCollaborator,
    ReportGenerationCollaborator,
)
from .report_builder import ReportBuilder
from .review_client import LiteLLMReviewClient
from .review_parser import parse_review_response
from .simulated import SimulatedCollaborator

__all__ = [
    # 数据模型
    "StageOutcome",
    "ExtractedClause",
    "RiskItem",
    "ModelReviewResult",
    # 接口
    "ClauseExtractionCollaborator",
    "ModelReviewCollaborator",
    "ReportGenerationCollaborator",
    # 实现
    "ClauseServiceClient",
    "LiteLLMReviewClient",
    "ReportBuilder",
    "SimulatedCollaborator",
    "parse_review_response",
    # 装配
    "CollaboratorSet",
    "build_collaborators",
    # 配置
    "CollaboratorConfig",
    "load_collaborator_config",
    # 异常
    "CollaboratorError",
    "ServiceUnreachableError",
    "ResponseFormatError",
]
