"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭 + 协作方/执行器/聚合器装配 + 调度器启停 + 路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from reviewengine.collaborators import (
    ClauseServiceClient,
    CollaboratorSet,
    build_collaborators,
    load_collaborator_config,
)
from reviewengine.core.config import SYSTEM_ACTOR, get_db_path
from reviewengine.core.store import StoreGroup, create_store_group
from reviewengine.engine import (
    ClauseExtractionExecutor,
    ContractReviewAggregator,
    ContractTaskService,
    ModelReviewExecutor,
    ReportGenerationExecutor,
    ReviewScheduler,
    load_scheduler_config,
)

from .middleware.logging_config import setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.task_context_mw import TaskContextMiddleware
from .routes import contract_review, health, task_actions, tasks

log = structlog.get_logger()


def build_aggregator(
    store_group: StoreGroup,
    collaborators: CollaboratorSet,
    actor_id: str = SYSTEM_ACTOR,
) -> ContractReviewAggregator:
    """按阶段注册执行器；未注册的阶段（如文档解析）在 sweep 中被跳过"""
    shared = {
        "task_store": store_group.task_store,
        "stage_result_store": store_group.stage_result_store,
        "contract_tasks": ContractTaskService(store_group.contract_task_store),
        "actor_id": actor_id,
    }
    return ContractReviewAggregator(
        task_store=store_group.task_store,
        executors=[
            ClauseExtractionExecutor(collaborator=collaborators.clause_extraction, **shared),
            ModelReviewExecutor(collaborator=collaborators.model_review, **shared),
            ReportGenerationExecutor(collaborator=collaborators.report_generation, **shared),
        ],
        actor_id=actor_id,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时装配并启动调度器，关闭时停止调度器并清理连接"""
    store_group = await create_store_group(get_db_path())
    app.state.store_group = store_group

    collaborator_config = load_collaborator_config()
    collaborators = build_collaborators(collaborator_config)
    app.state.collaborators = collaborators
    # 保存 clause_client 引用供健康检查使用
    app.state.clause_client = (
        collaborators.clause_extraction
        if isinstance(collaborators.clause_extraction, ClauseServiceClient)
        else None
    )

    aggregator = build_aggregator(store_group, collaborators)
    app.state.aggregator = aggregator

    scheduler_config = load_scheduler_config()
    if scheduler_config.enabled:
        scheduler = ReviewScheduler(aggregator, scheduler_config)
        scheduler.start()
        app.state.scheduler = scheduler
    else:
        app.state.scheduler = None
        log.info("scheduler_disabled")

    yield

    if app.state.scheduler is not None:
        await app.state.scheduler.stop()
    if getattr(app.state, "store_group", None):
        await app.state.store_group.conn.close()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="Review Engine",
        version="0.1.0",
        description="合同审查任务生命周期与阶段聚合调度 API",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 TaskContext 后 Logging，Logging 在最外层）
    app.add_middleware(TaskContextMiddleware)
    app.add_middleware(LoggingMiddleware)

    setup_logging()

    app.include_router(contract_review.router, tags=["contract-review"])
    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(task_actions.router, tags=["tasks"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
