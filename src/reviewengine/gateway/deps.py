"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store / 调度器 / 操作者

实例通过 app.state 管理，在 lifespan 中初始化/清理。
"""

from fastapi import Header, Request

from reviewengine.core.store import StoreGroup
from reviewengine.engine import ReviewScheduler

DEFAULT_API_ACTOR = "api"


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_scheduler(request: Request) -> ReviewScheduler | None:
    """从 app.state 获取调度器实例（未启用时为 None）"""
    return getattr(request.app.state, "scheduler", None)


def get_actor_id(
    x_actor_id: str | None = Header(default=None, description="操作者标识"),
) -> str:
    """从 X-Actor-Id 请求头获取操作者，缺省为 api"""
    return (x_actor_id or "").strip() or DEFAULT_API_ACTOR
