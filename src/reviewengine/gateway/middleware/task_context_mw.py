"""TaskContextMiddleware -- 为任务相关请求绑定 task_id

从 /api/tasks/{task_id}[/...] 路径中提取 task_id，绑定到 structlog contextvars，
使服务层日志自动携带任务标识。
"""

import re

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# ULID：26 位 Crockford Base32
_TASK_PATH = re.compile(r"^/api/tasks/([0-9A-HJKMNP-TV-Z]{26})(?:/|$)")


class TaskContextMiddleware(BaseHTTPMiddleware):
    """任务上下文中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        match = _TASK_PATH.match(request.url.path)
        if match:
            structlog.contextvars.bind_contextvars(task_id=match.group(1))

        return await call_next(request)
