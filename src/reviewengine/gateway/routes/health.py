"""健康检查路由

GET /health: Liveness 检查，永远返回 200。
GET /ready: Readiness 检查，包含 SQLite 连通性、WAL 模式、调度器状态、磁盘空间；
         profile=full 时额外探测条款抽取服务（仅 remote 模式）。
"""

import shutil

import structlog
from fastapi import APIRouter, Depends, Query, Request
from starlette.responses import JSONResponse

from reviewengine.core.store.sqlite_init import verify_wal_mode
from reviewengine.engine import ReviewScheduler

from ..deps import get_scheduler

log = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health():
    """Liveness 检查 -- 永远返回 200"""
    return {"status": "ok"}


@router.get("/ready")
async def ready(
    request: Request,
    profile: str | None = Query(
        default=None,
        description="检查配置文件：core（默认）仅核心检查；full 包含外部协作方探测",
    ),
    scheduler: ReviewScheduler | None = Depends(get_scheduler),
):
    """Readiness 检查 -- 验证核心依赖可用性

    检查项：
    1. sqlite: 数据库连通性
    2. wal_mode: WAL 是否生效
    3. scheduler: running / stopped / disabled（disabled 不影响就绪）
    4. disk_space_mb: 磁盘剩余空间
    5. clause_service: 根据 profile 决定是否探测
    """
    effective_profile = profile or "core"

    checks = {}
    all_ok = True

    # 1-2. SQLite 连通性 + WAL
    try:
        conn = request.app.state.store_group.conn
        cursor = await conn.execute("SELECT 1")
        await cursor.fetchone()
        checks["sqlite"] = "ok"
        checks["wal_mode"] = "ok" if await verify_wal_mode(conn) else "off"
    except Exception as e:
        checks["sqlite"] = f"error: {str(e)}"
        all_ok = False

    # 3. 调度器状态
    if scheduler is None:
        checks["scheduler"] = "disabled"
    elif scheduler.running:
        checks["scheduler"] = "running"
    else:
        checks["scheduler"] = "stopped"
        all_ok = False

    # 4. 磁盘空间检查
    try:
        disk_usage = shutil.disk_usage("/")
        checks["disk_space_mb"] = disk_usage.free // (1024 * 1024)
    except Exception:
        checks["disk_space_mb"] = 0
        all_ok = False

    # 5. 条款抽取服务
    clause_client = getattr(request.app.state, "clause_client", None)
    if effective_profile == "full" and clause_client is not None:
        try:
            if await clause_client.health_check():
                checks["clause_service"] = "ok"
            else:
                checks["clause_service"] = "unreachable"
                all_ok = False
        except Exception as e:
            log.warning("health_check_error", error=str(e))
            checks["clause_service"] = "unreachable"
            all_ok = False
    else:
        checks["clause_service"] = "skipped"

    status_code = 200 if all_ok else 503
    status_text = "ready" if all_ok else "not_ready"

    return JSONResponse(
        status_code=status_code,
        content={
            "status": status_text,
            "profile": effective_profile,
            "checks": checks,
        },
    )
