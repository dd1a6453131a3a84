"""SQLite 数据库初始化

PRAGMA 配置 + 三张表 DDL + 索引创建。
使用 aiosqlite 异步操作。
"""

import aiosqlite

# tasks 表 DDL（version 列用于乐观锁）
_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS tasks (
    task_id          TEXT PRIMARY KEY,
    task_name        TEXT NOT NULL DEFAULT '',
    task_type        TEXT NOT NULL DEFAULT 'CONTRACT_REVIEW',
    status           TEXT NOT NULL DEFAULT 'PENDING',
    current_stage    TEXT NOT NULL DEFAULT 'CLAUSE_EXTRACTION',
    retry_count      INTEGER NOT NULL DEFAULT 0,
    configuration    TEXT NOT NULL DEFAULT '{}',
    error_message    TEXT,
    started_at       TEXT,
    completed_at     TEXT,
    next_retry_at    TEXT,
    retry_exhausted  INTEGER NOT NULL DEFAULT 0,
    created_by       TEXT NOT NULL DEFAULT '',
    created_at       TEXT NOT NULL,
    updated_by       TEXT NOT NULL DEFAULT '',
    updated_at       TEXT NOT NULL,
    version          INTEGER NOT NULL DEFAULT 1
);
"""

_TASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_stage_status ON tasks(current_stage, status);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_created_at ON tasks(created_at);",
]

# contract_tasks 表 DDL（task_id 不设唯一约束，1:1 由服务层保证）
_CONTRACT_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS contract_tasks (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    task_id         TEXT NOT NULL,
    contract_id     TEXT NOT NULL,
    file_uuid       TEXT NOT NULL,
    contract_title  TEXT NOT NULL DEFAULT '',
    review_type     TEXT NOT NULL DEFAULT 'FULL_REVIEW',
    contract_type   TEXT NOT NULL DEFAULT '',
    business_tags   TEXT NOT NULL DEFAULT '[]',
    industry        TEXT NOT NULL DEFAULT '',
    created_at      TEXT NOT NULL,

    FOREIGN KEY (task_id) REFERENCES tasks(task_id) ON DELETE CASCADE
);
"""

_CONTRACT_TASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_contract_tasks_task_id ON contract_tasks(task_id);",
]

# stage_results 表 DDL
_STAGE_RESULTS_DDL = """
CREATE TABLE IF NOT EXISTS stage_results (
    task_id        TEXT NOT NULL,
    stage          TEXT NOT NULL,
    success        INTEGER NOT NULL,
    output         TEXT NOT NULL DEFAULT '',
    error_message  TEXT,
    started_at     TEXT,
    ended_at       TEXT,
    data           TEXT NOT NULL DEFAULT '{}',

    PRIMARY KEY (task_id, stage),
    FOREIGN KEY (task_id) REFERENCES tasks(task_id) ON DELETE CASCADE
);
"""


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    # 设置 PRAGMA
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA foreign_keys = ON;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    # 创建表
    await conn.execute(_TASKS_DDL)
    await conn.execute(_CONTRACT_TASKS_DDL)
    await conn.execute(_STAGE_RESULTS_DDL)

    # 创建索引
    for idx_sql in _TASKS_INDEXES + _CONTRACT_TASKS_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效

    Returns:
        True 如果 WAL 模式已启用
    """
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"
