"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、默认超时/重试次数与系统操作者标识等可配置常量。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("REVIEWENGINE_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "REVIEWENGINE_DB_PATH",
        str(_get_base_dir() / "sqlite" / "reviewengine.db"),
    )


# sweep 与执行器写入 audit.updated_by 的操作者
SYSTEM_ACTOR: str = os.environ.get("REVIEWENGINE_SYSTEM_ACTOR", "scheduler")

# 任务默认超时（秒）
DEFAULT_TIMEOUT_SECONDS: int = int(
    os.environ.get("REVIEWENGINE_DEFAULT_TIMEOUT_SECONDS", "3600")
)

# 阶段结果中自由文本输出的最大长度
STAGE_OUTPUT_MAX_LENGTH: int = 2000
