"""SchedulerConfig -- 调度器配置加载

从环境变量加载；非法数值记录 warning 并回退默认值，不阻塞启动。
"""

import os

import structlog
from pydantic import BaseModel, Field

log = structlog.get_logger()


class SchedulerConfig(BaseModel):
    """调度器配置

    环境变量:
        REVIEWENGINE_SCHEDULER_ENABLED: 总开关（默认 true）
        REVIEWENGINE_SCHEDULER_PROCESS_ENABLED: 阶段 sweep 开关（默认 true）
        REVIEWENGINE_SCHEDULER_RETRY_ENABLED: 重试 sweep 开关（默认 true）
        REVIEWENGINE_SCHEDULER_PROCESS_DELAY_S: 阶段 sweep 固定间隔（秒，默认 8）
        REVIEWENGINE_SCHEDULER_RETRY_DELAY_S: 重试 sweep 固定间隔（秒，默认 30）
        REVIEWENGINE_SCHEDULER_MAX_CONCURRENT_SWEEPS: 同时执行的 sweep 上限（默认 2）
        REVIEWENGINE_SCHEDULER_SHUTDOWN_GRACE_S: 停止时等待在途 sweep 的时间（秒，默认 30）
    """

    enabled: bool = Field(default=True, description="调度器总开关")
    process_enabled: bool = Field(default=True, description="阶段 sweep 开关")
    retry_enabled: bool = Field(default=True, description="重试 sweep 开关")
    process_delay_s: float = Field(default=8.0, gt=0, description="阶段 sweep 间隔（秒）")
    retry_delay_s: float = Field(default=30.0, gt=0, description="重试 sweep 间隔（秒）")
    max_concurrent_sweeps: int = Field(default=2, ge=1, description="并发 sweep 上限")
    shutdown_grace_s: float = Field(default=30.0, ge=0, description="停止等待时间（秒）")


_BOOL_ENV = {
    "REVIEWENGINE_SCHEDULER_ENABLED": "enabled",
    "REVIEWENGINE_SCHEDULER_PROCESS_ENABLED": "process_enabled",
    "REVIEWENGINE_SCHEDULER_RETRY_ENABLED": "retry_enabled",
}

_NUMBER_ENV = {
    "REVIEWENGINE_SCHEDULER_PROCESS_DELAY_S": ("process_delay_s", float),
    "REVIEWENGINE_SCHEDULER_RETRY_DELAY_S": ("retry_delay_s", float),
    "REVIEWENGINE_SCHEDULER_MAX_CONCURRENT_SWEEPS": ("max_concurrent_sweeps", int),
    "REVIEWENGINE_SCHEDULER_SHUTDOWN_GRACE_S": ("shutdown_grace_s", float),
}


def load_scheduler_config() -> SchedulerConfig:
    """从环境变量加载调度器配置

    Returns:
        SchedulerConfig 实例
    """
    kwargs: dict = {}

    for env_var, field in _BOOL_ENV.items():
        if val := os.environ.get(env_var):
            kwargs[field] = val.strip().lower() in ("1", "true", "yes", "on")

    for env_var, (field, cast) in _NUMBER_ENV.items():
        if val := os.environ.get(env_var):
            try:
                number = cast(val)
            except ValueError:
                number = None
            if number is None or number <= 0:
                log.warning(
                    "invalid_scheduler_config",
                    env_var=env_var,
                    value=val,
                    fallback=SchedulerConfig.model_fields[field].default,
                )
                # 使用默认值，不阻塞启动
                continue
            kwargs[field] = number

    return SchedulerConfig(**kwargs)
