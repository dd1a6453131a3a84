"""RetryPolicy 值对象 -- 纯函数计算重试资格与退避延迟

不可变（frozen），不做任何 I/O。
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_DELAY_MS = 1000
DEFAULT_MAX_DELAY_MS = 30000
DEFAULT_BACKOFF_MULTIPLIER = 2.0


class RetryPolicy(BaseModel):
    """重试策略

    exponential_backoff 关闭时延迟恒为 initial_delay_ms；
    开启时为 initial_delay_ms * backoff_multiplier ** retry_count，并以 max_delay_ms 封顶。
    开启指数退避时要求 backoff_multiplier >= 1，保证延迟随 retry_count 单调不减。
    """

    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(
        default=DEFAULT_MAX_RETRIES, ge=0, description="最大重试次数"
    )
    initial_delay_ms: int = Field(
        default=DEFAULT_INITIAL_DELAY_MS, ge=0, description="初始重试间隔（毫秒）"
    )
    max_delay_ms: int = Field(
        default=DEFAULT_MAX_DELAY_MS, ge=0, description="最大重试间隔（毫秒）"
    )
    backoff_multiplier: float = Field(
        default=DEFAULT_BACKOFF_MULTIPLIER, gt=0, description="退避倍数"
    )
    exponential_backoff: bool = Field(default=False, description="是否指数退避")

    @model_validator(mode="after")
    def _check_bounds(self) -> "RetryPolicy":
        if self.max_delay_ms < self.initial_delay_ms:
            raise ValueError("max_delay_ms must be >= initial_delay_ms")
        if self.exponential_backoff and self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be >= 1 when exponential_backoff is enabled")
        return self

    def calculate_delay(self, retry_count: int) -> int:
        """计算第 retry_count 次重试前的等待时间（毫秒）"""
        if not self.exponential_backoff:
            return self.initial_delay_ms
        try:
            delay = self.initial_delay_ms * self.backoff_multiplier ** max(retry_count, 0)
        except OverflowError:
            return self.max_delay_ms
        return int(min(delay, self.max_delay_ms))

    def can_retry(self, current_retry_count: int) -> bool:
        """当前已重试次数是否仍允许再重试"""
        return current_retry_count < self.max_retries

    @classmethod
    def default_policy(cls) -> "RetryPolicy":
        """默认策略：最多 3 次，固定 1 秒间隔"""
        return cls()

    @classmethod
    def no_retry(cls) -> "RetryPolicy":
        """不重试"""
        return cls(max_retries=0)
