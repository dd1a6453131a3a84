"""RetryPolicy 单元测试

测试内容：
1. 默认值与预置策略
2. 固定间隔 / 指数退避延迟计算（单调、封顶、溢出）
3. can_retry 边界
4. 参数校验
"""

import pytest
from pydantic import ValidationError
from reviewengine.core.models import RetryPolicy


class TestRetryPolicyDefaults:
    """默认策略"""

    def test_default_values(self):
        policy = RetryPolicy.default_policy()
        assert policy.max_retries == 3
        assert policy.initial_delay_ms == 1000
        assert policy.max_delay_ms == 30000
        assert policy.backoff_multiplier == 2.0
        assert policy.exponential_backoff is False

    def test_no_retry(self):
        policy = RetryPolicy.no_retry()
        assert policy.max_retries == 0
        assert policy.can_retry(0) is False

    def test_frozen(self):
        """值对象不可变"""
        policy = RetryPolicy()
        with pytest.raises(ValidationError):
            policy.max_retries = 10


class TestCalculateDelay:
    """延迟计算"""

    def test_constant_delay_without_backoff(self):
        policy = RetryPolicy(initial_delay_ms=500, max_delay_ms=5000)
        assert {policy.calculate_delay(n) for n in range(6)} == {500}

    def test_exponential_backoff(self):
        policy = RetryPolicy(
            initial_delay_ms=1000,
            max_delay_ms=30000,
            backoff_multiplier=2.0,
            exponential_backoff=True,
        )
        assert policy.calculate_delay(0) == 1000
        assert policy.calculate_delay(1) == 2000
        assert policy.calculate_delay(2) == 4000
        assert policy.calculate_delay(3) == 8000

    def test_exponential_backoff_is_capped(self):
        policy = RetryPolicy(max_delay_ms=5000, exponential_backoff=True)
        assert policy.calculate_delay(10) == 5000

    def test_exponential_backoff_is_monotonic(self):
        policy = RetryPolicy(
            initial_delay_ms=100,
            max_delay_ms=60000,
            backoff_multiplier=1.5,
            exponential_backoff=True,
        )
        delays = [policy.calculate_delay(n) for n in range(20)]
        assert delays == sorted(delays)
        assert max(delays) <= 60000

    def test_huge_retry_count_does_not_overflow(self):
        policy = RetryPolicy(exponential_backoff=True)
        assert policy.calculate_delay(100000) == policy.max_delay_ms

    def test_negative_retry_count_uses_initial_delay(self):
        policy = RetryPolicy(exponential_backoff=True)
        assert policy.calculate_delay(-1) == policy.initial_delay_ms


class TestCanRetry:
    """重试资格"""

    @pytest.mark.parametrize(
        "retry_count,expected",
        [(0, True), (1, True), (2, True), (3, False), (4, False)],
    )
    def test_can_retry_boundary(self, retry_count, expected):
        assert RetryPolicy(max_retries=3).can_retry(retry_count) is expected


class TestValidation:
    """参数校验"""

    def test_max_delay_must_not_be_less_than_initial(self):
        with pytest.raises(ValidationError):
            RetryPolicy(initial_delay_ms=5000, max_delay_ms=1000)

    def test_negative_max_retries_rejected(self):
        with pytest.raises(ValidationError):
            RetryPolicy(max_retries=-1)

    def test_non_positive_multiplier_rejected(self):
        with pytest.raises(ValidationError):
            RetryPolicy(backoff_multiplier=0)

    def test_shrinking_multiplier_rejected_for_exponential(self):
        with pytest.raises(ValidationError):
            RetryPolicy(exponential_backoff=True, backoff_multiplier=0.5)

    def test_fractional_multiplier_allowed_for_fixed_delay(self):
        policy = RetryPolicy(backoff_multiplier=0.5, initial_delay_ms=2000, max_delay_ms=2000)
        assert [policy.calculate_delay(n) for n in range(3)] == [2000, 2000, 2000]

    def test_unit_multiplier_keeps_delay_constant(self):
        policy = RetryPolicy(
            exponential_backoff=True,
            backoff_multiplier=1.0,
            initial_delay_ms=1500,
            max_delay_ms=30000,
        )
        assert [policy.calculate_delay(n) for n in range(4)] == [1500] * 4
