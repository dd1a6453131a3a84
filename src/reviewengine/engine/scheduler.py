"""ReviewScheduler -- 两个独立的固定间隔 sweep 循环

- 阶段 sweep（默认 8 秒）调用 aggregator.process_tasks_by_stage()
- 重试 sweep（默认 30 秒）调用 aggregator.retry_failed_tasks()

固定间隔：每次运行结束后才开始计时，同一循环的两次运行不会重叠。
所有 sweep 经过同一个信号量进入，饱和时循环等待而不是丢弃本次 sweep。
sweep 中逃逸的任何异常都被记录，不影响下一次调度。
"""

import asyncio
from collections.abc import Awaitable, Callable

import structlog
from ulid import ULID

from .aggregator import ContractReviewAggregator
from .config import SchedulerConfig

log = structlog.get_logger()

PROCESS_SWEEP = "process_tasks_by_stage"
RETRY_SWEEP = "retry_failed_tasks"


class ReviewScheduler:
    """审查任务调度器"""

    def __init__(
        self,
        aggregator: ContractReviewAggregator,
        config: SchedulerConfig | None = None,
    ) -> None:
        self._aggregator = aggregator
        self._config = config or SchedulerConfig()
        self._semaphore = asyncio.Semaphore(self._config.max_concurrent_sweeps)
        self._stopping = asyncio.Event()
        self._loops: list[asyncio.Task] = []
        self._sweep_counts: dict[str, int] = {PROCESS_SWEEP: 0, RETRY_SWEEP: 0}

    @property
    def running(self) -> bool:
        return any(not loop.done() for loop in self._loops)

    @property
    def sweep_counts(self) -> dict[str, int]:
        return dict(self._sweep_counts)

    def start(self) -> None:
        """按配置启动 sweep 循环；已启动时忽略"""
        if self.running:
            return
        if not self._config.enabled:
            log.info("scheduler_disabled")
            return

        self._stopping.clear()
        if self._config.process_enabled:
            self._loops.append(
                asyncio.create_task(
                    self._run_loop(
                        PROCESS_SWEEP,
                        self._aggregator.process_tasks_by_stage,
                        self._config.process_delay_s,
                    ),
                    name=f"reviewengine-{PROCESS_SWEEP}",
                )
            )
        if self._config.retry_enabled:
            self._loops.append(
                asyncio.create_task(
                    self._run_loop(
                        RETRY_SWEEP,
                        self._aggregator.retry_failed_tasks,
                        self._config.retry_delay_s,
                    ),
                    name=f"reviewengine-{RETRY_SWEEP}",
                )
            )
        log.info(
            "scheduler_started",
            process_enabled=self._config.process_enabled,
            retry_enabled=self._config.retry_enabled,
            process_delay_s=self._config.process_delay_s,
            retry_delay_s=self._config.retry_delay_s,
        )

    async def stop(self) -> None:
        """停止接受新的调度，等待在途 sweep 完成（超时后取消）"""
        if not self._loops:
            return
        self._stopping.set()
        loops, self._loops = self._loops, []

        done, pending = await asyncio.wait(loops, timeout=self._config.shutdown_grace_s)
        for loop in pending:
            loop.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            log.warning("scheduler_stop_cancelled_sweeps", cancelled=len(pending))
        log.info("scheduler_stopped", finished=len(done), cancelled=len(pending))

    async def run_once(self, sweep: str) -> None:
        """立即执行一次指定 sweep（同样经过信号量与异常隔离）"""
        if sweep == PROCESS_SWEEP:
            await self._run_sweep(sweep, self._aggregator.process_tasks_by_stage)
        elif sweep == RETRY_SWEEP:
            await self._run_sweep(sweep, self._aggregator.retry_failed_tasks)
        else:
            raise ValueError(f"unknown sweep: {sweep}")

    async def _run_loop(
        self,
        name: str,
        sweep: Callable[[], Awaitable[object]],
        delay_s: float,
    ) -> None:
        while not self._stopping.is_set():
            await self._run_sweep(name, sweep)
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=delay_s)
            except TimeoutError:
                continue

    async def _run_sweep(self, name: str, sweep: Callable[[], Awaitable[object]]) -> None:
        async with self._semaphore:
            sweep_id = str(ULID())
            with structlog.contextvars.bound_contextvars(sweep=name, sweep_id=sweep_id):
                try:
                    await sweep()
                except Exception as e:
                    log.error(
                        "sweep_failed",
                        error=str(e),
                        error_type=type(e).__name__,
                        exc_info=True,
                    )
                finally:
                    self._sweep_counts[name] += 1
