"""端到端：合同审查流水线

测试内容：
1. API 创建任务 -> 三轮阶段 sweep -> REVIEW_COMPLETED，三个阶段结果齐全
2. 条款抽取进行中：多轮轮询后才推进
3. 高风险结论照常生成报告
4. 阶段失败 -> 重试 sweep 复活 -> 保留失败阶段重新执行
5. 持续失败直到重试耗尽，永久失败后不再被选中
6. 取消的任务不再被 sweep 处理
"""

from datetime import UTC, datetime, timedelta

from httpx import AsyncClient
from reviewengine.engine import PROCESS_SWEEP, RETRY_SWEEP


async def _create(client: AsyncClient, **extra) -> str:
    payload = {
        "task_name": "设备采购合同审查",
        "contract_id": "CT-E2E",
        "file_uuid": "file-e2e",
        "contract_title": "设备采购合同",
        "retry_policy": {"max_retries": 2, "initial_delay_ms": 0, "max_delay_ms": 0},
    }
    payload.update(extra)
    resp = await client.post("/api/contract-review/tasks", json=payload)
    assert resp.status_code == 201
    return resp.json()["task"]["task_id"]


async def _detail(client: AsyncClient, task_id: str) -> dict:
    resp = await client.get(f"/api/tasks/{task_id}")
    assert resp.status_code == 200
    return resp.json()


async def _sweep(app, name: str = PROCESS_SWEEP, times: int = 1) -> None:
    for _ in range(times):
        await app.state.manual_scheduler.run_once(name)


class TestReviewPipeline:
    """完整流水线"""

    async def test_full_pipeline(self, client: AsyncClient, integration_app):
        task_id = await _create(client)

        await _sweep(integration_app)
        detail = await _detail(client, task_id)
        assert detail["task"]["status"] == "COMPLETED"
        assert detail["task"]["current_stage"] == "MODEL_REVIEW"

        await _sweep(integration_app, times=2)
        detail = await _detail(client, task_id)
        assert detail["task"]["status"] == "COMPLETED"
        assert detail["task"]["current_stage"] == "REVIEW_COMPLETED"
        assert detail["task"]["retry_count"] == 0
        assert detail["task"]["error_message"] is None

        results = {r["stage"]: r for r in detail["stage_results"]}
        assert set(results) == {"CLAUSE_EXTRACTION", "MODEL_REVIEW", "REPORT_GENERATION"}
        assert all(r["success"] for r in results.values())
        report = results["REPORT_GENERATION"]["data"]
        assert report["contract_id"] == "CT-E2E"
        assert report["summary"]["overall_risk_level"] == "MEDIUM"

        # 终点阶段的任务不再被 sweep 选中
        version = detail["task"]["audit"]["version"]
        await _sweep(integration_app)
        assert (await _detail(client, task_id))["task"]["audit"]["version"] == version

    async def test_pending_extraction_polls(self, client: AsyncClient, integration_app):
        task_id = await _create(client, custom_settings={"simulated_pending_polls": 2})

        await _sweep(integration_app, times=2)
        detail = await _detail(client, task_id)
        assert detail["task"]["status"] == "RUNNING"
        assert detail["task"]["current_stage"] == "CLAUSE_EXTRACTION"
        assert detail["stage_results"] == []

        await _sweep(integration_app)
        detail = await _detail(client, task_id)
        assert detail["task"]["current_stage"] == "MODEL_REVIEW"

    async def test_high_risk_verdict_completes(self, client: AsyncClient, integration_app):
        task_id = await _create(client, custom_settings={"simulated_risk_level": "HIGH"})

        await _sweep(integration_app, times=3)

        detail = await _detail(client, task_id)
        assert detail["task"]["current_stage"] == "REVIEW_COMPLETED"
        report = next(
            r for r in detail["stage_results"] if r["stage"] == "REPORT_GENERATION"
        )
        assert report["data"]["summary"]["high_risk_items"] == 2
        assert "高风险" in report["output"]

    async def test_cancelled_task_is_left_alone(self, client: AsyncClient, integration_app):
        task_id = await _create(client)
        await client.post(f"/api/tasks/{task_id}/cancel")

        await _sweep(integration_app, times=3)

        detail = await _detail(client, task_id)
        assert detail["task"]["status"] == "CANCELLED"
        assert detail["task"]["current_stage"] == "CLAUSE_EXTRACTION"
        assert detail["stage_results"] == []

    async def test_cancel_between_stages(self, client: AsyncClient, integration_app):
        task_id = await _create(client)
        await _sweep(integration_app)

        resp = await client.post(f"/api/tasks/{task_id}/cancel")
        assert resp.status_code == 200

        await _sweep(integration_app)
        detail = await _detail(client, task_id)
        assert detail["task"]["status"] == "CANCELLED"
        assert detail["task"]["current_stage"] == "MODEL_REVIEW"


class TestFailureAndRetry:
    """失败与重试"""

    async def test_failure_then_retry_resumes_same_stage(
        self, client: AsyncClient, integration_app
    ):
        task_id = await _create(client, custom_settings={"simulated_failure_stage": "MODEL_REVIEW"})

        await _sweep(integration_app, times=2)
        detail = await _detail(client, task_id)
        assert detail["task"]["status"] == "FAILED"
        assert detail["task"]["current_stage"] == "MODEL_REVIEW"
        assert detail["task"]["retry_count"] == 0
        assert detail["task"]["error_message"].startswith("模型审查程序执行失败")

        # 去掉故障注入，再由重试 sweep 复活
        store = integration_app.state.store_group.task_store
        task = await store.get_task(task_id)
        task.configuration.custom_settings.pop("simulated_failure_stage")
        await store.save_task(task)

        await _sweep(integration_app, RETRY_SWEEP)
        detail = await _detail(client, task_id)
        assert detail["task"]["status"] == "PENDING"
        assert detail["task"]["retry_count"] == 1
        assert detail["task"]["current_stage"] == "MODEL_REVIEW"

        await _sweep(integration_app, times=2)
        detail = await _detail(client, task_id)
        assert detail["task"]["current_stage"] == "REVIEW_COMPLETED"
        assert detail["task"]["retry_count"] == 1

    async def test_retry_until_exhausted(self, client: AsyncClient, integration_app):
        task_id = await _create(
            client, custom_settings={"simulated_failure_stage": "CLAUSE_EXTRACTION"}
        )

        # max_retries = 2：首次失败 + 两次重试后仍失败
        for _ in range(3):
            await _sweep(integration_app)
            await _sweep(integration_app, RETRY_SWEEP)

        detail = await _detail(client, task_id)
        assert detail["task"]["status"] == "FAILED"
        assert detail["task"]["retry_count"] == 2
        assert detail["task"]["retry_exhausted"] is True
        assert detail["task"]["error_message"].startswith("Max retry count exceeded")

        report = await integration_app.state.aggregator.retry_failed_tasks(
            now=datetime.now(UTC) + timedelta(days=1)
        )
        assert report.candidates == 0

        resp = await client.post(f"/api/tasks/{task_id}/retry")
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "RETRY_EXHAUSTED"

    async def test_manual_retry_via_api(self, client: AsyncClient, integration_app):
        task_id = await _create(
            client, custom_settings={"simulated_failure_stage": "CLAUSE_EXTRACTION"}
        )
        await _sweep(integration_app)

        resp = await client.post(f"/api/tasks/{task_id}/retry", headers={"X-Actor-Id": "ops"})
        assert resp.status_code == 200
        assert resp.json()["retry_count"] == 1

        stats = (await client.get("/api/tasks/statistics")).json()
        assert stats["by_status"]["PENDING"] == 1
