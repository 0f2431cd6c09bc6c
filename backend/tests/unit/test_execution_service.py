# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit tests for ExecutionService

Tests the run lifecycle: claim, traverse, finalize.
"""

from unittest.mock import AsyncMock

import pytest

from agentflow.core.errors import ConflictError, ExecutionError, NotFoundError, ValidationError
from agentflow.engine.lifecycle import ExecutionLifecycle
from agentflow.engine.models import ExecutionStatus, StepStatus, TriggerType, WorkflowStatus, WorkflowWebhook
from agentflow.services.execution_service import ExecutionService
from tests.helpers import edge, make_workflow, node


@pytest.fixture
def execution_service(store, executor):
    """ExecutionService over the in-memory store"""
    return ExecutionService(store, executor, lifecycle=ExecutionLifecycle(store))


async def seed(store, nodes, edges):
    workflow = make_workflow(nodes, edges)
    await store.save_workflow(workflow)
    return workflow


LINEAR = (
    [node("t", "trigger"), node("msg", "action", "send_message"), node("end", "end")],
    [edge("t", "msg"), edge("msg", "end")],
)


class TestCreateExecution:
    """Test create_execution method"""

    @pytest.mark.asyncio
    async def test_creates_pending_execution(self, execution_service, store):
        """New executions start pending with the trigger payload"""
        await seed(store, *LINEAR)

        execution = await execution_service.create_execution("wf-1", {"user": "u1"})

        stored = await store.get_execution(execution.id)
        assert stored.status == ExecutionStatus.PENDING
        assert stored.trigger_data == {"user": "u1"}
        assert stored.started_at is None

    @pytest.mark.asyncio
    async def test_unknown_workflow(self, execution_service):
        """Should raise NotFoundError for a workflow that does not exist"""
        with pytest.raises(NotFoundError):
            await execution_service.create_execution("missing")


class TestRunExecution:
    """Test run_execution method"""

    @pytest.mark.asyncio
    async def test_successful_run(self, execution_service, store):
        """Completed run reports success and finalizes the record"""
        await seed(store, *LINEAR)
        execution = await execution_service.create_execution("wf-1")

        result = await execution_service.run_execution(execution.id)

        assert result.success is True
        assert result.execution_id == execution.id
        assert result.steps_executed == 3
        assert result.duration_ms >= 0

        stored = await store.get_execution(execution.id)
        assert stored.status == ExecutionStatus.COMPLETED
        assert stored.started_at is not None
        assert stored.completed_at is not None
        assert stored.duration_ms == result.duration_ms
        assert stored.error_message is None

    @pytest.mark.asyncio
    async def test_failed_step_fails_execution(self, execution_service, store):
        """A failed step makes the execution failed, not an error response"""
        await seed(
            store,
            [node("t", "trigger"), node("agent", "action", "run_agent", agent_id="not-a-uuid")],
            [edge("t", "agent")],
        )
        execution = await execution_service.create_execution("wf-1")

        result = await execution_service.run_execution(execution.id)

        assert result.success is False
        assert result.steps_executed == 2
        stored = await store.get_execution(execution.id)
        assert stored.status == ExecutionStatus.FAILED

        steps = await store.list_steps(execution.id)
        assert steps[-1].status == StepStatus.FAILED
        assert steps[-1].error_message == "Invalid agent_id"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("execution_id", [None, "", "abc", 42, "../../etc/passwd"])
    async def test_malformed_id(self, execution_service, execution_id):
        """Should raise ValidationError before any lookup"""
        with pytest.raises(ValidationError, match="Invalid execution_id"):
            await execution_service.run_execution(execution_id)

    @pytest.mark.asyncio
    async def test_unknown_execution(self, execution_service):
        """Should raise NotFoundError for a well-formed but unknown id"""
        with pytest.raises(NotFoundError):
            await execution_service.run_execution("3f2b8c1e-9a4d-4e6f-b1c2-7d8e9f0a1b2c")

    @pytest.mark.asyncio
    async def test_second_run_conflicts(self, execution_service, store):
        """An execution runs at most once"""
        await seed(store, *LINEAR)
        execution = await execution_service.create_execution("wf-1")
        await execution_service.run_execution(execution.id)

        with pytest.raises(ConflictError):
            await execution_service.run_execution(execution.id)

        # The step log is not extended by the rejected run
        assert len(await store.list_steps(execution.id)) == 3

    @pytest.mark.asyncio
    async def test_no_trigger_fails_execution(self, execution_service, store):
        """Missing trigger: 400 to the caller, execution failed with no steps"""
        await seed(store, [node("msg", "action", "send_message")], [])
        execution = await execution_service.create_execution("wf-1")

        with pytest.raises(ValidationError, match="No trigger node found"):
            await execution_service.run_execution(execution.id)

        stored = await store.get_execution(execution.id)
        assert stored.status == ExecutionStatus.FAILED
        assert stored.error_message == "No trigger node found"
        assert stored.completed_at is not None
        assert stored.duration_ms is not None
        assert await store.list_steps(execution.id) == []

    @pytest.mark.asyncio
    async def test_unexpected_error_finalizes_as_failed(self, store, executor):
        """Crashes outside a step never leave the execution running"""
        executor.run = AsyncMock(side_effect=RuntimeError("disk on fire"))
        service = ExecutionService(store, executor)
        await seed(store, *LINEAR)
        execution = await service.create_execution("wf-1")

        with pytest.raises(ExecutionError) as exc_info:
            await service.run_execution(execution.id)

        assert exc_info.value.message == "Workflow execution failed"
        assert "disk on fire" not in exc_info.value.message

        stored = await store.get_execution(execution.id)
        assert stored.status == ExecutionStatus.FAILED
        assert stored.error_message == "Workflow execution failed"

    @pytest.mark.asyncio
    async def test_finalize_write_error_falls_back_to_failed(self, execution_service, store):
        """If recording the final status fails, the run is still closed as failed"""
        execution_service.lifecycle.finish = AsyncMock(side_effect=OSError("disk full"))
        await seed(store, *LINEAR)
        execution = await execution_service.create_execution("wf-1")

        with pytest.raises(ExecutionError, match="Workflow execution failed"):
            await execution_service.run_execution(execution.id)

        stored = await store.get_execution(execution.id)
        assert stored.status == ExecutionStatus.FAILED
        assert stored.error_message == "Workflow execution failed"
        assert stored.completed_at is not None

    @pytest.mark.asyncio
    async def test_condition_routes_large_amount_to_email(self, execution_service, store):
        """trigger -> condition(amount > 100) -> send_email | end, with amount 200"""
        await seed(
            store,
            [
                node("t", "trigger"),
                node("check", "condition", condition="trigger_data.amount > 100"),
                node("email", "action", "send_email", to="ops@example.com", subject="Large order"),
                node("end", "end"),
            ],
            [
                edge("t", "check"),
                edge("check", "email", "true"),
                edge("check", "end", "false"),
            ],
        )
        execution = await execution_service.create_execution("wf-1", {"amount": 200})

        result = await execution_service.run_execution(execution.id)

        assert result.success is True
        assert result.steps_executed == 3

        steps = await store.list_steps(execution.id)
        assert [s.node_id for s in steps] == ["t", "check", "email"]
        assert steps[1].output_data == {"condition": "trigger_data.amount > 100", "result": True}
        assert steps[2].output_data == {
            "email_sent": True,
            "to": "ops@example.com",
            "subject": "Large order",
        }

        stored = await store.get_execution(execution.id)
        assert stored.status == ExecutionStatus.COMPLETED


class TestWebhookTrigger:
    """Test trigger_from_webhook and run_triggered_execution"""

    async def issue(self, store, is_active=True):
        webhook = WorkflowWebhook(workflow_id="wf-1", token="tok-1", is_active=is_active)
        await store.save_webhook(webhook)
        return webhook

    @pytest.mark.asyncio
    async def test_creates_pending_webhook_execution(self, execution_service, store):
        """The inbound request becomes the trigger payload"""
        await seed(store, *LINEAR)
        await self.issue(store)

        result = await execution_service.trigger_from_webhook(
            "tok-1",
            "post",
            body={"amount": 200},
            query={"source": "shop"},
            headers={"Content-Type": "application/json", "Authorization": "Bearer abc", "Cookie": "s=1"},
        )

        assert result.success is True
        assert result.message == "Workflow triggered"

        execution = await store.get_execution(result.execution_id)
        assert execution.status == ExecutionStatus.PENDING
        assert execution.trigger_type == TriggerType.WEBHOOK
        assert execution.trigger_data == {
            "body": {"amount": 200},
            "query": {"source": "shop"},
            "method": "POST",
            "headers": {"content-type": "application/json"},
        }
        assert (await store.get_webhook("tok-1")).last_triggered_at is not None

    @pytest.mark.asyncio
    async def test_missing_body_is_empty_object(self, execution_service, store):
        await seed(store, *LINEAR)
        await self.issue(store)

        result = await execution_service.trigger_from_webhook("tok-1", "GET")

        execution = await store.get_execution(result.execution_id)
        assert execution.trigger_data == {"body": {}, "query": {}, "method": "GET", "headers": {}}

    @pytest.mark.asyncio
    async def test_missing_token(self, execution_service):
        with pytest.raises(ValidationError, match="Missing webhook token"):
            await execution_service.trigger_from_webhook("", "POST")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", ["unknown", "tok-1"])
    async def test_unknown_or_inactive_token(self, execution_service, store, token):
        """Unknown and deactivated tokens look the same to the caller"""
        await seed(store, *LINEAR)
        await self.issue(store, is_active=False)

        with pytest.raises(NotFoundError) as exc_info:
            await execution_service.trigger_from_webhook(token, "POST")

        assert exc_info.value.message == "Invalid or inactive webhook"
        assert token not in exc_info.value.message
        assert await store.list_executions() == []

    @pytest.mark.asyncio
    async def test_inactive_workflow(self, execution_service, store):
        workflow = await seed(store, *LINEAR)
        await store.save_workflow(workflow.model_copy(update={"status": WorkflowStatus.INACTIVE}))
        await self.issue(store)

        with pytest.raises(ValidationError, match="Workflow is not active"):
            await execution_service.trigger_from_webhook("tok-1", "POST")

        assert await store.list_executions() == []

    @pytest.mark.asyncio
    async def test_store_failure(self, execution_service, store):
        await seed(store, *LINEAR)
        await self.issue(store)
        store.insert_execution = AsyncMock(side_effect=OSError("read-only file system"))

        with pytest.raises(ExecutionError, match="Failed to create execution"):
            await execution_service.trigger_from_webhook("tok-1", "POST")

        assert (await store.get_webhook("tok-1")).last_triggered_at is None

    @pytest.mark.asyncio
    async def test_triggered_run_uses_request_body(self, execution_service, store):
        """Conditions see the webhook body under trigger_data.body"""
        await seed(
            store,
            [
                node("t", "trigger"),
                node("check", "condition", condition="trigger_data.body.amount > 100"),
                node("big", "end"),
            ],
            [edge("t", "check"), edge("check", "big", "true")],
        )
        await self.issue(store)
        trigger = await execution_service.trigger_from_webhook("tok-1", "POST", body={"amount": 200})

        result = await execution_service.run_triggered_execution(trigger.execution_id)

        assert result.success is True
        assert result.steps_executed == 3
        stored = await store.get_execution(trigger.execution_id)
        assert stored.status == ExecutionStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_triggered_run_logs_instead_of_raising(self, execution_service, store):
        """A run nobody waits on reports errors through the record only"""
        await seed(store, [node("msg", "action", "send_message")], [])
        await self.issue(store)
        trigger = await execution_service.trigger_from_webhook("tok-1", "POST")

        assert await execution_service.run_triggered_execution(trigger.execution_id) is None

        stored = await store.get_execution(trigger.execution_id)
        assert stored.status == ExecutionStatus.FAILED
        assert stored.error_message == "No trigger node found"


class TestQueries:
    """Test read operations"""

    @pytest.mark.asyncio
    async def test_execution_detail_includes_steps(self, execution_service, store):
        await seed(store, *LINEAR)
        execution = await execution_service.create_execution("wf-1")
        await execution_service.run_execution(execution.id)

        detail = await execution_service.get_execution_detail(execution.id)

        assert detail.execution.id == execution.id
        assert [s.node_id for s in detail.steps] == ["t", "msg", "end"]

    @pytest.mark.asyncio
    async def test_list_steps_unknown_execution(self, execution_service):
        with pytest.raises(NotFoundError):
            await execution_service.list_steps("missing")

    @pytest.mark.asyncio
    async def test_list_executions_by_status(self, execution_service, store):
        await seed(store, *LINEAR)
        first = await execution_service.create_execution("wf-1")
        await execution_service.create_execution("wf-1")
        await execution_service.run_execution(first.id)

        completed = await execution_service.list_executions(status="completed")
        pending = await execution_service.list_executions(status="pending")

        assert [e.id for e in completed] == [first.id]
        assert len(pending) == 1

    @pytest.mark.asyncio
    async def test_list_executions_rejects_unknown_status(self, execution_service):
        with pytest.raises(ValidationError):
            await execution_service.list_executions(status="exploded")
