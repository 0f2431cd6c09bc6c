# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit tests for FileExecutionStore
"""

import json
from datetime import timedelta

import pytest

from agentflow.core.errors import ConflictError, NotFoundError, ValidationError
from agentflow.engine.models import ExecutionStatus, ExecutionStep, StepStatus, WorkflowWebhook, utcnow
from agentflow.store.file_store import FileExecutionStore
from tests.helpers import edge, make_execution, make_workflow, node


@pytest.fixture
def file_store(tmp_path):
    return FileExecutionStore(tmp_path / "data")


def make_step(execution_id, node_id):
    now = utcnow()
    return ExecutionStep(
        execution_id=execution_id,
        node_id=node_id,
        status=StepStatus.COMPLETED,
        input_data={"keys": ["trigger_data"]},
        output_data={"ok": True},
        started_at=now,
        completed_at=now,
    )


class TestWorkflows:
    @pytest.mark.asyncio
    async def test_save_and_load(self, file_store, tmp_path):
        workflow = make_workflow([node("t", "trigger"), node("e", "end")], [edge("t", "e")])

        await file_store.save_workflow(workflow)

        loaded = await file_store.get_workflow("wf-1")
        assert loaded == workflow
        assert (tmp_path / "data" / "workflows" / "wf-1.json").exists()
        assert [n.id for n in await file_store.get_nodes("wf-1")] == ["t", "e"]
        assert [e.target_node_id for e in await file_store.get_edges("wf-1")] == ["e"]

    @pytest.mark.asyncio
    async def test_missing_workflow(self, file_store):
        assert await file_store.get_workflow("nope") is None
        assert await file_store.get_nodes("nope") == []

    @pytest.mark.asyncio
    async def test_path_traversal_ids(self, file_store):
        assert await file_store.get_workflow("../../etc/passwd") is None

        workflow = make_workflow([node("t", "trigger")], [], workflow_id="../escape")
        with pytest.raises(ValidationError):
            await file_store.save_workflow(workflow)

    @pytest.mark.asyncio
    async def test_list_skips_invalid_files(self, file_store, tmp_path):
        await file_store.save_workflow(make_workflow([node("t", "trigger")], []))
        (tmp_path / "data" / "workflows" / "broken.json").write_text("{not json")

        workflows = await file_store.list_workflows()

        assert [w.id for w in workflows] == ["wf-1"]


class TestWebhooks:
    @pytest.mark.asyncio
    async def test_save_get_and_list(self, file_store, tmp_path):
        first = WorkflowWebhook(workflow_id="wf-1", token="tok-first", created_at=utcnow() - timedelta(seconds=5))
        second = WorkflowWebhook(workflow_id="wf-1", token="tok-second")
        other = WorkflowWebhook(workflow_id="wf-2", token="tok-other")
        for webhook in (second, other, first):
            await file_store.save_webhook(webhook)

        assert await file_store.get_webhook("tok-first") == first
        assert (tmp_path / "data" / "webhooks" / "tok-first.json").exists()
        assert [w.token for w in await file_store.list_webhooks("wf-1")] == ["tok-first", "tok-second"]

    @pytest.mark.asyncio
    async def test_save_replaces_by_token(self, file_store):
        webhook = WorkflowWebhook(workflow_id="wf-1", token="tok")
        await file_store.save_webhook(webhook)

        touched = webhook.model_copy(update={"last_triggered_at": utcnow()})
        await file_store.save_webhook(touched)

        assert (await file_store.get_webhook("tok")).last_triggered_at == touched.last_triggered_at
        assert len(await file_store.list_webhooks("wf-1")) == 1

    @pytest.mark.asyncio
    async def test_unknown_or_unsafe_token(self, file_store):
        assert await file_store.get_webhook("missing") is None
        assert await file_store.get_webhook("../../etc/passwd") is None

        with pytest.raises(ValidationError):
            await file_store.save_webhook(WorkflowWebhook(workflow_id="wf-1", token="../escape"))


class TestExecutions:
    @pytest.mark.asyncio
    async def test_insert_and_get(self, file_store):
        execution = make_execution(trigger_data={"a": 1})
        await file_store.insert_execution(execution)

        loaded = await file_store.get_execution(execution.id)
        assert loaded.status == ExecutionStatus.PENDING
        assert loaded.trigger_data == {"a": 1}

    @pytest.mark.asyncio
    async def test_duplicate_insert_conflicts(self, file_store):
        execution = make_execution()
        await file_store.insert_execution(execution)

        with pytest.raises(ConflictError):
            await file_store.insert_execution(execution)

    @pytest.mark.asyncio
    async def test_claim_only_once(self, file_store):
        execution = make_execution()
        await file_store.insert_execution(execution)

        claimed = await file_store.claim_execution(execution.id)
        assert claimed.status == ExecutionStatus.RUNNING
        assert claimed.started_at is not None

        with pytest.raises(ConflictError):
            await file_store.claim_execution(execution.id)

    @pytest.mark.asyncio
    async def test_claim_unknown_execution(self, file_store):
        with pytest.raises(NotFoundError):
            await file_store.claim_execution("does-not-exist")

    @pytest.mark.asyncio
    async def test_terminal_execution_is_frozen(self, file_store):
        execution = make_execution()
        await file_store.insert_execution(execution)
        await file_store.claim_execution(execution.id)
        await file_store.update_execution(execution.id, status=ExecutionStatus.COMPLETED, duration_ms=5)

        with pytest.raises(ConflictError):
            await file_store.update_execution(execution.id, duration_ms=99)

        assert (await file_store.get_execution(execution.id)).duration_ms == 5

    @pytest.mark.asyncio
    async def test_list_filters_and_orders_newest_first(self, file_store):
        older = make_execution(workflow_id="wf-1")
        older.created_at = utcnow() - timedelta(minutes=5)
        newer = make_execution(workflow_id="wf-1")
        other = make_execution(workflow_id="wf-2")
        for execution in (older, newer, other):
            await file_store.insert_execution(execution)

        listed = await file_store.list_executions(workflow_id="wf-1")
        assert [e.id for e in listed] == [newer.id, older.id]

        assert len(await file_store.list_executions()) == 3
        assert len(await file_store.list_executions(limit=1)) == 1
        assert await file_store.list_executions(status="completed") == []


class TestStepLog:
    @pytest.mark.asyncio
    async def test_steps_are_appended_in_order(self, file_store, tmp_path):
        execution = make_execution()
        await file_store.insert_execution(execution)

        for node_id in ("t", "a", "b"):
            await file_store.insert_step(make_step(execution.id, node_id))

        steps = await file_store.list_steps(execution.id)
        assert [s.node_id for s in steps] == ["t", "a", "b"]

        steps_file = tmp_path / "data" / "executions" / execution.id / "steps.jsonl"
        lines = steps_file.read_text().splitlines()
        assert len(lines) == 3
        assert json.loads(lines[0])["node_id"] == "t"

    @pytest.mark.asyncio
    async def test_unknown_execution_has_no_steps(self, file_store):
        assert await file_store.list_steps("missing") == []
        assert await file_store.list_steps("../../etc") == []
