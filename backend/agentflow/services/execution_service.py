# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Execution Service - creates and runs workflow executions.

A run goes through the lifecycle manager:

    claim (pending -> running) -> traverse -> finish (completed | failed)

Every exit path after a successful claim finalizes the record, so an
execution is never left in ``running``.

Executions are created either by an API caller (manual) or by an inbound
webhook call, which records the request as trigger_data and runs it in
the background.
"""

from typing import Any, Dict, List, Optional

from agentflow.core.errors import AgentFlowError, ExecutionError, NotFoundError, ValidationError
from agentflow.core.logging import get_service_logger, is_sensitive_key
from agentflow.engine.actions import is_valid_uuid
from agentflow.engine.exceptions import MissingTriggerError
from agentflow.engine.executor import WorkflowExecutor
from agentflow.engine.lifecycle import ExecutionLifecycle
from agentflow.engine.models import (
    Execution,
    ExecutionDetail,
    ExecutionStatus,
    ExecutionStep,
    RunResult,
    TriggerType,
    WebhookTriggerResult,
    WorkflowStatus,
    utcnow,
)
from agentflow.store.base import ExecutionStore

logger = get_service_logger("execution")

EXECUTION_FAILED_MESSAGE = "Workflow execution failed"
INVALID_WEBHOOK_MESSAGE = "Invalid or inactive webhook"

# Credentials of the calling system never reach trigger_data
DROPPED_WEBHOOK_HEADERS = {"proxy-authorization", "x-api-key", "x-webhook-secret"}


class ExecutionService:
    """
    Service for managing workflow executions.

    Responsibilities:
    - Create pending executions for stored workflows
    - Run an execution exactly once
    - Turn inbound webhook calls into executions
    - Query execution records and their step logs
    """

    def __init__(
        self,
        store: ExecutionStore,
        executor: WorkflowExecutor,
        lifecycle: Optional[ExecutionLifecycle] = None,
    ):
        self.store = store
        self.executor = executor
        self.lifecycle = lifecycle or ExecutionLifecycle(store)

    async def create_execution(
        self,
        workflow_id: str,
        trigger_data: Optional[Dict[str, Any]] = None,
    ) -> Execution:
        """
        Create a pending execution for a stored workflow.

        Raises:
            NotFoundError: If the workflow does not exist
        """
        workflow = await self.store.get_workflow(workflow_id)
        if workflow is None:
            raise NotFoundError("Workflow", workflow_id)

        execution = Execution(workflow_id=workflow.id, trigger_data=trigger_data or {})
        await self.store.insert_execution(execution)
        logger.info(
            f"Created execution {execution.id} for workflow {workflow.id}",
            extra={"execution_id": execution.id, "workflow_id": workflow.id},
        )
        return execution

    async def run_execution(self, execution_id: Any) -> RunResult:
        """
        Run a pending execution to completion.

        Raises:
            ValidationError: Malformed execution id, or workflow has no trigger node
            NotFoundError: Execution does not exist
            ConflictError: Execution was already started
            ExecutionError: Unexpected failure (record is finalized as failed)
        """
        if not is_valid_uuid(execution_id):
            raise ValidationError("Invalid execution_id", field="execution_id")

        execution = await self.store.get_execution(execution_id)
        if execution is None:
            raise NotFoundError("Execution", execution_id)

        run = await self.lifecycle.start(execution_id)

        try:
            nodes = await self.store.get_nodes(execution.workflow_id)
            edges = await self.store.get_edges(execution.workflow_id)
            traversal = await self.executor.run(run.execution, nodes, edges)
            finished = await self.lifecycle.finish(run, traversal)
        except MissingTriggerError as e:
            await self.lifecycle.fail(run, e.message)
            raise ValidationError(e.message, field="nodes")
        except Exception:
            logger.exception(
                f"Execution {execution_id} crashed",
                extra={"execution_id": execution_id},
            )
            await self.lifecycle.fail(run, EXECUTION_FAILED_MESSAGE)
            raise ExecutionError(EXECUTION_FAILED_MESSAGE, execution_id=execution_id)

        return RunResult(
            success=finished.status == ExecutionStatus.COMPLETED,
            execution_id=finished.id,
            duration_ms=finished.duration_ms or 0,
            steps_executed=len(traversal.steps),
        )

    async def trigger_from_webhook(
        self,
        token: str,
        method: str,
        body: Any = None,
        query: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> WebhookTriggerResult:
        """
        Create a pending execution from an inbound webhook call.

        The request itself (body, query, method, headers) becomes the
        execution's trigger_data. The caller is expected to run the returned
        execution afterwards, see run_triggered_execution.

        Raises:
            ValidationError: Missing token, or the workflow is not active
            NotFoundError: Unknown or deactivated token
            ExecutionError: The execution could not be stored
        """
        if not token:
            raise ValidationError("Missing webhook token", field="token")

        webhook = await self.store.get_webhook(token)
        if webhook is None or not webhook.is_active:
            raise NotFoundError("Webhook", "[REDACTED]", message=INVALID_WEBHOOK_MESSAGE)

        workflow = await self.store.get_workflow(webhook.workflow_id)
        if workflow is None or workflow.status != WorkflowStatus.ACTIVE:
            raise ValidationError("Workflow is not active", field="workflow_id")

        execution = Execution(
            workflow_id=workflow.id,
            trigger_type=TriggerType.WEBHOOK,
            trigger_data={
                "body": body if body is not None else {},
                "query": dict(query or {}),
                "method": method.upper(),
                "headers": webhook_headers(headers or {}),
            },
        )

        try:
            await self.store.insert_execution(execution)
        except Exception:
            logger.exception(
                f"Failed to store execution for webhook {webhook.id}",
                extra={"workflow_id": workflow.id},
            )
            raise ExecutionError("Failed to create execution")

        await self.store.save_webhook(webhook.model_copy(update={"last_triggered_at": utcnow()}))

        logger.info(
            f"Webhook {webhook.id} created execution {execution.id} for workflow {workflow.id}",
            extra={"execution_id": execution.id, "workflow_id": workflow.id},
        )
        return WebhookTriggerResult(execution_id=execution.id)

    async def run_triggered_execution(self, execution_id: str) -> Optional[RunResult]:
        """
        Run an execution that nobody is waiting on.

        Used for webhook-triggered runs. Errors are logged instead of raised;
        the execution record carries the outcome.
        """
        try:
            return await self.run_execution(execution_id)
        except AgentFlowError as e:
            logger.warning(
                f"Triggered execution {execution_id} did not complete: {e.message}",
                extra={"execution_id": execution_id},
            )
            return None

    async def get_execution(self, execution_id: str) -> Execution:
        """Get an execution record"""
        execution = await self.store.get_execution(execution_id)
        if execution is None:
            raise NotFoundError("Execution", execution_id)
        return execution

    async def get_execution_detail(self, execution_id: str) -> ExecutionDetail:
        """Get an execution record together with its step log"""
        execution = await self.get_execution(execution_id)
        steps = await self.store.list_steps(execution_id)
        return ExecutionDetail(execution=execution, steps=steps)

    async def list_steps(self, execution_id: str) -> List[ExecutionStep]:
        """Step log of an execution in execution order"""
        await self.get_execution(execution_id)
        return await self.store.list_steps(execution_id)

    async def list_executions(
        self,
        workflow_id: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Execution]:
        """List executions, newest first"""
        if status is not None and status not in {s.value for s in ExecutionStatus}:
            raise ValidationError(f"Unknown execution status: {status}", field="status")
        return await self.store.list_executions(
            workflow_id=workflow_id,
            status=status,
            limit=limit,
            offset=offset,
        )


def webhook_headers(headers: Dict[str, str]) -> Dict[str, str]:
    """Lower-cased request headers without credentials"""
    kept = {}
    for name, value in headers.items():
        lowered = name.lower()
        if lowered in DROPPED_WEBHOOK_HEADERS or is_sensitive_key(lowered):
            continue
        kept[lowered] = value
    return kept
