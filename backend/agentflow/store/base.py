# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Execution Store - persistence contract for workflows, webhooks, executions
and steps.

The step log is append-only: there is no method that updates or deletes a
step. Execution records are updated only through update_execution and
claim_execution, both serialized per execution with an asyncio.Lock.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from agentflow.core.errors import ConflictError, NotFoundError
from agentflow.engine.models import (
    Execution,
    ExecutionStatus,
    ExecutionStep,
    Workflow,
    WorkflowEdge,
    WorkflowNode,
    WorkflowWebhook,
    utcnow,
)


class ExecutionStore(ABC):
    """
    Store and query workflow definitions and execution history.

    Subclasses implement raw reads and writes; the status transition rules
    (claim once, terminal records are frozen) live here.
    """

    def __init__(self):
        # Async locks for per-record read-modify-write
        self._locks: Dict[str, asyncio.Lock] = {}

    def _get_lock(self, key: str) -> asyncio.Lock:
        """Get or create lock for a specific record"""
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    # ------------------------------------------------------------------
    # Workflows
    # ------------------------------------------------------------------

    @abstractmethod
    async def save_workflow(self, workflow: Workflow) -> Workflow:
        """Persist a workflow definition (insert or replace)"""

    @abstractmethod
    async def get_workflow(self, workflow_id: str) -> Optional[Workflow]:
        """Workflow by id, or None"""

    @abstractmethod
    async def list_workflows(self) -> List[Workflow]:
        """All stored workflows"""

    async def get_nodes(self, workflow_id: str) -> List[WorkflowNode]:
        workflow = await self.get_workflow(workflow_id)
        return list(workflow.nodes) if workflow else []

    async def get_edges(self, workflow_id: str) -> List[WorkflowEdge]:
        workflow = await self.get_workflow(workflow_id)
        return list(workflow.edges) if workflow else []

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------

    @abstractmethod
    async def save_webhook(self, webhook: WorkflowWebhook) -> WorkflowWebhook:
        """Persist a webhook (insert or replace), keyed by token"""

    @abstractmethod
    async def get_webhook(self, token: str) -> Optional[WorkflowWebhook]:
        """Webhook by token, or None"""

    @abstractmethod
    async def list_webhooks(self, workflow_id: str) -> List[WorkflowWebhook]:
        """Webhooks issued for a workflow, oldest first"""

    # ------------------------------------------------------------------
    # Executions
    # ------------------------------------------------------------------

    @abstractmethod
    async def insert_execution(self, execution: Execution) -> Execution:
        """Persist a new execution. Raises ConflictError if the id exists."""

    @abstractmethod
    async def get_execution(self, execution_id: str) -> Optional[Execution]:
        """Execution by id, or None"""

    @abstractmethod
    async def list_executions(
        self,
        workflow_id: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Execution]:
        """Executions matching the filters, newest first"""

    @abstractmethod
    async def _write_execution(self, execution: Execution) -> None:
        """Overwrite the stored record of an existing execution"""

    async def update_execution(self, execution_id: str, **changes: Any) -> Execution:
        """
        Apply field changes to an execution.

        Raises:
            NotFoundError: If the execution does not exist
            ConflictError: If the execution already reached a terminal status
        """
        async with self._get_lock(execution_id):
            current = await self.get_execution(execution_id)
            if current is None:
                raise NotFoundError("Execution", execution_id)
            if current.status.is_terminal:
                raise ConflictError(
                    f"Execution {execution_id} is already {current.status.value}",
                    resource="execution",
                )

            updated = current.model_copy(update=changes)
            await self._write_execution(updated)
            return updated

    async def claim_execution(self, execution_id: str) -> Execution:
        """
        Move an execution from pending to running.

        Only one caller can win the claim for a given execution id.

        Raises:
            NotFoundError: If the execution does not exist
            ConflictError: If the execution is not pending
        """
        async with self._get_lock(execution_id):
            current = await self.get_execution(execution_id)
            if current is None:
                raise NotFoundError("Execution", execution_id)
            if current.status != ExecutionStatus.PENDING:
                raise ConflictError(
                    f"Execution {execution_id} was already started (status: {current.status.value})",
                    resource="execution",
                )

            claimed = current.model_copy(update={
                "status": ExecutionStatus.RUNNING,
                "started_at": utcnow(),
            })
            await self._write_execution(claimed)
            return claimed

    # ------------------------------------------------------------------
    # Step log
    # ------------------------------------------------------------------

    @abstractmethod
    async def insert_step(self, step: ExecutionStep) -> None:
        """Append a step to the execution's log"""

    @abstractmethod
    async def list_steps(self, execution_id: str) -> List[ExecutionStep]:
        """Steps of an execution in the order they were appended"""
