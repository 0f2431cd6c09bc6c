# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
In-memory execution store, for tests and single-process development.
"""

from typing import Dict, List, Optional

from agentflow.core.errors import ConflictError
from agentflow.engine.models import Execution, ExecutionStep, Workflow, WorkflowWebhook

from .base import ExecutionStore


class InMemoryExecutionStore(ExecutionStore):
    """Keeps everything in dicts. Records are copied on the way in and out."""

    def __init__(self):
        super().__init__()
        self._workflows: Dict[str, Workflow] = {}
        self._executions: Dict[str, Execution] = {}
        self._steps: Dict[str, List[ExecutionStep]] = {}
        self._webhooks: Dict[str, WorkflowWebhook] = {}

    async def save_workflow(self, workflow: Workflow) -> Workflow:
        self._workflows[workflow.id] = workflow.model_copy(deep=True)
        return workflow

    async def get_workflow(self, workflow_id: str) -> Optional[Workflow]:
        workflow = self._workflows.get(workflow_id)
        return workflow.model_copy(deep=True) if workflow else None

    async def list_workflows(self) -> List[Workflow]:
        return [w.model_copy(deep=True) for w in self._workflows.values()]

    async def save_webhook(self, webhook: WorkflowWebhook) -> WorkflowWebhook:
        self._webhooks[webhook.token] = webhook.model_copy(deep=True)
        return webhook

    async def get_webhook(self, token: str) -> Optional[WorkflowWebhook]:
        webhook = self._webhooks.get(token)
        return webhook.model_copy(deep=True) if webhook else None

    async def list_webhooks(self, workflow_id: str) -> List[WorkflowWebhook]:
        webhooks = [w for w in self._webhooks.values() if w.workflow_id == workflow_id]
        webhooks.sort(key=lambda w: w.created_at)
        return [w.model_copy(deep=True) for w in webhooks]

    async def insert_execution(self, execution: Execution) -> Execution:
        if execution.id in self._executions:
            raise ConflictError(f"Execution {execution.id} already exists", resource="execution")
        self._executions[execution.id] = execution.model_copy(deep=True)
        self._steps[execution.id] = []
        return execution

    async def get_execution(self, execution_id: str) -> Optional[Execution]:
        execution = self._executions.get(execution_id)
        return execution.model_copy(deep=True) if execution else None

    async def list_executions(
        self,
        workflow_id: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Execution]:
        executions = [
            e for e in self._executions.values()
            if (workflow_id is None or e.workflow_id == workflow_id)
            and (status is None or e.status.value == status)
        ]
        executions.sort(key=lambda e: e.created_at, reverse=True)
        return [e.model_copy(deep=True) for e in executions[offset:offset + limit]]

    async def _write_execution(self, execution: Execution) -> None:
        self._executions[execution.id] = execution.model_copy(deep=True)

    async def insert_step(self, step: ExecutionStep) -> None:
        self._steps.setdefault(step.execution_id, []).append(step.model_copy(deep=True))

    async def list_steps(self, execution_id: str) -> List[ExecutionStep]:
        return [s.model_copy(deep=True) for s in self._steps.get(execution_id, [])]
