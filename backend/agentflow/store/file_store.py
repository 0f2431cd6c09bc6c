# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
File Execution Store - disk-based persistence for workflows and executions.
All history lives in plain JSON files that can be inspected with `cat` and `jq`.

Storage structure:
    {data_dir}/
    ├── workflows/
    │   └── {workflow_id}.json
    ├── webhooks/
    │   └── {token}.json
    └── executions/
        └── {execution_id}/
            ├── execution.json     (execution record, rewritten on status change)
            └── steps.jsonl        (append-only step log)
"""

import asyncio
import re
from pathlib import Path
from typing import List, Optional

import aiofiles

from agentflow.core.errors import ConflictError, ValidationError
from agentflow.core.logging import get_service_logger
from agentflow.engine.models import Execution, ExecutionStep, Workflow, WorkflowWebhook

from .base import ExecutionStore

logger = get_service_logger("file-store")

SAFE_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


def _safe_id(identifier: str, kind: str) -> str:
    """Identifiers become path components, so only allow a safe charset"""
    if not isinstance(identifier, str) or not SAFE_ID_PATTERN.match(identifier):
        raise ValidationError(f"Invalid {kind} id", field=f"{kind}_id")
    return identifier


class FileExecutionStore(ExecutionStore):
    """
    Execution store backed by JSON files.

    Thread-safe with async file locking to prevent race conditions between
    concurrent executions writing to the same directory tree.
    """

    def __init__(self, data_dir: Path):
        super().__init__()
        self.data_dir = Path(data_dir)
        self.workflows_dir = self.data_dir / "workflows"
        self.webhooks_dir = self.data_dir / "webhooks"
        self.executions_dir = self.data_dir / "executions"
        self.workflows_dir.mkdir(parents=True, exist_ok=True)
        self.webhooks_dir.mkdir(parents=True, exist_ok=True)
        self.executions_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"FileExecutionStore initialized with directory: {self.data_dir}")

    def _workflow_file(self, workflow_id: str) -> Path:
        return self.workflows_dir / f"{_safe_id(workflow_id, 'workflow')}.json"

    def _webhook_file(self, token: str) -> Path:
        return self.webhooks_dir / f"{_safe_id(token, 'webhook')}.json"

    def _execution_dir(self, execution_id: str) -> Path:
        return self.executions_dir / _safe_id(execution_id, "execution")

    # ------------------------------------------------------------------
    # Workflows
    # ------------------------------------------------------------------

    async def save_workflow(self, workflow: Workflow) -> Workflow:
        workflow_file = self._workflow_file(workflow.id)
        async with self._get_lock(str(workflow_file)):
            async with aiofiles.open(workflow_file, "w") as f:
                await f.write(workflow.model_dump_json(indent=2))
        logger.info(f"Saved workflow: {workflow.id}")
        return workflow

    async def get_workflow(self, workflow_id: str) -> Optional[Workflow]:
        try:
            workflow_file = self._workflow_file(workflow_id)
        except ValidationError:
            return None

        exists = await asyncio.to_thread(workflow_file.exists)
        if not exists:
            return None

        async with aiofiles.open(workflow_file, "r") as f:
            content = await f.read()
        return Workflow.model_validate_json(content)

    async def list_workflows(self) -> List[Workflow]:
        files = await asyncio.to_thread(lambda: sorted(self.workflows_dir.glob("*.json")))

        workflows = []
        for workflow_file in files:
            try:
                async with aiofiles.open(workflow_file, "r") as f:
                    workflows.append(Workflow.model_validate_json(await f.read()))
            except ValueError as e:
                logger.warning(f"Skipping invalid workflow file {workflow_file.name}: {e}")
        return workflows

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------

    async def save_webhook(self, webhook: WorkflowWebhook) -> WorkflowWebhook:
        webhook_file = self._webhook_file(webhook.token)
        async with self._get_lock(str(webhook_file)):
            async with aiofiles.open(webhook_file, "w") as f:
                await f.write(webhook.model_dump_json(indent=2))
        return webhook

    async def get_webhook(self, token: str) -> Optional[WorkflowWebhook]:
        try:
            webhook_file = self._webhook_file(token)
        except ValidationError:
            return None

        exists = await asyncio.to_thread(webhook_file.exists)
        if not exists:
            return None

        async with aiofiles.open(webhook_file, "r") as f:
            content = await f.read()
        return WorkflowWebhook.model_validate_json(content)

    async def list_webhooks(self, workflow_id: str) -> List[WorkflowWebhook]:
        files = await asyncio.to_thread(lambda: list(self.webhooks_dir.glob("*.json")))

        webhooks = []
        for webhook_file in files:
            try:
                async with aiofiles.open(webhook_file, "r") as f:
                    webhook = WorkflowWebhook.model_validate_json(await f.read())
            except ValueError as e:
                logger.warning(f"Skipping invalid webhook file {webhook_file.name}: {e}")
                continue
            if webhook.workflow_id == workflow_id:
                webhooks.append(webhook)

        webhooks.sort(key=lambda w: w.created_at)
        return webhooks

    # ------------------------------------------------------------------
    # Executions
    # ------------------------------------------------------------------

    async def insert_execution(self, execution: Execution) -> Execution:
        execution_dir = self._execution_dir(execution.id)

        async with self._get_lock(execution.id):
            exists = await asyncio.to_thread(execution_dir.exists)
            if exists:
                raise ConflictError(f"Execution {execution.id} already exists", resource="execution")

            await asyncio.to_thread(execution_dir.mkdir, parents=True, exist_ok=True)
            await self._write_execution(execution)

        logger.info(f"Created execution: {execution.id}")
        return execution

    async def get_execution(self, execution_id: str) -> Optional[Execution]:
        try:
            execution_file = self._execution_dir(execution_id) / "execution.json"
        except ValidationError:
            return None

        exists = await asyncio.to_thread(execution_file.exists)
        if not exists:
            return None

        async with aiofiles.open(execution_file, "r") as f:
            content = await f.read()
        return Execution.model_validate_json(content)

    async def list_executions(
        self,
        workflow_id: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Execution]:
        def get_execution_files():
            return [d / "execution.json" for d in self.executions_dir.iterdir() if d.is_dir()]

        execution_files = await asyncio.to_thread(get_execution_files)

        executions = []
        for execution_file in execution_files:
            try:
                async with aiofiles.open(execution_file, "r") as f:
                    execution = Execution.model_validate_json(await f.read())
            except (OSError, ValueError) as e:
                logger.error(f"Failed to load execution {execution_file.parent.name}: {e}")
                continue

            if workflow_id and execution.workflow_id != workflow_id:
                continue
            if status and execution.status.value != status:
                continue
            executions.append(execution)

        executions.sort(key=lambda e: e.created_at, reverse=True)
        return executions[offset:offset + limit]

    async def _write_execution(self, execution: Execution) -> None:
        execution_file = self._execution_dir(execution.id) / "execution.json"
        async with aiofiles.open(execution_file, "w") as f:
            await f.write(execution.model_dump_json(indent=2))

    # ------------------------------------------------------------------
    # Step log
    # ------------------------------------------------------------------

    async def insert_step(self, step: ExecutionStep) -> None:
        steps_file = self._execution_dir(step.execution_id) / "steps.jsonl"
        async with self._get_lock(str(steps_file)):
            async with aiofiles.open(steps_file, "a") as f:
                await f.write(step.model_dump_json() + "\n")

    async def list_steps(self, execution_id: str) -> List[ExecutionStep]:
        try:
            steps_file = self._execution_dir(execution_id) / "steps.jsonl"
        except ValidationError:
            return []

        exists = await asyncio.to_thread(steps_file.exists)
        if not exists:
            return []

        async with aiofiles.open(steps_file, "r") as f:
            content = await f.read()

        return [
            ExecutionStep.model_validate_json(line)
            for line in content.splitlines()
            if line.strip()
        ]
