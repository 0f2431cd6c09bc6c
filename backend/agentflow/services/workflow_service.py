# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Service

Stores and retrieves workflow definitions and issues their webhooks.
"""

import secrets
from typing import List, Optional

from agentflow.core.errors import NotFoundError, ValidationError
from agentflow.core.logging import get_service_logger
from agentflow.engine.exceptions import WorkflowValidationError
from agentflow.engine.models import (
    WebhookCreateRequest,
    Workflow,
    WorkflowCreateRequest,
    WorkflowWebhook,
    new_id,
)
from agentflow.engine.validation import validate_workflow
from agentflow.store.base import ExecutionStore

logger = get_service_logger("workflows")

WEBHOOK_TOKEN_BYTES = 32


class WorkflowService:
    """
    Manages workflow definitions.

    Responsibilities:
    - Structural validation before a definition is stored
    - Lookup and listing
    - Webhook tokens for inbound triggers
    """

    def __init__(self, store: ExecutionStore):
        self.store = store

    async def create_workflow(self, request: WorkflowCreateRequest) -> Workflow:
        """Validate and store a new workflow definition"""
        if request.id and await self.store.get_workflow(request.id) is not None:
            raise ValidationError(f"Workflow '{request.id}' already exists", field="id")

        workflow_id = request.id or new_id()
        # Nodes and edges belong to the workflow they were submitted with
        workflow = Workflow(
            id=workflow_id,
            name=request.name,
            description=request.description,
            status=request.status,
            nodes=[node.model_copy(update={"workflow_id": workflow_id}) for node in request.nodes],
            edges=[edge.model_copy(update={"workflow_id": workflow_id}) for edge in request.edges],
        )

        try:
            validate_workflow(workflow)
        except WorkflowValidationError as e:
            raise ValidationError(e.message, field=e.field)

        saved = await self.store.save_workflow(workflow)
        logger.info(f"Created workflow: {saved.id} ({len(saved.nodes)} nodes)")
        return saved

    async def get_workflow(self, workflow_id: str) -> Workflow:
        """Get a specific workflow definition"""
        workflow = await self.store.get_workflow(workflow_id)
        if workflow is None:
            raise NotFoundError("Workflow", workflow_id)
        return workflow

    async def list_workflows(self) -> List[Workflow]:
        """List all workflow definitions"""
        workflows = await self.store.list_workflows()
        logger.info(f"Listed {len(workflows)} workflows")
        return workflows

    async def create_webhook(
        self,
        workflow_id: str,
        request: Optional[WebhookCreateRequest] = None,
    ) -> WorkflowWebhook:
        """
        Issue a new webhook token for a workflow.

        The token is URL-safe and is the only credential a caller needs to
        trigger the workflow.
        """
        request = request or WebhookCreateRequest()
        workflow = await self.get_workflow(workflow_id)
        webhook = WorkflowWebhook(
            workflow_id=workflow.id,
            token=secrets.token_urlsafe(WEBHOOK_TOKEN_BYTES),
            is_active=request.is_active,
        )
        await self.store.save_webhook(webhook)
        logger.info(f"Created webhook {webhook.id} for workflow {workflow.id}")
        return webhook

    async def list_webhooks(self, workflow_id: str) -> List[WorkflowWebhook]:
        """Webhooks issued for a workflow"""
        await self.get_workflow(workflow_id)
        return await self.store.list_webhooks(workflow_id)
