# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow API Routes

Store and read workflow definitions and issue their webhooks.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends

from agentflow.core.dependencies import get_workflow_service
from agentflow.engine.models import (
    WebhookCreateRequest,
    Workflow,
    WorkflowCreateRequest,
    WorkflowWebhook,
)
from agentflow.services.workflow_service import WorkflowService

router = APIRouter(prefix="/workflows", tags=["workflows"])


@router.get("", response_model=List[Workflow])
async def list_workflows(
    service: WorkflowService = Depends(get_workflow_service)
) -> List[Workflow]:
    """List all workflows"""
    return await service.list_workflows()


@router.get("/{workflow_id}", response_model=Workflow)
async def get_workflow(
    workflow_id: str,
    service: WorkflowService = Depends(get_workflow_service)
) -> Workflow:
    """Get a specific workflow definition"""
    return await service.get_workflow(workflow_id)


@router.post("", response_model=Workflow, status_code=201)
async def create_workflow(
    request: WorkflowCreateRequest,
    service: WorkflowService = Depends(get_workflow_service)
) -> Workflow:
    """Create a new workflow definition"""
    return await service.create_workflow(request)


@router.get("/{workflow_id}/webhooks", response_model=List[WorkflowWebhook])
async def list_webhooks(
    workflow_id: str,
    service: WorkflowService = Depends(get_workflow_service)
) -> List[WorkflowWebhook]:
    """Webhooks issued for a workflow"""
    return await service.list_webhooks(workflow_id)


@router.post("/{workflow_id}/webhooks", response_model=WorkflowWebhook, status_code=201)
async def create_webhook(
    workflow_id: str,
    request: Optional[WebhookCreateRequest] = None,
    service: WorkflowService = Depends(get_workflow_service)
) -> WorkflowWebhook:
    """
    Issue a webhook for a workflow.

    The returned token is the path segment of the trigger URL:
    /hooks/{token}
    """
    return await service.create_webhook(workflow_id, request)
