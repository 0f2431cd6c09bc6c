# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Inbound Webhook Routes

External systems trigger a workflow by calling /hooks/{token}. The call
creates an execution and answers right away; the run itself happens as a
background task after the response is sent.
"""

from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, Request

from agentflow.core.dependencies import get_execution_service
from agentflow.core.logging import get_api_logger
from agentflow.engine.models import WebhookTriggerResult
from agentflow.services.execution_service import ExecutionService

router = APIRouter(prefix="/hooks", tags=["hooks"])

logger = get_api_logger()

BODY_METHODS = {"POST", "PUT"}


@router.api_route("/{token}", methods=["GET", "POST", "PUT"], response_model=WebhookTriggerResult)
async def trigger_webhook(
    token: str,
    request: Request,
    background_tasks: BackgroundTasks,
    service: ExecutionService = Depends(get_execution_service)
) -> WebhookTriggerResult:
    """
    Trigger the workflow bound to a webhook token.

    POST and PUT bodies are read as JSON; a body that is not JSON is
    recorded as an empty object. Query parameters and headers are recorded
    alongside it.

    Returns 404 for an unknown or inactive token, 400 if the workflow is
    not active.
    """
    body: Any = {}
    if request.method in BODY_METHODS:
        try:
            body = await request.json()
        except ValueError:
            logger.debug(f"Webhook {request.method} body is not JSON, recording empty body")
            body = {}

    result = await service.trigger_from_webhook(
        token,
        request.method,
        body=body,
        query=dict(request.query_params),
        headers=dict(request.headers),
    )
    background_tasks.add_task(service.run_triggered_execution, result.execution_id)
    return result
