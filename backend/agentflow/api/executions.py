# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Execution API Routes

- Create a pending execution for a workflow
- Run an execution (once)
- Execution history and step logs

Service errors (AgentFlowError) are rendered by the app-level handlers.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from agentflow.core.dependencies import get_execution_service
from agentflow.engine.models import (
    Execution,
    ExecutionCreateRequest,
    ExecutionDetail,
    ExecutionRunRequest,
    ExecutionStep,
    RunResult,
)
from agentflow.services.execution_service import ExecutionService

router = APIRouter(prefix="/executions", tags=["executions"])


@router.post("", response_model=Execution, status_code=201)
async def create_execution(
    request: ExecutionCreateRequest,
    service: ExecutionService = Depends(get_execution_service)
) -> Execution:
    """Create a pending execution for a stored workflow"""
    return await service.create_execution(request.workflow_id, request.trigger_data)


@router.post("/run", response_model=RunResult)
async def run_execution(
    request: ExecutionRunRequest,
    service: ExecutionService = Depends(get_execution_service)
) -> RunResult:
    """
    Run a pending execution.

    Returns 400 for a malformed id or a workflow without a trigger node,
    404 for an unknown execution, 409 if the execution was already started.
    """
    return await service.run_execution(request.execution_id)


@router.get("", response_model=List[Execution])
async def list_executions(
    workflow_id: Optional[str] = None,
    status: Optional[str] = None,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    service: ExecutionService = Depends(get_execution_service)
) -> List[Execution]:
    """
    List executions (newest first).

    Args:
        workflow_id: Only executions of this workflow
        status: Only executions in this status
        limit: Maximum number of executions to return (default: 100)
        offset: Number of executions to skip (default: 0)
    """
    return await service.list_executions(
        workflow_id=workflow_id,
        status=status,
        limit=limit,
        offset=offset,
    )


@router.get("/{execution_id}", response_model=ExecutionDetail)
async def get_execution(
    execution_id: str,
    service: ExecutionService = Depends(get_execution_service)
) -> ExecutionDetail:
    """Execution record and its step log"""
    return await service.get_execution_detail(execution_id)


@router.get("/{execution_id}/steps", response_model=List[ExecutionStep])
async def list_steps(
    execution_id: str,
    service: ExecutionService = Depends(get_execution_service)
) -> List[ExecutionStep]:
    """Step log of an execution in execution order"""
    return await service.list_steps(execution_id)
