# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Engine Models

Pydantic models for workflow definitions, executions and the step log.
"""

from enum import Enum
from datetime import datetime, timezone
from typing import List, Dict, Any, Optional
from uuid import uuid4

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid4())


class NodeType(str, Enum):
    TRIGGER = "trigger"
    ACTION = "action"
    CONDITION = "condition"
    DELAY = "delay"
    END = "end"


class ActionType(str, Enum):
    SEND_MESSAGE = "send_message"
    RUN_AGENT = "run_agent"
    SEND_EMAIL = "send_email"
    WEBHOOK = "webhook"
    WAIT = "wait"


class EdgeHandle(str, Enum):
    TRUE = "true"
    FALSE = "false"
    DEFAULT = "default"


class ExecutionStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ExecutionStatus.COMPLETED, ExecutionStatus.FAILED)


class WorkflowStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class TriggerType(str, Enum):
    MANUAL = "manual"
    WEBHOOK = "webhook"


class StepStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"


# ============================================================================
# Workflow Definition Models
# ============================================================================

class WorkflowNode(BaseModel):
    """Single node in a workflow graph"""
    id: str
    workflow_id: str = ""
    # Kept as a plain string so unknown node types load and run as no-ops
    node_type: str
    action_type: Optional[str] = None
    label: str = ""
    config: Dict[str, Any] = Field(default_factory=dict)


class WorkflowEdge(BaseModel):
    """Directed connection between two nodes"""
    id: str = Field(default_factory=new_id)
    workflow_id: str = ""
    source_node_id: str
    target_node_id: str
    source_handle: Optional[str] = None


class Workflow(BaseModel):
    """Complete workflow definition"""
    id: str = Field(default_factory=new_id)
    name: str = ""
    description: Optional[str] = None
    # Only active workflows accept webhook triggers
    status: WorkflowStatus = WorkflowStatus.ACTIVE
    nodes: List[WorkflowNode] = Field(default_factory=list)
    edges: List[WorkflowEdge] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)


class WorkflowWebhook(BaseModel):
    """Inbound trigger URL bound to a workflow; the token is the only credential"""
    id: str = Field(default_factory=new_id)
    workflow_id: str
    token: str
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    last_triggered_at: Optional[datetime] = None


# ============================================================================
# Execution Models
# ============================================================================

class Execution(BaseModel):
    """One run of a workflow against a trigger payload"""
    id: str = Field(default_factory=new_id)
    workflow_id: str
    trigger_type: TriggerType = TriggerType.MANUAL
    trigger_data: Dict[str, Any] = Field(default_factory=dict)
    status: ExecutionStatus = ExecutionStatus.PENDING
    error_message: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_ms: Optional[int] = None


class ExecutionStep(BaseModel):
    """Audit record for a single visited node. Never updated once written."""
    id: str = Field(default_factory=new_id)
    execution_id: str
    node_id: str
    status: StepStatus
    input_data: Dict[str, Any] = Field(default_factory=dict)
    output_data: Dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None
    started_at: datetime
    completed_at: datetime


class RunResult(BaseModel):
    """Response of the run operation"""
    success: bool
    execution_id: str
    duration_ms: int
    steps_executed: int


class WebhookTriggerResult(BaseModel):
    """Response to an inbound webhook call"""
    success: bool = True
    message: str = "Workflow triggered"
    execution_id: str


# ============================================================================
# Request Models
# ============================================================================

class WebhookCreateRequest(BaseModel):
    """Request to issue a webhook for a workflow"""
    is_active: bool = True


class WorkflowCreateRequest(BaseModel):
    """Request to store a workflow definition"""
    id: Optional[str] = None
    name: str
    description: Optional[str] = None
    status: WorkflowStatus = WorkflowStatus.ACTIVE
    nodes: List[WorkflowNode]
    edges: List[WorkflowEdge] = Field(default_factory=list)


class ExecutionCreateRequest(BaseModel):
    """Request to create a pending execution"""
    workflow_id: str
    trigger_data: Dict[str, Any] = Field(default_factory=dict)


class ExecutionRunRequest(BaseModel):
    """Request to run an existing execution"""
    # Any type: the service reports malformed ids itself
    execution_id: Any = None


class ExecutionDetail(BaseModel):
    """Execution record together with its step log"""
    execution: Execution
    steps: List[ExecutionStep]
