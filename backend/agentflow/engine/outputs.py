# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Node Outputs

One model per node behavior. Outputs stay typed inside the engine and are
flattened to plain dicts only when folded into the execution context or
written to the step log.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel

from .models import StepStatus


class TriggerOutput(BaseModel):
    triggered: bool = True
    data: Any = None


class MessageOutput(BaseModel):
    message_sent: bool = True
    message: str


class AgentOutput(BaseModel):
    agent_started: bool = True
    agent_id: str


class EmailOutput(BaseModel):
    email_sent: bool = True
    to: str
    subject: str


class WebhookOutput(BaseModel):
    webhook_called: bool = True
    status: int


class WaitOutput(BaseModel):
    waited: bool = True
    delay: int


class ConditionOutput(BaseModel):
    condition: str
    result: bool


class DelayOutput(BaseModel):
    delayed: bool = True
    seconds: float


class EndOutput(BaseModel):
    workflow_ended: bool = True


class NodeResult(BaseModel):
    """Outcome of executing one node"""
    status: StepStatus = StepStatus.COMPLETED
    output: Optional[BaseModel] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, output: Optional[BaseModel] = None) -> "NodeResult":
        return cls(status=StepStatus.COMPLETED, output=output)

    @classmethod
    def fail(cls, error: str) -> "NodeResult":
        return cls(status=StepStatus.FAILED, error=error)

    @property
    def failed(self) -> bool:
        return self.status == StepStatus.FAILED

    def output_dict(self) -> Dict[str, Any]:
        """Flatten the typed output for the context and the step log"""
        if self.output is None:
            return {}
        return self.output.model_dump(mode="json")
