# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Test doubles and workflow builders
"""

import json
from typing import Any, Dict, List, Optional

import httpx

from agentflow.engine.models import Execution, Workflow, WorkflowEdge, WorkflowNode


class FakeSleep:
    """Async sleep replacement that only records the requested seconds"""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class WebhookRecorder:
    """httpx.MockTransport handler returning a fixed status"""

    def __init__(self, status_code: int = 200):
        self.status_code = status_code
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json={"ok": True})

    def last_json(self) -> Dict[str, Any]:
        return json.loads(self.requests[-1].content)


def node(node_id: str, node_type: str, action_type: Optional[str] = None, **config: Any) -> WorkflowNode:
    return WorkflowNode(id=node_id, node_type=node_type, action_type=action_type, config=config)


def edge(source: str, target: str, handle: Optional[str] = None) -> WorkflowEdge:
    return WorkflowEdge(
        id=f"{source}->{target}:{handle or ''}",
        source_node_id=source,
        target_node_id=target,
        source_handle=handle,
    )


def make_workflow(nodes: List[WorkflowNode], edges: List[WorkflowEdge], workflow_id: str = "wf-1") -> Workflow:
    return Workflow(
        id=workflow_id,
        name="Test",
        nodes=[n.model_copy(update={"workflow_id": workflow_id}) for n in nodes],
        edges=[e.model_copy(update={"workflow_id": workflow_id}) for e in edges],
    )


def make_execution(workflow_id: str = "wf-1", trigger_data: Optional[Dict[str, Any]] = None) -> Execution:
    return Execution(workflow_id=workflow_id, trigger_data=trigger_data or {})
