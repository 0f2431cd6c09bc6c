# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Action Dispatcher

Maps the action type of an ``action`` node to its handler. Handlers are
registered in a table; supporting a new action means registering a handler,
not editing the traversal loop.

Validation failures (bad agent id, disallowed URL, webhook network errors)
come back as failed NodeResults. Handlers never raise for them.
"""

import asyncio
import math
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from agentflow.core.config import Config, get_config
from agentflow.core.logging import get_service_logger, sanitize_for_logging

from .condition_evaluator import to_number
from .context import ExecutionContext
from .exceptions import DisallowedURLError
from .models import ActionType, WorkflowNode
from .outputs import (
    AgentOutput,
    EmailOutput,
    MessageOutput,
    NodeResult,
    WaitOutput,
    WebhookOutput,
)
from .url_safety import is_allowed_url

logger = get_service_logger("actions")

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

DEFAULT_MESSAGE = "Hello"
DEFAULT_WEBHOOK_METHOD = "POST"


@dataclass(frozen=True)
class ActionRequest:
    """Everything a handler may look at for one action node"""
    node: WorkflowNode
    workflow_id: str
    execution_id: str
    context: ExecutionContext

    @property
    def config(self) -> Dict[str, Any]:
        return self.node.config or {}


ActionHandler = Callable[[ActionRequest], Awaitable[NodeResult]]
SleepFunc = Callable[[float], Awaitable[Any]]
# (to, subject, body) -> delivery by an external channel
EmailSender = Callable[[str, str, str], Awaitable[Any]]
# (agent_id, request) -> start the agent run elsewhere
AgentLauncher = Callable[[str, ActionRequest], Awaitable[Any]]


def is_valid_uuid(value: Any) -> bool:
    return isinstance(value, str) and bool(UUID_PATTERN.match(value))


def config_text(value: Any, default: str = "") -> str:
    """Render a config value as text, falling back to default when empty"""
    if value is None or value == "" or value is False:
        return default
    if isinstance(value, bool):
        return "true"
    return str(value)


def config_number(value: Any, default: float) -> float:
    """Numeric config value, or default when missing or not a number"""
    if value is None or value == "":
        return default
    number = to_number(value)
    if math.isnan(number):
        return default
    return number


def clamp(value: float, lower: float, upper: float) -> float:
    return min(max(lower, value), upper)


class ActionDispatcher:
    """
    Executes action nodes.

    Collaborators are injected so handlers can be tested without network or
    real delivery channels:
    - http_client: shared httpx.AsyncClient for webhooks
    - sleep: awaitable sleep primitive (seconds)
    - email_sender: optional delivery channel for send_email
    - agent_launcher: optional hook that starts an agent for run_agent
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        config: Optional[Config] = None,
        sleep: SleepFunc = asyncio.sleep,
        email_sender: Optional[EmailSender] = None,
        agent_launcher: Optional[AgentLauncher] = None,
    ):
        self.http_client = http_client
        self.config = config or get_config()
        self._sleep = sleep
        self._email_sender = email_sender
        self._agent_launcher = agent_launcher

        self._handlers: Dict[str, ActionHandler] = {}
        self.register(ActionType.SEND_MESSAGE, self._send_message)
        self.register(ActionType.RUN_AGENT, self._run_agent)
        self.register(ActionType.SEND_EMAIL, self._send_email)
        self.register(ActionType.WEBHOOK, self._webhook)
        self.register(ActionType.WAIT, self._wait)

    def register(self, action_type: str, handler: ActionHandler) -> None:
        """Register (or replace) the handler for an action type"""
        key = action_type.value if isinstance(action_type, ActionType) else str(action_type)
        self._handlers[key] = handler

    def supported_actions(self) -> List[str]:
        return sorted(self._handlers)

    async def execute(self, request: ActionRequest) -> NodeResult:
        """Run the handler for the node's action type"""
        action_type = request.node.action_type
        handler = self._handlers.get(action_type) if action_type else None

        if handler is None:
            # No handler is not an error: the node is a no-op
            logger.debug(f"No handler for action type {action_type!r} on node {request.node.id}")
            return NodeResult.ok()

        return await handler(request)

    # ========================================================================
    # Built-in handlers
    # ========================================================================

    async def _send_message(self, request: ActionRequest) -> NodeResult:
        message = config_text(request.config.get("message"), DEFAULT_MESSAGE)
        return NodeResult.ok(MessageOutput(message=message[:self.config.message_max_chars]))

    async def _run_agent(self, request: ActionRequest) -> NodeResult:
        agent_id = request.config.get("agent_id")
        if not is_valid_uuid(agent_id):
            return NodeResult.fail("Invalid agent_id")

        if self._agent_launcher is not None:
            await self._agent_launcher(agent_id, request)

        return NodeResult.ok(AgentOutput(agent_id=agent_id))

    async def _send_email(self, request: ActionRequest) -> NodeResult:
        to = config_text(request.config.get("to"))[:self.config.email_to_max_chars]
        subject = config_text(request.config.get("subject"))[:self.config.email_subject_max_chars]

        if self._email_sender is not None:
            body = config_text(request.config.get("body"))[:self.config.message_max_chars]
            await self._email_sender(to, subject, body)

        return NodeResult.ok(EmailOutput(to=to, subject=subject))

    async def _webhook(self, request: ActionRequest) -> NodeResult:
        url = request.config.get("url")
        if not is_allowed_url(url):
            logger.warning(
                f"Blocked webhook URL on node {request.node.id}",
                extra={"execution_id": request.execution_id},
            )
            return NodeResult.fail("Invalid or disallowed webhook URL")

        method = config_text(request.config.get("method"), DEFAULT_WEBHOOK_METHOD).upper()
        payload = {
            "workflow_id": request.workflow_id,
            "execution_id": request.execution_id,
            "data": request.context.trigger_data,
        }

        try:
            response = await asyncio.wait_for(
                self.http_client.request(
                    method,
                    url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                ),
                timeout=self.config.webhook_timeout,
            )
        except DisallowedURLError:
            return NodeResult.fail("Invalid or disallowed webhook URL")
        except (httpx.HTTPError, asyncio.TimeoutError) as e:
            logger.warning(
                f"Webhook request failed on node {request.node.id}: {type(e).__name__}",
                extra={"execution_id": request.execution_id},
            )
            return NodeResult.fail("Webhook request failed")

        logger.debug(
            f"Webhook on node {request.node.id} answered {response.status_code}",
            extra={"payload": sanitize_for_logging(payload)},
        )
        return NodeResult.ok(WebhookOutput(status=response.status_code))

    async def _wait(self, request: ActionRequest) -> NodeResult:
        delay = config_number(request.config.get("delay"), self.config.wait_default_ms)
        delay_ms = int(clamp(delay, 0, self.config.wait_max_ms))
        await self._sleep(delay_ms / 1000)
        return NodeResult.ok(WaitOutput(delay=delay_ms))
