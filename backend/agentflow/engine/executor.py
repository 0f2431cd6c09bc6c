# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Executor

Sequential graph traversal. Starting from the trigger node, executes one
node at a time, appends a step to the log, folds the node output into the
context and follows the outgoing edge. Stops on an ``end`` node, a failed
step, a node without a matching edge, or the step ceiling.
"""

import asyncio
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from agentflow.core.config import Config, get_config
from agentflow.core.logging import get_service_logger, log_event
from agentflow.store.base import ExecutionStore

from .actions import ActionDispatcher, ActionRequest, SleepFunc, clamp, config_number, config_text
from .condition_evaluator import evaluate_condition
from .context import ExecutionContext
from .exceptions import MissingTriggerError
from .models import (
    EdgeHandle,
    Execution,
    ExecutionStep,
    NodeType,
    StepStatus,
    WorkflowEdge,
    WorkflowNode,
    utcnow,
)
from .outputs import ConditionOutput, DelayOutput, EndOutput, NodeResult, TriggerOutput

logger = get_service_logger("executor")

STEP_FAILED_MESSAGE = "Step execution failed"

NodeHandler = Callable[[WorkflowNode, Execution, ExecutionContext], Awaitable[NodeResult]]


@dataclass
class TraversalResult:
    """What a traversal produced"""
    steps: List[ExecutionStep] = field(default_factory=list)
    context: ExecutionContext = field(default_factory=ExecutionContext)
    step_limit_reached: bool = False

    @property
    def has_failure(self) -> bool:
        return any(step.status == StepStatus.FAILED for step in self.steps)


def find_trigger_node(nodes: Sequence[WorkflowNode]) -> WorkflowNode:
    """Return the workflow's trigger node or raise MissingTriggerError"""
    for node in nodes:
        if node.node_type == NodeType.TRIGGER:
            return node
    raise MissingTriggerError()


class WorkflowExecutor:
    """
    Traversal loop for a single execution.

    One executor may serve many concurrent executions: it keeps no per-run
    state outside of run().
    """

    def __init__(
        self,
        dispatcher: ActionDispatcher,
        store: ExecutionStore,
        config: Optional[Config] = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.dispatcher = dispatcher
        self.store = store
        self.config = config or get_config()
        self._sleep = sleep

        self._node_handlers: Dict[str, NodeHandler] = {
            NodeType.TRIGGER.value: self._run_trigger,
            NodeType.ACTION.value: self._run_action,
            NodeType.CONDITION.value: self._run_condition,
            NodeType.DELAY.value: self._run_delay,
            NodeType.END.value: self._run_end,
        }

    @property
    def max_steps(self) -> int:
        return self.config.max_steps

    async def run(
        self,
        execution: Execution,
        nodes: Sequence[WorkflowNode],
        edges: Sequence[WorkflowEdge],
    ) -> TraversalResult:
        """
        Walk the graph for one execution.

        Raises MissingTriggerError before recording anything if the workflow
        has no trigger node. Every other failure is recorded as a step.
        """
        current: Optional[WorkflowNode] = find_trigger_node(nodes)

        nodes_by_id: Dict[str, WorkflowNode] = {}
        for node in nodes:
            nodes_by_id.setdefault(node.id, node)

        outgoing: Dict[str, List[WorkflowEdge]] = defaultdict(list)
        for edge in edges:
            outgoing[edge.source_node_id].append(edge)

        result = TraversalResult(context=ExecutionContext.start(execution.trigger_data))

        while current is not None and len(result.steps) < self.max_steps:
            started_at = utcnow()
            context = result.context

            try:
                node_result = await self._execute_node(current, execution, context)
            except Exception:
                logger.exception(
                    f"Node {current.id} raised during execution {execution.id}",
                    extra={"execution_id": execution.id, "node_id": current.id},
                )
                node_result = NodeResult.fail(STEP_FAILED_MESSAGE)

            if isinstance(node_result.output, ConditionOutput):
                context = context.with_condition_result(node_result.output.result)

            output = node_result.output_dict()
            step = ExecutionStep(
                execution_id=execution.id,
                node_id=current.id,
                status=node_result.status,
                input_data={"keys": context.key_list()},
                output_data=output,
                error_message=node_result.error,
                started_at=started_at,
                completed_at=utcnow(),
            )
            await self.store.insert_step(step)
            result.steps.append(step)

            log_event(
                logger,
                f"Step {len(result.steps)} {step.status.value}: node {current.id}",
                level="DEBUG",
                execution_id=execution.id,
                node_id=current.id,
                node_type=current.node_type,
            )

            result.context = context.with_entry(current.id, output)

            if node_result.failed or current.node_type == NodeType.END:
                current = None
                break

            current = self._select_next(current, result.context, outgoing, nodes_by_id)

        if current is not None and len(result.steps) >= self.max_steps:
            result.step_limit_reached = True
            logger.warning(
                f"Execution {execution.id} stopped at the {self.max_steps} step limit",
                extra={"execution_id": execution.id},
            )

        return result

    async def _execute_node(
        self,
        node: WorkflowNode,
        execution: Execution,
        context: ExecutionContext,
    ) -> NodeResult:
        handler = self._node_handlers.get(node.node_type)
        if handler is None:
            # Unknown node types pass through without output
            return NodeResult.ok()
        return await handler(node, execution, context)

    def _select_next(
        self,
        node: WorkflowNode,
        context: ExecutionContext,
        outgoing: Dict[str, List[WorkflowEdge]],
        nodes_by_id: Dict[str, WorkflowNode],
    ) -> Optional[WorkflowNode]:
        """
        Pick the node to visit after node.

        Condition nodes follow the edge whose handle matches the result,
        falling back to a "default" edge. A condition with neither ends the
        run quietly, the same as any node without outgoing edges.
        """
        candidates = outgoing.get(node.id, [])
        edge: Optional[WorkflowEdge] = None

        if node.node_type == NodeType.CONDITION:
            handle = EdgeHandle.TRUE.value if context.condition_result else EdgeHandle.FALSE.value
            edge = next((e for e in candidates if e.source_handle == handle), None)
            if edge is None:
                edge = next((e for e in candidates if e.source_handle == EdgeHandle.DEFAULT.value), None)
        elif candidates:
            edge = candidates[0]

        if edge is None:
            return None
        return nodes_by_id.get(edge.target_node_id)

    # ========================================================================
    # Node behaviors
    # ========================================================================

    async def _run_trigger(self, node, execution, context) -> NodeResult:
        return NodeResult.ok(TriggerOutput(data=context.trigger_data))

    async def _run_action(self, node, execution, context) -> NodeResult:
        request = ActionRequest(
            node=node,
            workflow_id=execution.workflow_id,
            execution_id=execution.id,
            context=context,
        )
        return await self.dispatcher.execute(request)

    async def _run_condition(self, node, execution, context) -> NodeResult:
        condition = config_text(node.config.get("condition"), "false")
        result = evaluate_condition(condition, context.to_dict())
        return NodeResult.ok(ConditionOutput(condition=condition, result=result))

    async def _run_delay(self, node, execution, context) -> NodeResult:
        seconds = config_number(node.config.get("delay"), self.config.delay_default_seconds)
        seconds = clamp(seconds, 0, self.config.delay_max_seconds)
        await self._sleep(seconds)
        return NodeResult.ok(DelayOutput(seconds=seconds))

    async def _run_end(self, node, execution, context) -> NodeResult:
        return NodeResult.ok(EndOutput())
