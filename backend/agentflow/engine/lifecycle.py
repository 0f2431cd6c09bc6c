# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Execution Lifecycle

Status transitions of an execution record:

    pending -> running -> completed | failed

The final status is derived from the step log, never set directly by
callers. completed_at and duration_ms are written exactly once.
"""

import time
from dataclasses import dataclass, field

from agentflow.core.logging import get_service_logger
from agentflow.store.base import ExecutionStore

from .executor import TraversalResult
from .models import Execution, ExecutionStatus, utcnow

logger = get_service_logger("lifecycle")


@dataclass
class ActiveRun:
    """A claimed execution plus the monotonic clock reading taken at claim time"""
    execution: Execution
    started: float = field(default_factory=time.monotonic)

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started) * 1000)


class ExecutionLifecycle:
    """Owns the execution record for the duration of a run"""

    def __init__(self, store: ExecutionStore):
        self.store = store

    async def start(self, execution_id: str) -> ActiveRun:
        """
        Claim a pending execution and mark it running.

        Raises ConflictError if the execution was already started.
        """
        execution = await self.store.claim_execution(execution_id)
        logger.info(f"Execution {execution_id} running", extra={"execution_id": execution_id})
        return ActiveRun(execution=execution)

    async def fail(self, run: ActiveRun, message: str) -> Execution:
        """Finalize as failed without a step-derived status (no trigger, crash)"""
        execution = await self.store.update_execution(
            run.execution.id,
            status=ExecutionStatus.FAILED,
            error_message=message,
            completed_at=utcnow(),
            duration_ms=run.elapsed_ms(),
        )
        logger.warning(
            f"Execution {execution.id} failed: {message}",
            extra={"execution_id": execution.id},
        )
        return execution

    async def finish(self, run: ActiveRun, traversal: TraversalResult) -> Execution:
        """Finalize from the traversal outcome"""
        status = ExecutionStatus.FAILED if traversal.has_failure else ExecutionStatus.COMPLETED
        execution = await self.store.update_execution(
            run.execution.id,
            status=status,
            completed_at=utcnow(),
            duration_ms=run.elapsed_ms(),
        )
        logger.info(
            f"Execution {execution.id} {status.value} after {len(traversal.steps)} steps",
            extra={
                "execution_id": execution.id,
                "duration_ms": execution.duration_ms,
                "step_limit_reached": traversal.step_limit_reached,
            },
        )
        return execution
