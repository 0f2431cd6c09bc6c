# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Persistence for workflow definitions, executions and the step log.
"""

from pathlib import Path

from agentflow.core.config import Config
from agentflow.core.errors import ConfigurationError

from .base import ExecutionStore
from .file_store import FileExecutionStore
from .memory import InMemoryExecutionStore


def create_store(config: Config) -> ExecutionStore:
    """Build the store selected by config.storage_backend"""
    if config.storage_backend == "memory":
        return InMemoryExecutionStore()
    if config.storage_backend == "file":
        return FileExecutionStore(Path(config.data_dir))
    raise ConfigurationError(f"Unknown storage backend: {config.storage_backend}")


__all__ = [
    "ExecutionStore",
    "FileExecutionStore",
    "InMemoryExecutionStore",
    "create_store",
]
