# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Shared fixtures for engine, service and API tests.

Everything runs in-process: the in-memory store, a recording sleep and an
httpx.MockTransport in place of the network.
"""

import os
import sys

import httpx
import pytest

# Add backend to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from agentflow.core.config import Config
from agentflow.engine.actions import ActionDispatcher
from agentflow.engine.executor import WorkflowExecutor
from agentflow.engine.http import create_http_client
from agentflow.store.memory import InMemoryExecutionStore
from tests.helpers import FakeSleep, WebhookRecorder


@pytest.fixture
def config():
    """Engine config with the in-memory backend and production limits"""
    return Config(storage_backend="memory", log_format="text")


@pytest.fixture
def store():
    return InMemoryExecutionStore()


@pytest.fixture
def fake_sleep():
    """Records requested sleeps instead of waiting"""
    return FakeSleep()


@pytest.fixture
def webhook_recorder():
    """Answers every outbound request with 200 and keeps the requests"""
    return WebhookRecorder()


@pytest.fixture
def http_client(webhook_recorder):
    return create_http_client(transport=httpx.MockTransport(webhook_recorder))


@pytest.fixture
def dispatcher(http_client, config, fake_sleep):
    return ActionDispatcher(http_client, config=config, sleep=fake_sleep)


@pytest.fixture
def executor(dispatcher, store, config, fake_sleep):
    return WorkflowExecutor(dispatcher, store, config=config, sleep=fake_sleep)
