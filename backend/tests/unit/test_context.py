# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit tests for ExecutionContext snapshots
"""

from agentflow.engine.context import ExecutionContext


def test_start_holds_trigger_data():
    context = ExecutionContext.start({"user": "u1"})

    assert context.trigger_data == {"user": "u1"}
    assert context.key_list() == ["trigger_data"]


def test_with_entry_returns_new_snapshot():
    first = ExecutionContext.start({})
    second = first.with_entry("node_a", {"message": "Hello"})

    assert "node_a" not in first
    assert second["node_a"] == {"message": "Hello"}
    assert second.key_list() == ["trigger_data", "node_a"]


def test_snapshots_do_not_share_mutable_values():
    payload = {"items": [1, 2]}
    context = ExecutionContext.start(payload)
    payload["items"].append(3)

    assert context.trigger_data == {"items": [1, 2]}

    exported = context.to_dict()
    exported["trigger_data"]["items"].append(99)
    assert context.trigger_data == {"items": [1, 2]}


def test_condition_result_defaults_to_false():
    context = ExecutionContext.start({})
    assert context.condition_result is False

    assert context.with_condition_result(True).condition_result is True


def test_revisiting_a_node_overwrites_its_entry():
    context = ExecutionContext.start({}).with_entry("loop", {"n": 1}).with_entry("loop", {"n": 2})

    assert context["loop"] == {"n": 2}
    assert len(context) == 2
