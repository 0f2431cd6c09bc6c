# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow execution engine.

Modules:
- models: workflow, execution and step records
- context: immutable execution context snapshots
- url_safety: outbound URL policy
- condition_evaluator: restricted branch expressions
- actions: action node dispatcher
- executor: graph traversal loop
- lifecycle: execution status transitions
- validation: structural checks for workflow definitions
"""
