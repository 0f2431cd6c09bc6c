# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Test Suite for the AgentFlow engine

Structure:
- unit/: Unit tests for core utilities, actions, stores and services
- engine/: Traversal, lifecycle and validation tests
- test_api.py: API tests through the FastAPI app
"""
