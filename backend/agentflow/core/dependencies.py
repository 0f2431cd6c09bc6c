# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Dependency injection for the AgentFlow API.

Runtime objects are built once at startup and stored in app.state;
these dependencies hand them to the routers.
"""

from fastapi import Request


def get_workflow_service(request: Request):
    """Get WorkflowService instance."""
    return request.app.state.workflow_service


def get_execution_service(request: Request):
    """Get ExecutionService instance."""
    return request.app.state.execution_service
