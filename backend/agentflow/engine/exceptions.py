# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Workflow Engine Exceptions

Raised by the engine for configuration problems detected before or
outside of node execution. Step-local failures never raise; they are
recorded as failed steps instead.
"""


class WorkflowEngineError(Exception):
    """Base exception for the workflow engine"""
    pass


class WorkflowValidationError(WorkflowEngineError):
    """Workflow definition is structurally invalid"""
    def __init__(self, message: str, field: str = None):
        self.message = message
        self.field = field
        super().__init__(message)


class MissingTriggerError(WorkflowValidationError):
    """Workflow has no trigger node to start from"""
    def __init__(self):
        super().__init__("No trigger node found", field="nodes")


class DisallowedURLError(WorkflowEngineError):
    """Outbound request targets a forbidden address"""
    def __init__(self, url: str):
        self.url = url
        super().__init__("Outbound request blocked by URL safety policy")
