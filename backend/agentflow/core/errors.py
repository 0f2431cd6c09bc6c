# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Custom exceptions for the AgentFlow engine service.

All exceptions inherit from AgentFlowError for consistent error handling.
"""

from typing import Optional


class AgentFlowError(Exception):
    """Base exception for all AgentFlow errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[dict] = None
    ):
        """
        Initialize AgentFlow error.

        Args:
            message: Human-readable error message
            status_code: HTTP status code
            details: Additional error details
        """
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert error to dictionary for API response."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "status_code": self.status_code,
            "details": self.details
        }


class NotFoundError(AgentFlowError):
    """Resource not found."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        details: Optional[dict] = None,
        message: Optional[str] = None,
    ):
        """
        Initialize not found error.

        Args:
            resource: Type of resource (e.g., "Execution", "Workflow")
            identifier: Resource identifier
            details: Additional error details
            message: Replaces the default message, for identifiers that
                must not be echoed (webhook tokens)
        """
        message = message or f"{resource} not found: {identifier}"
        super().__init__(message, status_code=404, details=details)
        self.resource = resource
        self.identifier = identifier


class ValidationError(AgentFlowError):
    """Validation failed."""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, status_code=400, details=details)
        self.field = field


class ConfigurationError(AgentFlowError):
    """Configuration error."""

    def __init__(self, message: str, config_file: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, status_code=500, details=details)
        self.config_file = config_file


class ConflictError(AgentFlowError):
    """Resource conflict (e.g. an execution that was already started)."""

    def __init__(self, message: str, resource: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, status_code=409, details=details)
        self.resource = resource


class ExecutionError(AgentFlowError):
    """Unexpected failure while running an execution."""

    def __init__(self, message: str, execution_id: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, status_code=500, details=details)
        self.execution_id = execution_id


# Error Message Utilities

def sanitize_error_for_user(error: Exception, include_type: bool = True) -> str:
    """
    Sanitize error messages for user display.
    Removes stack traces and sensitive information.

    Args:
        error: The exception to sanitize
        include_type: Whether to include exception type

    Returns:
        User-friendly error message without stack trace
    """
    if isinstance(error, AgentFlowError):
        error_msg = error.message
    else:
        error_msg = str(error).strip()

    # Only the first line; tracebacks and chained context stay server side
    error_msg = error_msg.splitlines()[0] if error_msg else ""

    if len(error_msg) > 500:
        error_msg = error_msg[:500] + "..."

    if include_type:
        return f"{error.__class__.__name__}: {error_msg}"

    return error_msg
