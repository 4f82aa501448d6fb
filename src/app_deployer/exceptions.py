"""
Exceptions raised by the App Deployer system.
"""
from typing import Optional


class DeployerError(Exception):
    """Base class for App Deployer errors."""


class ConfigurationError(DeployerError, ValueError):
    """Raised when a deployment configuration is missing or invalid."""


class TemplateValidationError(DeployerError):
    """Raised when a generated template fails validation."""


class StackOperationError(DeployerError):
    """
    Raised when a CloudFormation stack operation ends in a failed state.

    Args:
        message: Human readable description of the failure
        stack_name: Name of the stack the operation ran against
        status: Last observed stack status, if any
        reason: Status reason reported by CloudFormation, if any
    """

    def __init__(
        self,
        message: str,
        stack_name: Optional[str] = None,
        status: Optional[str] = None,
        reason: Optional[str] = None
    ):
        super().__init__(message)
        self.stack_name = stack_name
        self.status = status
        self.reason = reason


class StackTimeoutError(StackOperationError):
    """Raised when a stack does not reach a terminal status within the maximum wait."""

    def __init__(self, message: str, stack_name: str, elapsed_seconds: float, status: Optional[str] = None):
        super().__init__(message, stack_name=stack_name, status=status)
        self.elapsed_seconds = elapsed_seconds


class DeploymentCancelledError(StackOperationError):
    """Raised when waiting on a stack is cancelled by the caller."""
