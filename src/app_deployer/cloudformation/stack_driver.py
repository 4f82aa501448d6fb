"""
CloudFormation stack driver.
Creates or updates a stack and waits for it to reach a terminal status.
"""
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

import boto3
from botocore.exceptions import ClientError

from app_deployer.exceptions import DeploymentCancelledError, StackOperationError, StackTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 10
DEFAULT_MAX_WAIT_SECONDS = 30 * 60

CAPABILITIES = ["CAPABILITY_IAM", "CAPABILITY_NAMED_IAM"]

NO_UPDATES_MESSAGE = "No updates are to be performed"


@dataclass(frozen=True)
class Absent:
    name: str


@dataclass(frozen=True)
class InProgress:
    name: str
    status: str


@dataclass(frozen=True)
class Succeeded:
    name: str
    status: str
    outputs: Dict[str, str] = field(default_factory=dict)
    stack_id: Optional[str] = None


@dataclass(frozen=True)
class Failed:
    name: str
    status: str
    reason: Optional[str] = None


StackState = Union[Absent, InProgress, Succeeded, Failed]


def _outputs(stack: Dict[str, Any]) -> Dict[str, str]:
    return {
        output["OutputKey"]: output.get("OutputValue", "")
        for output in stack.get("Outputs", [])
    }


def succeeded_from_description(stack: Dict[str, Any]) -> Succeeded:
    """Build a Succeeded state from a DescribeStacks entry regardless of its status."""
    return Succeeded(
        name=stack["StackName"],
        status=stack["StackStatus"],
        outputs=_outputs(stack),
        stack_id=stack.get("StackId"),
    )


def classify_stack(stack: Dict[str, Any]) -> StackState:
    """
    Classify a DescribeStacks entry into a stack state.

    A ``_COMPLETE`` status that mentions FAILED or ROLLBACK is a failure even though
    the operation completed; a ``_FAILED`` status is always a failure.

    Args:
        stack: Single entry of the ``Stacks`` list returned by DescribeStacks

    Returns:
        InProgress, Succeeded or Failed state
    """
    name = stack["StackName"]
    status = stack["StackStatus"]

    if status.endswith("_COMPLETE"):
        if "FAILED" in status or "ROLLBACK" in status:
            return Failed(name=name, status=status, reason=stack.get("StackStatusReason"))
        return succeeded_from_description(stack)

    if status.endswith("_FAILED"):
        return Failed(name=name, status=status, reason=stack.get("StackStatusReason"))

    return InProgress(name=name, status=status)


def is_no_updates_error(error: ClientError) -> bool:
    """Return True if an update was rejected because the stack is already up to date."""
    details = error.response.get("Error", {})
    return details.get("Code") == "ValidationError" and NO_UPDATES_MESSAGE in details.get("Message", "")


class StackDriver:
    """
    Drives a CloudFormation stack to a terminal status.

    This class handles:
    - Probing whether a stack exists
    - Creating the stack or updating it in place
    - Treating "no updates are to be performed" as a successful no-op
    - Polling the stack until it completes, fails or the maximum wait elapses
    """

    def __init__(
        self,
        region_name: Optional[str] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_wait_seconds: float = DEFAULT_MAX_WAIT_SECONDS,
        precondition: Optional[Callable[[str], None]] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize the stack driver.

        Args:
            region_name: AWS region name. If not provided, uses the default region.
            poll_interval: Seconds between stack status probes
            max_wait_seconds: Maximum seconds to wait for a terminal status
            precondition: Called with the stack name before the stack is probed or
                changed. Raise from it to refuse the deployment, e.g. when an external
                lock for the stack cannot be acquired.
            clock: Monotonic clock used to measure the wait
        """
        self.cloudformation_client = boto3.client('cloudformation', region_name=region_name)
        self.poll_interval = poll_interval
        self.max_wait_seconds = max_wait_seconds
        self.precondition = precondition
        self.clock = clock
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        """Stop waiting on the current stack operation. The remote operation keeps running."""
        self._cancelled.set()

    def _describe(self, stack_name: str) -> Optional[Dict[str, Any]]:
        try:
            response = self.cloudformation_client.describe_stacks(StackName=stack_name)
        except ClientError as e:
            error = e.response.get('Error', {})
            if error.get('Code') == 'ValidationError' and 'does not exist' in error.get('Message', ''):
                return None
            logger.error(f"Error describing stack {stack_name}: {e}")
            raise

        stacks = response.get('Stacks', [])
        return stacks[0] if stacks else None

    def describe_stack(self, stack_name: str) -> StackState:
        """
        Get the current state of a stack.

        Args:
            stack_name: Name of the stack

        Returns:
            Absent if the stack does not exist, otherwise its classified state
        """
        stack = self._describe(stack_name)
        if stack is None:
            return Absent(name=stack_name)
        return classify_stack(stack)

    def deploy_stack(
        self,
        stack_name: str,
        template_body: str,
        parameters: Optional[List[Dict[str, str]]] = None,
        tags: Optional[List[Dict[str, str]]] = None
    ) -> Succeeded:
        """
        Create or update a stack and wait for it to finish.

        Args:
            stack_name: Name of the stack
            template_body: CloudFormation template body
            parameters: Stack parameters
            tags: Stack tags, applied on creation only

        Returns:
            Succeeded state of the stack, including its outputs

        Raises:
            StackOperationError: If the stack ends in a failed status
            StackTimeoutError: If the stack does not finish within the maximum wait
            ClientError: If a CloudFormation API call fails
        """
        self._cancelled.clear()

        if self.precondition is not None:
            self.precondition(stack_name)

        existing_stack = self._describe(stack_name)
        params = {
            'StackName': stack_name,
            'TemplateBody': template_body,
            'Parameters': parameters or [],
            'Capabilities': CAPABILITIES,
        }

        if existing_stack is None:
            logger.info(f"Stack {stack_name} does not exist, creating it")
            try:
                self.cloudformation_client.create_stack(Tags=tags or [], **params)
            except ClientError as e:
                logger.error(f"Error creating stack {stack_name}: {e}")
                raise
        else:
            logger.info(f"Stack {stack_name} exists, updating it")
            try:
                self.cloudformation_client.update_stack(**params)
            except ClientError as e:
                if is_no_updates_error(e):
                    logger.info(f"No changes detected in stack {stack_name}")
                    return succeeded_from_description(existing_stack)
                logger.error(f"Error updating stack {stack_name}: {e}")
                raise

        return self.wait_for_stack(stack_name)

    def wait_for_stack(self, stack_name: str) -> Succeeded:
        """
        Poll a stack until it reaches a terminal status.

        Args:
            stack_name: Name of the stack

        Returns:
            Succeeded state of the stack

        Raises:
            StackOperationError: If the stack fails, rolls back or disappears
            StackTimeoutError: If the maximum wait elapses first
            DeploymentCancelledError: If ``cancel`` is called while waiting
        """
        start_time = self.clock()

        while True:
            state = self.describe_stack(stack_name)

            if isinstance(state, Succeeded):
                logger.info(f"Stack {stack_name} reached {state.status}")
                return state

            if isinstance(state, Failed):
                logger.error(f"Stack {stack_name} failed with status {state.status}: {state.reason}")
                raise StackOperationError(
                    f"Stack operation failed with status: {state.status}",
                    stack_name=stack_name,
                    status=state.status,
                    reason=state.reason
                )

            if isinstance(state, Absent):
                raise StackOperationError(f"Stack {stack_name} not found", stack_name=stack_name)

            elapsed = self.clock() - start_time
            if elapsed >= self.max_wait_seconds:
                raise StackTimeoutError(
                    f"Stack operation timed out after {elapsed:.0f} seconds",
                    stack_name=stack_name,
                    elapsed_seconds=elapsed,
                    status=state.status
                )

            logger.info(f"Stack {stack_name} is {state.status}, checking again in {self.poll_interval} seconds")
            wait = min(self.poll_interval, self.max_wait_seconds - elapsed)
            if self._cancelled.wait(wait):
                raise DeploymentCancelledError(
                    f"Waiting for stack {stack_name} was cancelled",
                    stack_name=stack_name,
                    status=state.status
                )
