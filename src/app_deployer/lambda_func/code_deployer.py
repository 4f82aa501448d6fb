"""
Lambda code deployer module.
Handles packaging a source directory and pushing it to an existing Lambda function.
"""
import io
import logging
import zipfile
from pathlib import Path
from typing import Any, Dict, Optional, Union

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)


class LambdaCodeDeployer:
    """
    Deploys application code to AWS Lambda functions.

    This class handles:
    - Checking whether a Lambda function exists
    - Packaging a source directory as a zip archive
    - Updating the function code and waiting for the update to finish
    """

    def __init__(self, region_name: Optional[str] = None):
        """
        Initialize the Lambda code deployer.

        Args:
            region_name: AWS region name. If not provided, uses the default region.
        """
        self.lambda_client = boto3.client('lambda', region_name=region_name)

    def _function_exists(self, function_name: str) -> bool:
        """
        Check if a Lambda function exists.

        Args:
            function_name: Name of the Lambda function to check

        Returns:
            True if the function exists, False otherwise
        """
        try:
            self.lambda_client.get_function(FunctionName=function_name)
            return True
        except ClientError as e:
            if e.response['Error']['Code'] == 'ResourceNotFoundException':
                return False
            raise

    def package_function(self, source_dir: Union[str, Path]) -> bytes:
        """
        Zip a source directory.

        Paths inside the archive are relative to ``source_dir``.

        Args:
            source_dir: Directory containing the function code

        Returns:
            Zip archive contents
        """
        root = Path(source_dir)
        if not root.is_dir():
            raise ValueError(f"Source directory {source_dir} does not exist")

        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, 'w', zipfile.ZIP_DEFLATED) as archive:
            for file_path in sorted(p for p in root.rglob('*') if p.is_file()):
                archive.write(file_path, file_path.relative_to(root).as_posix())

        return buffer.getvalue()

    def update_function_code(self, function_name: str, source_dir: Union[str, Path]) -> Dict[str, Any]:
        """
        Package a source directory and deploy it to a Lambda function.

        Args:
            function_name: Name of the Lambda function
            source_dir: Directory containing the function code

        Returns:
            UpdateFunctionCode response
        """
        if not self._function_exists(function_name):
            raise ValueError(f"Lambda function {function_name} does not exist")

        zip_file = self.package_function(source_dir)

        try:
            response = self.lambda_client.update_function_code(
                FunctionName=function_name,
                ZipFile=zip_file
            )
            logger.info(f"Updated Lambda function code: {response['FunctionArn']}")

            # Wait for function to be updated
            waiter = self.lambda_client.get_waiter('function_updated')
            waiter.wait(FunctionName=function_name)

            return response

        except ClientError as e:
            logger.error(f"Error updating Lambda function code for {function_name}: {e}")
            raise
