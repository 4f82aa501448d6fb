"""
Deployment orchestrator.

Sequences a complete deployment: validation, resource naming, template generation,
the CloudFormation stack operation, application code sync and output extraction.
"""
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from app_deployer.cloudformation.stack_driver import (
    DEFAULT_MAX_WAIT_SECONDS,
    DEFAULT_POLL_INTERVAL,
    StackDriver,
    Succeeded,
)
from app_deployer.config.naming import ResourceNamingService
from app_deployer.exceptions import ConfigurationError, StackOperationError, StackTimeoutError
from app_deployer.lambda_func.code_deployer import LambdaCodeDeployer
from app_deployer.s3.asset_manager import S3AssetManager
from app_deployer.templates.cloudformation_generator import stack_tags
from app_deployer.templates.template_engine import TemplateEngine, TemplateOptions
from app_deployer.types import (
    DEFAULT_REGION,
    ApplicationType,
    DeployedResource,
    DeploymentConfig,
    DeploymentError,
    DeploymentMetadata,
    DeploymentResult,
    Endpoint,
)

ERROR_CODE = "DEPLOYMENT_FAILED"
REMEDIATION = "Check AWS CloudFormation console for detailed error information"


class DeploymentOrchestrator:
    """
    Deploys an application described by a DeploymentConfig.

    This class integrates all components of the App Deployer system:
    - Resource naming
    - CloudFormation template generation
    - Stack create/update and status polling
    - Frontend asset upload and Lambda code update
    """

    def __init__(
        self,
        region_name: Optional[str] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_wait_seconds: float = DEFAULT_MAX_WAIT_SECONDS,
        precondition: Optional[Callable[[str], None]] = None
    ):
        """
        Initialize the deployment orchestrator.

        Args:
            region_name: AWS region name. If not provided, uses the default region.
            poll_interval: Seconds between stack status probes
            max_wait_seconds: Maximum seconds to wait for the stack operation
            precondition: Hook called with the stack name before it is changed
        """
        self.region_name = region_name
        self.naming_service = ResourceNamingService()
        self.template_engine = TemplateEngine()
        self.stack_driver = StackDriver(
            region_name=region_name,
            poll_interval=poll_interval,
            max_wait_seconds=max_wait_seconds,
            precondition=precondition
        )
        self.s3_manager = S3AssetManager(region_name=region_name)
        self.lambda_deployer = LambdaCodeDeployer(region_name=region_name)
        self.logger = logging.getLogger(__name__)

    def deploy(self, config: DeploymentConfig, environment: Optional[str] = None) -> DeploymentResult:
        """
        Deploy an application.

        This method does not raise: every failure is reported in the returned result.

        Args:
            config: Validated deployment configuration
            environment: Optional environment name used for resource naming

        Returns:
            DeploymentResult describing the outcome
        """
        start_time = time.monotonic()
        metadata = DeploymentMetadata(
            deployment_id=str(uuid.uuid4()),
            timestamp=datetime.now(timezone.utc),
            region=self.region_name or getattr(config.aws, "region", None) or DEFAULT_REGION,
            stack_name=getattr(config.deployment, "stack_name", None) or "",
        )

        try:
            self._validate_deployment(config)

            names = self.naming_service.generate_resource_names(config, environment)
            metadata.stack_name = names.stack_name

            self.logger.info(f"Generating CloudFormation template for {config.application.name}")
            template = self.template_engine.generate_template(
                config,
                options=TemplateOptions(validate=True),
                environment=environment,
                names=names
            )

            self.logger.info(f"Deploying CloudFormation stack {names.stack_name}")
            stack = self.stack_driver.deploy_stack(
                names.stack_name,
                template,
                parameters=[{'ParameterKey': 'ApplicationName', 'ParameterValue': config.application.name}],
                tags=stack_tags(config)
            )

            self._deploy_application_code(config, stack)

            endpoints = self._extract_endpoints(stack)
            resources = self._extract_resources(stack, metadata.region)
            metadata.duration = self._elapsed_ms(start_time)

            self.logger.info(f"Deployment of {config.application.name} to stack {names.stack_name} succeeded")
            return DeploymentResult(
                success=True,
                resources=resources,
                endpoints=endpoints,
                metadata=metadata
            )

        except Exception as e:
            metadata.duration = self._elapsed_ms(start_time)
            self.logger.error(f"Deployment to stack {metadata.stack_name or '<unnamed>'} failed: {e}")

            return DeploymentResult(
                success=False,
                resources=[],
                endpoints=[],
                errors=[DeploymentError(
                    code=ERROR_CODE,
                    message=str(e) or 'Unknown deployment error',
                    details=self._error_details(e),
                    remediation=REMEDIATION
                )],
                metadata=metadata
            )

    def _validate_deployment(self, config: DeploymentConfig) -> None:
        if config.application is None:
            raise ConfigurationError("Application configuration is required")

        if not config.application.name:
            raise ConfigurationError("Application name is required")

        if config.application.type not in ApplicationType.ALL:
            raise ConfigurationError("Invalid application type. Must be frontend, backend, or fullstack")

        if config.application.needs_frontend() and config.frontend is None:
            raise ConfigurationError("Frontend configuration is required for frontend/fullstack applications")

        if config.application.needs_backend() and config.backend is None:
            raise ConfigurationError("Backend configuration is required for backend/fullstack applications")

    def _deploy_application_code(self, config: DeploymentConfig, stack: Succeeded) -> List[Dict[str, Any]]:
        results = []

        if config.application.needs_frontend() and config.frontend and config.frontend.source_dir:
            bucket_name = stack.outputs.get('BucketName')
            if bucket_name:
                self.logger.info(f"Uploading frontend assets from {config.frontend.source_dir} to {bucket_name}")
                upload_results = self.s3_manager.deploy_frontend_assets(bucket_name, config.frontend.source_dir)
                results.append({'type': 'frontend', 'results': upload_results})
            else:
                self.logger.warning(f"Stack {stack.name} has no BucketName output, skipping frontend upload")

        if config.application.needs_backend() and config.backend and config.backend.source_dir:
            function_name = stack.outputs.get('FunctionName')
            if function_name:
                self.logger.info(f"Updating Lambda function {function_name} from {config.backend.source_dir}")
                update_result = self.lambda_deployer.update_function_code(function_name, config.backend.source_dir)
                results.append({'type': 'backend', 'results': update_result})
            else:
                self.logger.warning(f"Stack {stack.name} has no FunctionName output, skipping code update")

        return results

    def _extract_endpoints(self, stack: Succeeded) -> List[Endpoint]:
        endpoints = []

        website_url = stack.outputs.get('WebsiteURL')
        if website_url:
            endpoints.append(Endpoint(type='website', url=website_url, description='Static website URL'))

        function_url = stack.outputs.get('FunctionURL')
        if function_url:
            endpoints.append(Endpoint(type='function_url', url=function_url, description='Lambda function URL'))

        return endpoints

    def _extract_resources(self, stack: Succeeded, region: str) -> List[DeployedResource]:
        # Built from stack outputs only; the stack's resources are not enumerated
        status = 'updated' if stack.status.startswith('UPDATE') else 'created'
        resources = []

        bucket_name = stack.outputs.get('BucketName')
        if bucket_name:
            resources.append(DeployedResource(
                type='S3::Bucket',
                name=bucket_name,
                arn=f"arn:aws:s3:::{bucket_name}",
                status=status
            ))

        function_name = stack.outputs.get('FunctionName')
        if function_name:
            function_arn = stack.outputs.get('FunctionArn') or (
                f"arn:aws:lambda:{region}:{self._account_id(stack)}:function:{function_name}"
            )
            resources.append(DeployedResource(
                type='Lambda::Function',
                name=function_name,
                arn=function_arn,
                status=status
            ))

        return resources

    def _account_id(self, stack: Succeeded) -> str:
        # arn:aws:cloudformation:<region>:<account>:stack/<name>/<id>
        parts = (stack.stack_id or '').split(':')
        return parts[4] if len(parts) > 4 else ''

    def _error_details(self, error: Exception) -> Dict[str, Any]:
        details: Dict[str, Any] = {'type': type(error).__name__}
        if isinstance(error, StackOperationError):
            details['stack_name'] = error.stack_name
            details['status'] = error.status
            details['reason'] = error.reason
        if isinstance(error, StackTimeoutError):
            details['elapsed_seconds'] = error.elapsed_seconds
        return details

    def _elapsed_ms(self, start_time: float) -> int:
        return int((time.monotonic() - start_time) * 1000)


def deploy(config: DeploymentConfig, environment: Optional[str] = None) -> DeploymentResult:
    """Deploy an application with an orchestrator for the configured region."""
    orchestrator = DeploymentOrchestrator(region_name=config.aws.region)
    return orchestrator.deploy(config, environment)
