"""
Template engine.
Dispatches template generation to registered generators and validates the result.
"""
import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from app_deployer.config.naming import ResourceNames
from app_deployer.exceptions import TemplateValidationError
from app_deployer.templates.cloudformation_generator import DEFAULT_ENVIRONMENT, CloudFormationGenerator
from app_deployer.types import DEFAULT_REGION, DeploymentConfig

logger = logging.getLogger(__name__)

CLOUDFORMATION = "cloudformation"
MAX_LOGICAL_ID_LENGTH = 255

_LOGICAL_ID = re.compile(r"^[A-Za-z0-9]+$")

# Pseudo parameters and template parameters are valid Ref targets too
_PSEUDO_PARAMETERS = {
    "AWS::AccountId",
    "AWS::NotificationARNs",
    "AWS::NoValue",
    "AWS::Partition",
    "AWS::Region",
    "AWS::StackId",
    "AWS::StackName",
    "AWS::URLSuffix",
}


@dataclass
class TemplateOptions:
    format: str = CLOUDFORMATION
    minify: bool = False
    validate: bool = False


class TemplateEngine:
    """
    Generates deployment templates.

    This class handles:
    - Keeping a registry of template generators by format
    - Generating, minifying and validating templates
    - Producing deployment artifacts (template, parameters and metadata)
    """

    def __init__(self):
        self.generators: Dict[str, Any] = {
            CLOUDFORMATION: CloudFormationGenerator(),
        }

    def register_generator(self, template_format: str, generator: Any) -> None:
        """Register a generator exposing ``generate(config, environment=None, names=None)``."""
        self.generators[template_format] = generator

    def get_supported_formats(self) -> List[str]:
        return list(self.generators)

    def generate_template(
        self,
        config: DeploymentConfig,
        options: Optional[TemplateOptions] = None,
        environment: Optional[str] = None,
        names: Optional[ResourceNames] = None
    ) -> str:
        """
        Generate a template for a deployment configuration.

        Args:
            config: Validated deployment configuration
            options: Output format, minification and validation options
            environment: Optional environment name
            names: Resource names to embed in the template

        Returns:
            Template body

        Raises:
            ValueError: If the requested format is not supported
            TemplateValidationError: If validation is requested and fails
        """
        options = options or TemplateOptions()
        generator = self.generators.get(options.format)
        if generator is None:
            raise ValueError(f"Unsupported template format: {options.format}")

        template = generator.generate(config, environment=environment, names=names)

        if options.validate:
            self.validate_template(template, options.format, config)

        if options.minify:
            template = self._minify_template(template, options.format)

        return template

    def validate_template(
        self,
        template: str,
        template_format: str = CLOUDFORMATION,
        config: Optional[DeploymentConfig] = None
    ) -> bool:
        """
        Validate a template body.

        Args:
            template: Template body
            template_format: Format of the template
            config: Configuration the template was generated from. When given, the
                outputs required by the application type are checked as well.

        Returns:
            True if the template is valid

        Raises:
            TemplateValidationError: If the template is invalid
        """
        if template_format == CLOUDFORMATION:
            return self._validate_cloudformation_template(template, config)

        logger.warning(f"Validation not implemented for format: {template_format}")
        return True

    def _validate_cloudformation_template(self, template: str, config: Optional[DeploymentConfig]) -> bool:
        try:
            parsed = json.loads(template)
        except json.JSONDecodeError as e:
            raise TemplateValidationError(f"Template is not valid JSON: {e}") from e

        if not isinstance(parsed, dict):
            raise TemplateValidationError("Template must be a JSON object")

        if not parsed.get("AWSTemplateFormatVersion"):
            raise TemplateValidationError("Missing AWSTemplateFormatVersion")

        resources = parsed.get("Resources")
        if not isinstance(resources, dict) or not resources:
            raise TemplateValidationError("Template must contain at least one resource")

        for resource_id, resource in resources.items():
            if not _LOGICAL_ID.match(resource_id) or len(resource_id) > MAX_LOGICAL_ID_LENGTH:
                raise TemplateValidationError(f"Invalid logical ID: {resource_id}")
            if not isinstance(resource, dict):
                raise TemplateValidationError(f"Invalid resource definition: {resource_id}")
            if not resource.get("Type"):
                raise TemplateValidationError(f"Resource {resource_id} missing Type property")

        known_ids = set(resources) | set(parsed.get("Parameters") or {}) | _PSEUDO_PARAMETERS
        for target in self._references(parsed.get("Resources")) + self._references(parsed.get("Outputs")):
            if target not in known_ids:
                raise TemplateValidationError(f"Reference to undefined resource: {target}")

        if config is not None:
            outputs = parsed.get("Outputs") or {}
            required = []
            if config.application.needs_frontend():
                required.append("WebsiteURL")
            if config.application.needs_backend():
                required.append("FunctionURL")
            for output_key in required:
                if output_key not in outputs:
                    raise TemplateValidationError(f"Template missing required output: {output_key}")

        return True

    def _references(self, node: Any) -> List[str]:
        """Collect Ref and Fn::GetAtt targets from a template section."""
        targets = []
        if isinstance(node, dict):
            for key, value in node.items():
                if key == "Ref" and isinstance(value, str):
                    targets.append(value)
                elif key == "Fn::GetAtt" and isinstance(value, list) and value:
                    targets.append(value[0])
                else:
                    targets.extend(self._references(value))
        elif isinstance(node, list):
            for item in node:
                targets.extend(self._references(item))
        return targets

    def _minify_template(self, template: str, template_format: str) -> str:
        if template_format == CLOUDFORMATION:
            return json.dumps(json.loads(template), separators=(",", ":"))
        return template

    def generate_deployment_artifacts(
        self,
        config: DeploymentConfig,
        environment: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Generate a template together with its parameters and metadata.

        Returns:
            Dictionary with ``template``, ``parameters`` and ``metadata`` keys
        """
        template = self.generate_template(config, environment=environment)

        return {
            "template": template,
            "parameters": {
                "ApplicationName": config.application.name,
                "Environment": environment or DEFAULT_ENVIRONMENT,
            },
            "metadata": {
                "generatedAt": datetime.now(timezone.utc).isoformat(),
                "templateFormat": CLOUDFORMATION,
                "applicationName": config.application.name,
                "applicationType": config.application.type,
                "region": config.aws.region or DEFAULT_REGION,
            },
        }
