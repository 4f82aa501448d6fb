"""
CloudFormation template generator.
Builds a CloudFormation template for frontend, backend and fullstack applications.
"""
import json
import logging
import re
from typing import Any, Dict, List, Optional

from app_deployer.config.naming import ResourceNames, ResourceNamingService
from app_deployer.types import DeploymentConfig

logger = logging.getLogger(__name__)

TEMPLATE_FORMAT_VERSION = "2010-09-09"
MANAGED_BY = "AWS-Deployment-Template"
DEFAULT_ENVIRONMENT = "production"
LOG_RETENTION_DAYS = 14

LAMBDA_BASIC_EXECUTION_POLICY = "arn:aws:iam::aws:policy/service-role/AWSLambdaBasicExecutionRole"

PLACEHOLDER_CODE = {
    "nodejs": 'exports.handler = async (event) => { return { statusCode: 200, body: "Hello World" }; };',
    "python": "def handler(event, context):\n    return {'statusCode': 200, 'body': 'Hello World'}\n",
}

_WORD = re.compile(r"[A-Za-z0-9]+")


def stack_tags(config: DeploymentConfig) -> List[Dict[str, str]]:
    """
    Build the tag list applied to the stack and its resources.

    User tags are added after the Application and ManagedBy tags and win on the same key.
    """
    tags = {
        "Application": config.application.name,
        "ManagedBy": MANAGED_BY,
    }
    tags.update(config.deployment.tags or {})
    return [{"Key": key, "Value": value} for key, value in tags.items()]


def logical_id(application_name: str, resource: str) -> str:
    """
    Derive a stable CloudFormation logical ID.

    Logical IDs must be alphanumeric, so the application name is converted to
    PascalCase, e.g. ``my-app`` and ``FrontendBucket`` give ``MyAppFrontendBucket``.
    """
    base = "".join(word[0].upper() + word[1:] for word in _WORD.findall(application_name))
    if not base or not base[0].isalpha():
        base = f"App{base}"
    return f"{base}{resource}"


class CloudFormationGenerator:
    """
    Generates CloudFormation templates from deployment configurations.

    This class handles:
    - The base template with ApplicationName and Environment parameters
    - An S3 website bucket with a public read policy for frontends
    - An IAM role, Lambda function, Function URL and log group for backends
    """

    def __init__(self, naming_service: Optional[ResourceNamingService] = None):
        self.naming_service = naming_service or ResourceNamingService()

    def generate(
        self,
        config: DeploymentConfig,
        environment: Optional[str] = None,
        names: Optional[ResourceNames] = None
    ) -> str:
        """
        Generate a CloudFormation template.

        Args:
            config: Validated deployment configuration
            environment: Optional environment name
            names: Resource names to use. Generated from the configuration if not provided.

        Returns:
            Template as a pretty-printed JSON string
        """
        if names is None:
            names = self.naming_service.generate_resource_names(config, environment)

        template = self.build(config, names, environment)
        return json.dumps(template, indent=2)

    def build(
        self,
        config: DeploymentConfig,
        names: ResourceNames,
        environment: Optional[str] = None
    ) -> Dict[str, Any]:
        """Build the template as a dictionary."""
        template = self._create_base_template(config, environment)

        if config.application.needs_frontend():
            self._add_frontend_resources(template, config, names)
        if config.application.needs_backend():
            self._add_backend_resources(template, config, names)

        logger.debug(
            f"Generated template for {config.application.name} with "
            f"{len(template['Resources'])} resources"
        )
        return template

    def _create_base_template(self, config: DeploymentConfig, environment: Optional[str]) -> Dict[str, Any]:
        return {
            "AWSTemplateFormatVersion": TEMPLATE_FORMAT_VERSION,
            "Description": f"AWS Deployment Template for {config.application.name}",
            "Parameters": {
                "ApplicationName": {
                    "Type": "String",
                    "Default": config.application.name,
                    "Description": "Name of the application",
                },
                "Environment": {
                    "Type": "String",
                    "Default": environment or DEFAULT_ENVIRONMENT,
                    "Description": "Deployment environment",
                },
            },
            "Resources": {},
            "Outputs": {},
        }

    def _add_frontend_resources(
        self,
        template: Dict[str, Any],
        config: DeploymentConfig,
        names: ResourceNames
    ) -> None:
        bucket_id = logical_id(config.application.name, "FrontendBucket")
        index_file = config.frontend.index_file if config.frontend else "index.html"

        template["Resources"][bucket_id] = {
            "Type": "AWS::S3::Bucket",
            "Properties": {
                "BucketName": names.s3_bucket_name,
                "WebsiteConfiguration": {
                    "IndexDocument": index_file,
                    "ErrorDocument": "error.html",
                },
                "PublicAccessBlockConfiguration": {
                    "BlockPublicAcls": False,
                    "BlockPublicPolicy": False,
                    "IgnorePublicAcls": False,
                    "RestrictPublicBuckets": False,
                },
                "Tags": stack_tags(config),
            },
        }

        template["Resources"][f"{bucket_id}Policy"] = {
            "Type": "AWS::S3::BucketPolicy",
            "Properties": {
                "Bucket": {"Ref": bucket_id},
                "PolicyDocument": {
                    "Version": "2012-10-17",
                    "Statement": [
                        {
                            "Sid": "PublicReadGetObject",
                            "Effect": "Allow",
                            "Principal": "*",
                            "Action": "s3:GetObject",
                            "Resource": {"Fn::Sub": f"${{{bucket_id}.Arn}}/*"},
                        }
                    ],
                },
            },
        }

        template["Outputs"]["WebsiteURL"] = {
            "Description": "URL of the static website",
            "Value": {"Fn::GetAtt": [bucket_id, "WebsiteURL"]},
            "Export": {"Name": {"Fn::Sub": "${AWS::StackName}-WebsiteURL"}},
        }
        template["Outputs"]["BucketName"] = {
            "Description": "Name of the frontend bucket",
            "Value": {"Ref": bucket_id},
        }

    def _add_backend_resources(
        self,
        template: Dict[str, Any],
        config: DeploymentConfig,
        names: ResourceNames
    ) -> None:
        role_id = logical_id(config.application.name, "ExecutionRole")
        function_id = logical_id(config.application.name, "Function")
        url_id = f"{function_id}Url"
        backend = config.backend
        runtime = backend.runtime if backend else "nodejs22.x"

        template["Resources"][role_id] = {
            "Type": "AWS::IAM::Role",
            "Properties": {
                "RoleName": names.lambda_execution_role_name,
                "AssumeRolePolicyDocument": {
                    "Version": "2012-10-17",
                    "Statement": [
                        {
                            "Effect": "Allow",
                            "Principal": {"Service": "lambda.amazonaws.com"},
                            "Action": "sts:AssumeRole",
                        }
                    ],
                },
                "ManagedPolicyArns": [LAMBDA_BASIC_EXECUTION_POLICY],
                "Tags": stack_tags(config),
            },
        }

        function_properties = {
            "FunctionName": names.lambda_function_name,
            "Runtime": runtime,
            "Handler": backend.handler if backend else "index.handler",
            "Role": {"Fn::GetAtt": [role_id, "Arn"]},
            "Code": {"ZipFile": self._placeholder_code(runtime)},
            "Timeout": backend.timeout if backend else 60,
            "MemorySize": backend.memory if backend else 512,
            "Environment": {
                "Variables": dict(backend.environment_variables) if backend else {},
            },
            "Tags": stack_tags(config),
        }
        template["Resources"][function_id] = {
            "Type": "AWS::Lambda::Function",
            "Properties": function_properties,
        }

        if config.deployment.enable_monitoring:
            log_group_id = logical_id(config.application.name, "LogGroup")
            template["Resources"][log_group_id] = {
                "Type": "AWS::Logs::LogGroup",
                "Properties": {
                    "LogGroupName": names.log_group_name,
                    "RetentionInDays": LOG_RETENTION_DAYS,
                },
            }
            template["Resources"][function_id]["DependsOn"] = [log_group_id]

        template["Resources"][url_id] = {
            "Type": "AWS::Lambda::Url",
            "Properties": {
                "TargetFunctionArn": {"Ref": function_id},
                "AuthType": "NONE",
                "Cors": {
                    "AllowCredentials": False,
                    "AllowMethods": ["GET", "POST", "PUT", "DELETE"],
                    "AllowOrigins": ["*"],
                    "AllowHeaders": ["Content-Type", "Authorization"],
                },
            },
        }

        template["Resources"][f"{url_id}Permission"] = {
            "Type": "AWS::Lambda::Permission",
            "Properties": {
                "FunctionName": {"Ref": function_id},
                "Action": "lambda:InvokeFunctionUrl",
                "Principal": "*",
                "FunctionUrlAuthType": "NONE",
            },
        }

        template["Outputs"]["FunctionURL"] = {
            "Description": "URL of the Lambda function",
            "Value": {"Fn::GetAtt": [url_id, "FunctionUrl"]},
            "Export": {"Name": {"Fn::Sub": "${AWS::StackName}-FunctionURL"}},
        }
        template["Outputs"]["FunctionName"] = {
            "Description": "Name of the Lambda function",
            "Value": {"Ref": function_id},
        }
        template["Outputs"]["FunctionArn"] = {
            "Description": "ARN of the Lambda function",
            "Value": {"Fn::GetAtt": [function_id, "Arn"]},
        }

    def _placeholder_code(self, runtime: str) -> str:
        if runtime.startswith("python"):
            return PLACEHOLDER_CODE["python"]
        return PLACEHOLDER_CODE["nodejs"]
