"""
Resource naming service.
Derives AWS-compliant resource names from a deployment configuration.
"""
import hashlib
import json
import logging
import re
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, List, Optional

from app_deployer.types import DEFAULT_REGION, DeploymentConfig

logger = logging.getLogger(__name__)

MAX_STACK_NAME_LENGTH = 128
MAX_S3_BUCKET_NAME_LENGTH = 63
MAX_LAMBDA_NAME_LENGTH = 64
MAX_ROLE_NAME_LENGTH = 64

HASH_LENGTH = 6

_INVALID_CHARS = re.compile(r"[^a-zA-Z0-9-]")
_REPEATED_HYPHENS = re.compile(r"-+")
_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


@dataclass(frozen=True)
class NamingConfig:
    """Inputs to name generation for a single call."""

    application_name: str
    region: str = DEFAULT_REGION
    environment: Optional[str] = None
    prefix: Optional[str] = None
    suffix: Optional[str] = None


@dataclass(frozen=True)
class ResourceNames:
    """
    Generated names for the resources of one deployment.

    Optional fields are None when the application type does not need the resource.
    """

    stack_name: str
    s3_bucket_name: Optional[str] = None
    lambda_function_name: Optional[str] = None
    lambda_execution_role_name: Optional[str] = None
    api_gateway_name: Optional[str] = None
    log_group_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return asdict(self)


def sanitize_name(name: str) -> str:
    """
    Make a name AWS-compliant.

    Invalid characters become hyphens, repeated hyphens are collapsed, leading and
    trailing hyphens are removed and the result always starts with a letter.

    Args:
        name: Raw name

    Returns:
        Sanitized name, ``app`` if nothing usable is left
    """
    sanitized = _INVALID_CHARS.sub("-", name)
    sanitized = _REPEATED_HYPHENS.sub("-", sanitized)
    sanitized = sanitized.strip("-")

    if sanitized and not sanitized[0].isalpha():
        sanitized = f"app-{sanitized}"

    return sanitized or "app"


def short_hash(value: str) -> str:
    """
    Compute a short, non-cryptographic base-36 hash of a string.

    Uses a 32-bit rolling multiply-and-fold hash (h = h * 31 + c).

    Args:
        value: String to hash

    Returns:
        Six lowercase base-36 characters
    """
    h = 0
    for char in value:
        h = (h * 31 + ord(char)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    h = abs(h)

    digits = []
    while h:
        h, remainder = divmod(h, 36)
        digits.append(_BASE36_DIGITS[remainder])
    encoded = "".join(reversed(digits)) or "0"
    return encoded[:HASH_LENGTH].rjust(HASH_LENGTH, "0")


def truncate_name(name: str, max_length: int) -> str:
    """
    Fit a name into a maximum length.

    Names that are too long keep a readable prefix and get a hash of the full name
    appended, so distinct long names stay distinct after truncation.

    Args:
        name: Sanitized name
        max_length: Maximum length allowed for the resource

    Returns:
        Name no longer than ``max_length``
    """
    if len(name) <= max_length:
        return name

    name_hash = short_hash(name)
    truncated = name[:max_length - HASH_LENGTH - 1].rstrip("-")
    logger.debug(f"Truncated name {name} to {truncated}-{name_hash}")
    return f"{truncated}-{name_hash}"


def deep_merge(target: Dict[str, Any], source: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge ``source`` onto ``target`` without mutating either.

    Nested dictionaries are merged; lists and scalars from ``source`` replace
    the value in ``target``.
    """
    result = dict(target)
    for key, value in source.items():
        if isinstance(value, dict):
            existing = result.get(key)
            result[key] = deep_merge(existing if isinstance(existing, dict) else {}, value)
        else:
            result[key] = value
    return result


class ResourceNamingService:
    """
    Derives names for the AWS resources of a deployment.

    This class handles:
    - Generating stack, S3 bucket, Lambda, IAM role and log group names
    - Checking generated names against existing resource names
    - Resolving environment-specific configuration
    """

    def generate_resource_names(
        self,
        config: DeploymentConfig,
        environment: Optional[str] = None,
        uniqueness_token: Optional[str] = None
    ) -> ResourceNames:
        """
        Generate all resource names for a deployment.

        Args:
            config: Validated deployment configuration
            environment: Optional environment name (e.g. dev, staging, production)
            uniqueness_token: Token embedded in the S3 bucket name. Defaults to the
                configured idempotency key, then to a hash of the naming inputs.

        Returns:
            Generated resource names
        """
        naming_config = self._naming_config(config, environment)

        if config.deployment.stack_name:
            stack_name = truncate_name(sanitize_name(config.deployment.stack_name), MAX_STACK_NAME_LENGTH)
        else:
            stack_name = self.generate_stack_name(naming_config)

        s3_bucket_name = None
        if config.application.needs_frontend():
            token = uniqueness_token or config.deployment.idempotency_key or self._identity_hash(
                config, naming_config
            )
            s3_bucket_name = self.generate_s3_bucket_name(naming_config, token)

        lambda_function_name = None
        lambda_execution_role_name = None
        log_group_name = None
        if config.application.needs_backend():
            lambda_function_name = self.generate_lambda_function_name(naming_config)
            lambda_execution_role_name = self.generate_lambda_role_name(naming_config)
            log_group_name = f"/aws/lambda/{lambda_function_name}"

        # Function URLs are the integration path; no API Gateway is provisioned.
        return ResourceNames(
            stack_name=stack_name,
            s3_bucket_name=s3_bucket_name,
            lambda_function_name=lambda_function_name,
            lambda_execution_role_name=lambda_execution_role_name,
            api_gateway_name=None,
            log_group_name=log_group_name,
        )

    def check_naming_conflicts(self, names: ResourceNames, existing_names: List[str]) -> List[str]:
        """
        Check generated names against existing resource names.

        The comparison is case-insensitive.

        Args:
            names: Generated resource names
            existing_names: Names of resources that already exist

        Returns:
            List of conflicts formatted as ``"<field>: <name>"``
        """
        existing = {name.lower() for name in existing_names}
        conflicts = []

        for name_field in fields(names):
            value = getattr(names, name_field.name)
            if value and value.lower() in existing:
                conflicts.append(f"{name_field.name}: {value}")

        return conflicts

    def resolve_environment_config(
        self,
        base_config: DeploymentConfig,
        environment: str,
        overrides: Optional[Dict[str, Any]] = None
    ) -> DeploymentConfig:
        """
        Apply environment-specific settings to a configuration.

        Overrides are deep-merged onto the base configuration. A stack name is
        derived only when none is set. The ``Environment`` and ``Application`` tags
        always reflect the resolved configuration; other tags are kept.

        Args:
            base_config: Base deployment configuration
            environment: Environment name
            overrides: Environment-specific overrides in configuration-file shape

        Returns:
            New configuration with environment settings applied
        """
        resolved = deep_merge(base_config.to_dict(), overrides or {})
        merged_config = DeploymentConfig.from_dict(resolved)
        application_name = merged_config.application.name
        deployment = dict(resolved.get("deployment") or {})

        if not deployment.get("stack_name"):
            # Same inputs as generate_resource_names, including Prefix/Suffix tags
            deployment["stack_name"] = self.generate_stack_name(self._naming_config(merged_config, environment))

        tags = dict(deployment.get("tags") or {})
        tags["Environment"] = environment
        tags["Application"] = application_name
        deployment["tags"] = tags
        resolved["deployment"] = deployment

        return DeploymentConfig.from_dict(resolved)

    def generate_stack_name(self, naming_config: NamingConfig) -> str:
        return self._build_name(naming_config, None, MAX_STACK_NAME_LENGTH, fallback_name=False)

    def generate_s3_bucket_name(self, naming_config: NamingConfig, token: str) -> str:
        # Bucket names are global and must be lowercase
        return self._build_name(naming_config, f"frontend-{token}", MAX_S3_BUCKET_NAME_LENGTH, lowercase=True)

    def generate_lambda_function_name(self, naming_config: NamingConfig) -> str:
        return self._build_name(naming_config, "lambda", MAX_LAMBDA_NAME_LENGTH)

    def generate_lambda_role_name(self, naming_config: NamingConfig) -> str:
        return self._build_name(naming_config, "lambda-role", MAX_ROLE_NAME_LENGTH)

    def _build_name(
        self,
        naming_config: NamingConfig,
        discriminator: Optional[str],
        max_length: int,
        lowercase: bool = False,
        fallback_name: bool = True
    ) -> str:
        application_name = naming_config.application_name
        if fallback_name and not application_name:
            application_name = "app"

        parts = [
            naming_config.prefix,
            application_name,
            naming_config.environment,
            discriminator,
            naming_config.suffix,
        ]
        name = sanitize_name("-".join(part for part in parts if part))
        if lowercase:
            name = name.lower()
        return truncate_name(name, max_length)

    def _naming_config(self, config: DeploymentConfig, environment: Optional[str]) -> NamingConfig:
        tags = config.deployment.tags or {}
        return NamingConfig(
            application_name=config.application.name,
            environment=environment,
            region=config.aws.region or DEFAULT_REGION,
            prefix=tags.get("Prefix"),
            suffix=tags.get("Suffix"),
        )

    def _identity_hash(self, config: DeploymentConfig, naming_config: NamingConfig) -> str:
        identity = {
            "application": naming_config.application_name,
            "type": config.application.type,
            "environment": naming_config.environment,
            "region": naming_config.region,
            "prefix": naming_config.prefix,
            "suffix": naming_config.suffix,
        }
        digest = hashlib.sha256(json.dumps(identity, sort_keys=True).encode("utf-8"))
        return digest.hexdigest()[:8]


def create_naming_service() -> ResourceNamingService:
    """Create a new resource naming service."""
    return ResourceNamingService()
