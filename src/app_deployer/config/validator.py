"""
Deployment configuration validator.
Validates raw configuration dictionaries against pydantic models and
normalizes them into DeploymentConfig objects.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from app_deployer.exceptions import ConfigurationError
from app_deployer.types import DEFAULT_REGION, ApplicationType, DeploymentConfig

logger = logging.getLogger(__name__)

Runtime = Literal[
    "nodejs18.x",
    "nodejs20.x",
    "nodejs22.x",
    "python3.9",
    "python3.10",
    "python3.11",
    "python3.12",
]

DOMAIN_PATTERN = r"^(?=.{1,253}$)([a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)+[a-zA-Z]{2,63}$"


class ApplicationSection(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=50, pattern=r"^[a-zA-Z0-9_-]+$")
    type: Literal["frontend", "backend", "fullstack"]
    version: str = Field(default="1.0.0", pattern=r"^\d+\.\d+\.\d+$")


class AWSSection(BaseModel):
    model_config = ConfigDict(extra="forbid")

    region: str = Field(default=DEFAULT_REGION, pattern=r"^[a-z0-9-]+$")
    profile: Optional[str] = None


class FrontendSection(BaseModel):
    model_config = ConfigDict(extra="forbid", regex_engine="python-re")

    source_dir: str = Field(..., min_length=1)
    index_file: str = "index.html"
    custom_domain: Optional[str] = Field(default=None, pattern=DOMAIN_PATTERN)
    build_command: Optional[str] = None


class BackendSection(BaseModel):
    model_config = ConfigDict(extra="forbid")

    source_dir: str = Field(..., min_length=1)
    handler: str = Field(..., pattern=r"^[a-zA-Z0-9_.-]+\.[a-zA-Z0-9_]+$")
    runtime: Runtime = "nodejs22.x"
    timeout: int = Field(default=60, ge=1, le=900, description="Seconds")
    memory: int = Field(default=512, ge=128, le=10240, description="MB")
    environment_variables: Dict[str, str] = Field(default_factory=dict)


class DeploymentSection(BaseModel):
    model_config = ConfigDict(extra="forbid")

    stack_name: Optional[str] = Field(default=None, max_length=128, pattern=r"^[a-zA-Z][a-zA-Z0-9-]*$")
    tags: Dict[str, str] = Field(default_factory=dict)
    enable_monitoring: bool = True
    idempotency_key: Optional[str] = None


class DeploymentConfigModel(BaseModel):
    """Schema of a deployment configuration file."""

    model_config = ConfigDict(extra="forbid")

    application: ApplicationSection
    aws: AWSSection = Field(default_factory=AWSSection)
    frontend: Optional[FrontendSection] = None
    backend: Optional[BackendSection] = None
    deployment: DeploymentSection = Field(default_factory=DeploymentSection)

    @model_validator(mode="after")
    def check_sections_match_type(self):
        """Require the frontend and backend sections exactly when the application type needs them."""
        app_type = self.application.type
        problems = []

        if app_type in ApplicationType.WITH_FRONTEND:
            if self.frontend is None:
                problems.append("Frontend configuration is required for frontend/fullstack applications")
        elif self.frontend is not None:
            problems.append("frontend is not allowed for backend applications")

        if app_type in ApplicationType.WITH_BACKEND:
            if self.backend is None:
                problems.append("Backend configuration is required for backend/fullstack applications")
        elif self.backend is not None:
            problems.append("backend is not allowed for frontend applications")

        if problems:
            raise ValueError("\n".join(problems))
        return self


@dataclass
class ConfigValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)


def format_validation_errors(error: ValidationError) -> List[str]:
    """
    Turn pydantic validation errors into one readable message per problem.

    Unknown keys read ``"<path> is not allowed"`` and missing keys
    ``"<path> is required"``; other errors are prefixed with their dotted path.
    """
    messages = []
    for details in error.errors():
        location = ".".join(str(part) for part in details["loc"])

        if details["type"] == "extra_forbidden":
            messages.append(f"{location} is not allowed")
        elif details["type"] == "missing":
            messages.append(f"{location} is required")
        elif details["type"] == "value_error":
            # Raised by our own validators; may hold several problems
            messages.extend(str(details["ctx"]["error"]).splitlines())
        elif location:
            messages.append(f"{location}: {details['msg']}")
        else:
            messages.append(details["msg"])

    return messages


def _validate(config: Any) -> DeploymentConfigModel:
    return DeploymentConfigModel.model_validate(config)


def validate_config(config: Dict[str, Any]) -> ConfigValidationResult:
    """
    Validate a raw deployment configuration.

    All problems are collected instead of stopping at the first one. Values are
    validated in lax mode, so ``"1024"`` is accepted for a number and ``"false"``
    for a boolean, as produced by environment variable substitution.

    Args:
        config: Raw configuration dictionary

    Returns:
        ConfigValidationResult with validation status and any errors
    """
    try:
        _validate(config)
    except ValidationError as e:
        return ConfigValidationResult(valid=False, errors=format_validation_errors(e))
    return ConfigValidationResult(valid=True)


def validate_and_normalize_config(config: Dict[str, Any]) -> DeploymentConfig:
    """
    Validate a raw configuration and normalize it into a DeploymentConfig.

    Args:
        config: Raw configuration dictionary

    Returns:
        Validated configuration with defaults applied and values coerced

    Raises:
        ConfigurationError: If validation fails
    """
    try:
        model = _validate(config)
    except ValidationError as e:
        errors = format_validation_errors(e)
        logger.error(f"Configuration validation failed with {len(errors)} error(s)")
        raise ConfigurationError("Configuration validation failed:\n" + "\n".join(errors)) from e

    return DeploymentConfig.from_dict(model.model_dump(exclude_none=True))
