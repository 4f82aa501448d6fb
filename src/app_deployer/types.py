"""
Core data types for the App Deployer system.

Configuration types mirror the sections of a deployment configuration file
(application, aws, frontend, backend, deployment). Result types describe the
outcome of a single deployment attempt.
"""
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


class ApplicationType:
    """Supported application types."""

    FRONTEND = "frontend"
    BACKEND = "backend"
    FULLSTACK = "fullstack"

    ALL = (FRONTEND, BACKEND, FULLSTACK)
    WITH_FRONTEND = (FRONTEND, FULLSTACK)
    WITH_BACKEND = (BACKEND, FULLSTACK)


DEFAULT_REGION = "us-east-1"


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


@dataclass(frozen=True)
class ApplicationConfig:
    name: str
    type: str
    version: str = "1.0.0"

    def needs_frontend(self) -> bool:
        """Return True if the application type includes a static frontend."""
        return self.type in ApplicationType.WITH_FRONTEND

    def needs_backend(self) -> bool:
        """Return True if the application type includes a Lambda backend."""
        return self.type in ApplicationType.WITH_BACKEND


@dataclass(frozen=True)
class AWSConfig:
    region: str = DEFAULT_REGION
    profile: Optional[str] = None


@dataclass(frozen=True)
class FrontendConfig:
    source_dir: str
    index_file: str = "index.html"
    custom_domain: Optional[str] = None
    build_command: Optional[str] = None


@dataclass(frozen=True)
class BackendConfig:
    source_dir: str
    handler: str
    runtime: str = "nodejs22.x"
    timeout: int = 60
    memory: int = 512
    environment_variables: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class DeploymentSettings:
    stack_name: Optional[str] = None
    tags: Dict[str, str] = field(default_factory=dict)
    enable_monitoring: bool = True
    idempotency_key: Optional[str] = None


@dataclass(frozen=True)
class DeploymentConfig:
    """
    Complete deployment configuration for one application.

    Instances are treated as immutable; use ``from_dict``/``to_dict`` to derive
    modified copies.
    """

    application: ApplicationConfig
    aws: AWSConfig = field(default_factory=AWSConfig)
    frontend: Optional[FrontendConfig] = None
    backend: Optional[BackendConfig] = None
    deployment: DeploymentSettings = field(default_factory=DeploymentSettings)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeploymentConfig":
        """
        Build a configuration from a plain dictionary.

        No validation is performed here; see ``app_deployer.config.validator``.

        Args:
            data: Dictionary with ``application``, ``aws``, ``frontend``,
                ``backend`` and ``deployment`` sections

        Returns:
            DeploymentConfig instance
        """
        application = dict(data.get("application") or {})
        aws = data.get("aws") or {}
        frontend = data.get("frontend")
        backend = data.get("backend")
        deployment = dict(data.get("deployment") or {})

        if "tags" in deployment:
            deployment["tags"] = dict(deployment["tags"] or {})

        return cls(
            application=ApplicationConfig(
                name=application.get("name") or "",
                type=application.get("type") or "",
                version=application.get("version") or "1.0.0",
            ),
            aws=AWSConfig(**_drop_none(dict(aws))),
            frontend=FrontendConfig(**_drop_none(dict(frontend))) if frontend else None,
            backend=BackendConfig(**_drop_none(dict(backend))) if backend else None,
            deployment=DeploymentSettings(**_drop_none(deployment)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert the configuration to a plain dictionary, omitting unset values."""
        data = {
            "application": _drop_none(asdict(self.application)),
            "aws": _drop_none(asdict(self.aws)),
            "deployment": _drop_none(asdict(self.deployment)),
        }
        if self.frontend is not None:
            data["frontend"] = _drop_none(asdict(self.frontend))
        if self.backend is not None:
            data["backend"] = _drop_none(asdict(self.backend))
        return data


@dataclass(frozen=True)
class DeployedResource:
    type: str
    name: str
    arn: str
    status: str = "created"


@dataclass(frozen=True)
class Endpoint:
    type: str
    url: str
    description: str


@dataclass(frozen=True)
class DeploymentError:
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None
    remediation: Optional[str] = None


@dataclass
class DeploymentMetadata:
    deployment_id: str
    timestamp: datetime
    region: str
    stack_name: str
    duration: Optional[int] = None


@dataclass(frozen=True)
class DeploymentResult:
    """Outcome of a single deployment attempt."""

    success: bool
    metadata: DeploymentMetadata
    resources: List[DeployedResource] = field(default_factory=list)
    endpoints: List[Endpoint] = field(default_factory=list)
    errors: List[DeploymentError] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["metadata"]["timestamp"] = self.metadata.timestamp.isoformat()
        return data
