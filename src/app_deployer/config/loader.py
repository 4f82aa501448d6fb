"""
Deployment configuration loader.
Reads YAML or JSON configuration files with environment variable substitution.
"""
import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from app_deployer.config.validator import validate_and_normalize_config
from app_deployer.exceptions import ConfigurationError
from app_deployer.types import DeploymentConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATHS = (
    "./deploy.yml",
    "./deploy.yaml",
    "./deploy.json",
    "./deployment.yml",
    "./deployment.yaml",
    "./deployment.json",
)

_ENV_REFERENCE = re.compile(r"\$\{([^}]+)\}")


class DeploymentConfigLoader:
    """
    Loads deployment configuration files.

    This class handles:
    - Parsing YAML (.yml, .yaml) and JSON (.json) files
    - Substituting ${VAR} and ${VAR:-default} references from the environment
    - Applying defaults and validating the result
    """

    def __init__(self, environ: Optional[Dict[str, str]] = None):
        """
        Initialize the configuration loader.

        Args:
            environ: Environment used for variable substitution. Defaults to os.environ.
        """
        self.environ = os.environ if environ is None else environ

    def load(self, path: Union[str, Path]) -> DeploymentConfig:
        """
        Load, validate and normalize a configuration file.

        Args:
            path: Path to a YAML or JSON configuration file

        Returns:
            Validated DeploymentConfig

        Raises:
            ConfigurationError: If the file is missing, unparseable or invalid
        """
        try:
            raw_config = self.read(path)
            return validate_and_normalize_config(raw_config)
        except ConfigurationError as e:
            raise ConfigurationError(f"Failed to load configuration from {path}: {e}") from e

    def read(self, path: Union[str, Path]) -> Dict[str, Any]:
        """
        Read and parse a configuration file without validating it.

        Args:
            path: Path to a YAML or JSON configuration file

        Returns:
            Raw configuration with environment variables substituted
        """
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        content = config_path.read_text(encoding="utf-8")
        suffix = config_path.suffix.lower()

        try:
            if suffix == ".json":
                raw_config = json.loads(content)
            elif suffix in (".yml", ".yaml"):
                raw_config = yaml.safe_load(content)
            else:
                raise ConfigurationError(
                    "Unsupported file format. Only .json, .yml, and .yaml files are supported."
                )
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Invalid configuration syntax in {config_path}: {e}") from e

        if not isinstance(raw_config, dict):
            raise ConfigurationError(f"Configuration in {config_path} must be a mapping")

        logger.debug(f"Read configuration from {config_path}")
        return self.resolve_environment_variables(raw_config)

    def load_from_paths(self, search_paths: List[Union[str, Path]]) -> DeploymentConfig:
        """
        Load the first configuration that loads successfully from a list of paths.

        Args:
            search_paths: Candidate configuration file paths, in priority order

        Returns:
            Validated DeploymentConfig

        Raises:
            ConfigurationError: If no path yields a valid configuration
        """
        errors = []
        for path in search_paths:
            try:
                config = self.load(path)
                logger.info(f"Loaded configuration from {path}")
                return config
            except ConfigurationError as e:
                errors.append(f"{path}: {e}")

        raise ConfigurationError(
            "Could not load configuration from any of the specified paths:\n" + "\n".join(errors)
        )

    def resolve_environment_variables(self, value: Any) -> Any:
        """Recursively substitute environment variable references in strings."""
        if isinstance(value, str):
            return _ENV_REFERENCE.sub(self._substitute, value)
        if isinstance(value, list):
            return [self.resolve_environment_variables(item) for item in value]
        if isinstance(value, dict):
            return {key: self.resolve_environment_variables(item) for key, item in value.items()}
        return value

    def _substitute(self, match: "re.Match") -> str:
        var_name, separator, default = match.group(1).partition(":-")
        env_value = self.environ.get(var_name)
        if env_value is not None:
            return env_value
        if separator:
            return default
        # Unresolved references are left in place
        return match.group(0)


def create_config_loader() -> DeploymentConfigLoader:
    """Create a new configuration loader."""
    return DeploymentConfigLoader()


def load_default_config() -> DeploymentConfig:
    """Load configuration from the standard file locations in the current directory."""
    return create_config_loader().load_from_paths(list(DEFAULT_CONFIG_PATHS))
