"""
Unit tests for the configuration loader.
"""
import json

import pytest

from app_deployer.config.loader import DeploymentConfigLoader
from app_deployer.exceptions import ConfigurationError


YAML_CONFIG = """
application:
  name: ${APP_NAME}
  type: backend
aws:
  region: ${AWS_REGION:-eu-central-1}
backend:
  source_dir: ./src
  handler: index.handler
  environment_variables:
    API_KEY: ${API_KEY}
deployment:
  tags:
    Team: platform
"""


@pytest.fixture
def loader():
    """Configuration loader fixture with a fixed environment."""
    return DeploymentConfigLoader(environ={'APP_NAME': 'orders'})


def test_load_yaml_with_environment_substitution(loader, tmp_path):
    """Test loading YAML with set, defaulted and unresolved variables."""
    config_path = tmp_path / 'deploy.yml'
    config_path.write_text(YAML_CONFIG)

    config = loader.load(config_path)

    assert config.application.name == 'orders'
    assert config.aws.region == 'eu-central-1'
    assert config.backend.environment_variables == {'API_KEY': '${API_KEY}'}
    assert config.deployment.tags == {'Team': 'platform'}
    assert config.deployment.enable_monitoring is True


def test_load_json(loader, tmp_path, frontend_config_dict):
    """Test loading a JSON configuration."""
    config_path = tmp_path / 'deploy.json'
    config_path.write_text(json.dumps(frontend_config_dict))

    config = loader.load(config_path)

    assert config.application.type == 'frontend'
    assert config.frontend.index_file == 'index.html'


def test_load_missing_file(loader, tmp_path):
    """Test that a missing file raises a configuration error."""
    with pytest.raises(ConfigurationError, match='Configuration file not found'):
        loader.load(tmp_path / 'missing.yml')


def test_load_unsupported_extension(loader, tmp_path):
    """Test that only YAML and JSON files are accepted."""
    config_path = tmp_path / 'deploy.toml'
    config_path.write_text('name = "x"')

    with pytest.raises(ConfigurationError, match='Unsupported file format'):
        loader.load(config_path)


def test_load_invalid_yaml(loader, tmp_path):
    """Test that syntax errors are reported as configuration errors."""
    config_path = tmp_path / 'deploy.yaml'
    config_path.write_text('application: [unclosed')

    with pytest.raises(ConfigurationError, match='Invalid configuration syntax'):
        loader.load(config_path)


def test_load_invalid_config(loader, tmp_path):
    """Test that validation errors name the file."""
    config_path = tmp_path / 'deploy.json'
    config_path.write_text(json.dumps({'application': {'name': 'x', 'type': 'backend'}}))

    with pytest.raises(ConfigurationError) as exc_info:
        loader.load(config_path)

    assert str(config_path) in str(exc_info.value)
    assert 'Backend configuration is required' in str(exc_info.value)


def test_load_from_paths_uses_first_valid(loader, tmp_path, backend_config_dict):
    """Test that the first loadable path wins and failures are skipped."""
    valid_path = tmp_path / 'deployment.json'
    valid_path.write_text(json.dumps(backend_config_dict))

    config = loader.load_from_paths([tmp_path / 'deploy.yml', valid_path])

    assert config.application.name == 'my-app'


def test_load_from_paths_reports_all_failures(loader, tmp_path):
    """Test that every failed path is listed when nothing loads."""
    with pytest.raises(ConfigurationError) as exc_info:
        loader.load_from_paths([tmp_path / 'a.yml', tmp_path / 'b.json'])

    message = str(exc_info.value)
    assert 'Could not load configuration' in message
    assert 'a.yml' in message
    assert 'b.json' in message


def test_resolve_environment_variables_in_lists(loader):
    """Test substitution inside nested lists and dicts."""
    resolved = loader.resolve_environment_variables({'items': ['${APP_NAME}-1', {'x': '${MISSING:-d}'}], 'n': 3})

    assert resolved == {'items': ['orders-1', {'x': 'd'}], 'n': 3}


def test_load_substituted_number(tmp_path):
    """Test that a substituted memory size is converted to a number."""
    config_path = tmp_path / 'deploy.yml'
    config_path.write_text(
        "application:\n"
        "  name: my-app\n"
        "  type: backend\n"
        "backend:\n"
        "  source_dir: ./src\n"
        "  handler: index.handler\n"
        "  memory: ${TEST_MEMORY}\n"
        "  timeout: ${TEST_TIMEOUT:-120}\n"
    )

    config = DeploymentConfigLoader(environ={'TEST_MEMORY': '1024'}).load(config_path)

    assert config.backend.memory == 1024
    assert config.backend.timeout == 120


def test_load_substituted_boolean_default(tmp_path):
    """Test that a defaulted boolean reference is converted to a boolean."""
    config_path = tmp_path / 'deploy.yml'
    config_path.write_text(
        "application:\n"
        "  name: my-app\n"
        "  type: frontend\n"
        "frontend:\n"
        "  source_dir: ./dist\n"
        "deployment:\n"
        "  enable_monitoring: ${MONITORING:-false}\n"
    )

    config = DeploymentConfigLoader(environ={}).load(config_path)

    assert config.deployment.enable_monitoring is False


def test_load_substituted_number_out_of_range(tmp_path):
    """Test that a substituted value is still range checked."""
    config_path = tmp_path / 'deploy.yml'
    config_path.write_text(
        "application: {name: my-app, type: backend}\n"
        "backend: {source_dir: ./src, handler: index.handler, memory: '${TEST_MEMORY}'}\n"
    )

    with pytest.raises(ConfigurationError, match='backend.memory'):
        DeploymentConfigLoader(environ={'TEST_MEMORY': '64'}).load(config_path)
