"""
Unit tests for the configuration validator.
"""
import pytest

from app_deployer.config.validator import validate_and_normalize_config, validate_config
from app_deployer.exceptions import ConfigurationError


def test_valid_backend_config(backend_config_dict):
    """Test that a minimal backend configuration is valid."""
    result = validate_config(backend_config_dict)

    assert result.valid
    assert result.errors == []


def test_valid_fullstack_config(fullstack_config_dict):
    """Test that a complete fullstack configuration is valid."""
    assert validate_config(fullstack_config_dict).valid


def test_missing_application_name():
    """Test that the application name is required."""
    result = validate_config({
        'application': {'type': 'frontend'},
        'frontend': {'source_dir': './dist'},
    })

    assert not result.valid
    assert 'application.name is required' in result.errors


def test_missing_application_section():
    """Test that the application section is required."""
    assert 'application is required' in validate_config({}).errors


def test_invalid_application_type():
    """Test that unknown application types are rejected."""
    result = validate_config({'application': {'name': 'my-app', 'type': 'mobile'}})

    assert len(result.errors) == 1
    assert result.errors[0].startswith('application.type:')


def test_type_specific_sections_required():
    """Test that fullstack applications need both frontend and backend sections."""
    result = validate_config({'application': {'name': 'my-app', 'type': 'fullstack'}})

    assert result.errors == [
        'Frontend configuration is required for frontend/fullstack applications',
        'Backend configuration is required for backend/fullstack applications',
    ]


def test_type_specific_sections_forbidden(backend_config_dict):
    """Test that a backend application may not carry a frontend section."""
    backend_config_dict['frontend'] = {'source_dir': './dist'}

    result = validate_config(backend_config_dict)

    assert result.errors == ['frontend is not allowed for backend applications']


def test_errors_are_collected(backend_config_dict):
    """Test that every field problem is reported, not just the first."""
    backend_config_dict['application']['name'] = 'bad name!'
    backend_config_dict['backend'].update({'handler': 'nohandler', 'timeout': 0, 'memory': 99999})
    backend_config_dict['deployment'] = {'stack_name': '1-stack', 'enable_monitoring': 'maybe'}

    result = validate_config(backend_config_dict)

    assert sorted(error.split(':')[0] for error in result.errors) == [
        'application.name',
        'backend.handler',
        'backend.memory',
        'backend.timeout',
        'deployment.enable_monitoring',
        'deployment.stack_name',
    ]


def test_unknown_keys_rejected(backend_config_dict):
    """Test that unknown sections and fields are rejected."""
    backend_config_dict['extra'] = True
    backend_config_dict['aws'] = {'region': 'us-west-2', 'zone': 'a'}

    result = validate_config(backend_config_dict)

    assert 'extra is not allowed' in result.errors
    assert 'aws.zone is not allowed' in result.errors


def test_tags_must_be_strings(backend_config_dict):
    """Test that tag values must be strings."""
    backend_config_dict['deployment'] = {'tags': {'Cost': 10}}

    errors = validate_config(backend_config_dict).errors

    assert len(errors) == 1
    assert errors[0].startswith('deployment.tags.Cost:')


def test_unsupported_runtime(backend_config_dict):
    """Test that only supported Lambda runtimes are accepted."""
    backend_config_dict['backend']['runtime'] = 'java21'

    errors = validate_config(backend_config_dict).errors

    assert errors[0].startswith('backend.runtime:')


def test_normalize_applies_defaults(backend_config_dict):
    """Test that defaults are applied to a valid configuration."""
    config = validate_and_normalize_config(backend_config_dict)

    assert config.application.version == '1.0.0'
    assert config.aws.region == 'us-east-1'
    assert config.backend.runtime == 'nodejs22.x'
    assert config.backend.timeout == 60
    assert config.backend.memory == 512
    assert config.deployment.enable_monitoring is True
    assert config.deployment.tags == {}
    assert config.frontend is None


def test_normalize_coerces_substituted_strings(backend_config_dict):
    """Test that numbers and booleans written as strings are converted."""
    backend_config_dict['backend'].update({'memory': '1024', 'timeout': '30'})
    backend_config_dict['deployment'] = {'enable_monitoring': 'false'}

    config = validate_and_normalize_config(backend_config_dict)

    assert config.backend.memory == 1024
    assert config.backend.timeout == 30
    assert config.deployment.enable_monitoring is False


def test_normalize_raises_on_invalid_config():
    """Test that normalization fails with all validation errors."""
    with pytest.raises(ConfigurationError) as exc_info:
        validate_and_normalize_config({'application': {'name': '', 'type': 'backend'}})

    assert 'Configuration validation failed' in str(exc_info.value)
    assert 'application.name:' in str(exc_info.value)
    assert isinstance(exc_info.value, ValueError)
