"""
Pytest configuration file for App Deployer tests.
"""
import pytest
from unittest.mock import patch

import boto3
import moto

from app_deployer.types import DeploymentConfig


@pytest.fixture
def aws_credentials():
    """Mocked AWS Credentials for moto."""
    with patch.dict('os.environ', {
        'AWS_ACCESS_KEY_ID': 'testing',
        'AWS_SECRET_ACCESS_KEY': 'testing',
        'AWS_SECURITY_TOKEN': 'testing',
        'AWS_SESSION_TOKEN': 'testing',
        'AWS_DEFAULT_REGION': 'us-east-1',
    }):
        yield


@pytest.fixture
def s3_client(aws_credentials):
    """S3 client fixture."""
    with moto.mock_aws():
        yield boto3.client('s3')


@pytest.fixture
def cloudformation_client(aws_credentials):
    """CloudFormation client fixture."""
    with moto.mock_aws():
        yield boto3.client('cloudformation')


@pytest.fixture
def backend_config_dict():
    """Raw configuration for a backend application."""
    return {
        'application': {'name': 'my-app', 'type': 'backend'},
        'backend': {'source_dir': './src', 'handler': 'index.handler'},
    }


@pytest.fixture
def frontend_config_dict():
    """Raw configuration for a frontend application."""
    return {
        'application': {'name': 'my-app', 'type': 'frontend'},
        'frontend': {'source_dir': './dist'},
    }


@pytest.fixture
def fullstack_config_dict():
    """Raw configuration for a fullstack application."""
    return {
        'application': {'name': 'my-app', 'type': 'fullstack', 'version': '2.1.0'},
        'aws': {'region': 'eu-west-1'},
        'frontend': {'source_dir': './dist', 'index_file': 'main.html'},
        'backend': {
            'source_dir': './api',
            'handler': 'app.handler',
            'runtime': 'python3.12',
            'environment_variables': {'LOG_LEVEL': 'debug'},
        },
        'deployment': {'tags': {'Team': 'web'}},
    }


@pytest.fixture
def backend_config(backend_config_dict):
    return DeploymentConfig.from_dict(backend_config_dict)


@pytest.fixture
def frontend_config(frontend_config_dict):
    return DeploymentConfig.from_dict(frontend_config_dict)


@pytest.fixture
def fullstack_config(fullstack_config_dict):
    return DeploymentConfig.from_dict(fullstack_config_dict)
