"""
Unit tests for the S3 asset manager.
"""
import pytest
from unittest.mock import patch, MagicMock

import moto
from botocore.exceptions import ClientError

from app_deployer.s3.asset_manager import S3AssetManager


@pytest.fixture
def s3_asset_manager(aws_credentials):
    """S3 asset manager fixture."""
    with moto.mock_aws():
        yield S3AssetManager()


@pytest.fixture
def build_dir(tmp_path):
    """A small frontend build output."""
    (tmp_path / 'index.html').write_text('<html></html>')
    (tmp_path / 'assets').mkdir()
    (tmp_path / 'assets' / 'app.js').write_text('console.log("hi")')
    (tmp_path / 'assets' / 'logo.bin').write_bytes(b'\x00\x01')
    return tmp_path


def test_bucket_exists(s3_asset_manager, s3_client):
    """Test checking if an S3 bucket exists."""
    bucket_name = "test-bucket"

    # Bucket should not exist initially
    assert not s3_asset_manager.bucket_exists(bucket_name)

    s3_client.create_bucket(Bucket=bucket_name)

    assert s3_asset_manager.bucket_exists(bucket_name)


@patch('boto3.client')
def test_bucket_exists_propagates_other_errors(mock_boto3_client, aws_credentials):
    """Test that unexpected head_bucket errors are raised."""
    mock_s3_client = MagicMock()
    mock_boto3_client.return_value = mock_s3_client
    mock_s3_client.head_bucket.side_effect = ClientError(
        {'Error': {'Code': 'InternalError', 'Message': 'boom'}},
        'HeadBucket'
    )

    with pytest.raises(ClientError):
        S3AssetManager().bucket_exists('test-bucket')


def test_upload_file_guesses_content_type(s3_asset_manager, s3_client, build_dir):
    """Test uploading a single file."""
    s3_client.create_bucket(Bucket='test-bucket')

    result = s3_asset_manager.upload_file('test-bucket', 'index.html', build_dir / 'index.html')

    obj = s3_client.get_object(Bucket='test-bucket', Key='index.html')
    assert obj['ContentType'] == 'text/html'
    assert obj['Body'].read() == b'<html></html>'
    assert result.key == 'index.html'
    assert result.url == 'https://test-bucket.s3.amazonaws.com/index.html'


def test_deploy_frontend_assets(s3_asset_manager, s3_client, build_dir):
    """Test that the whole build directory is uploaded with relative keys."""
    s3_client.create_bucket(Bucket='test-bucket')

    results = s3_asset_manager.deploy_frontend_assets('test-bucket', build_dir)

    assert [r.key for r in results] == ['assets/app.js', 'assets/logo.bin', 'index.html']
    keys = [obj['Key'] for obj in s3_client.list_objects_v2(Bucket='test-bucket')['Contents']]
    assert sorted(keys) == ['assets/app.js', 'assets/logo.bin', 'index.html']
    logo = s3_client.head_object(Bucket='test-bucket', Key='assets/logo.bin')
    assert logo['ContentType'] == 'application/octet-stream'


def test_upload_directory_with_prefix(s3_asset_manager, s3_client, build_dir):
    """Test that a key prefix is applied."""
    s3_client.create_bucket(Bucket='test-bucket')

    results = s3_asset_manager.upload_directory('test-bucket', build_dir, prefix='v2/')

    assert 'v2/index.html' in [r.key for r in results]


def test_deploy_frontend_assets_missing_bucket(s3_asset_manager, build_dir):
    """Test that deploying to a missing bucket fails."""
    with pytest.raises(ValueError, match='does not exist'):
        s3_asset_manager.deploy_frontend_assets('missing-bucket', build_dir)


def test_upload_directory_missing_source(s3_asset_manager, s3_client, tmp_path):
    """Test that a missing source directory fails."""
    s3_client.create_bucket(Bucket='test-bucket')

    with pytest.raises(ValueError, match='Source directory'):
        s3_asset_manager.upload_directory('test-bucket', tmp_path / 'dist')
