"""
S3 asset manager for static frontends.
Handles uploading frontend build output to the website bucket.
"""
import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = 'application/octet-stream'


@dataclass(frozen=True)
class UploadResult:
    key: str
    etag: str
    url: str


class S3AssetManager:
    """
    Manages frontend assets in S3.

    This class handles:
    - Verifying S3 bucket existence
    - Uploading single files with a content type guessed from the extension
    - Uploading a whole build directory to a bucket
    """

    def __init__(self, region_name: Optional[str] = None):
        """
        Initialize the S3 asset manager.

        Args:
            region_name: AWS region name. If not provided, uses the default region.
        """
        self.s3_client = boto3.client('s3', region_name=region_name)

    def bucket_exists(self, bucket_name: str) -> bool:
        """
        Check if an S3 bucket exists and is accessible.

        Args:
            bucket_name: Name of the S3 bucket to check

        Returns:
            True if the bucket exists and is accessible, False otherwise
        """
        try:
            self.s3_client.head_bucket(Bucket=bucket_name)
            return True
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code')
            if error_code in ('404', 'NoSuchBucket'):
                logger.warning(f"S3 bucket {bucket_name} does not exist")
                return False
            elif error_code == '403':
                logger.warning(f"Access to S3 bucket {bucket_name} is forbidden")
                return False
            else:
                logger.error(f"Error checking S3 bucket {bucket_name}: {e}")
                raise

    def upload_file(
        self,
        bucket_name: str,
        key: str,
        file_path: Union[str, Path],
        content_type: Optional[str] = None
    ) -> UploadResult:
        """
        Upload a single file.

        Args:
            bucket_name: Name of the target bucket
            key: Object key
            file_path: Local file to upload
            content_type: Content type. Guessed from the file name if not provided.

        Returns:
            UploadResult for the uploaded object
        """
        content_type = content_type or mimetypes.guess_type(str(file_path))[0] or DEFAULT_CONTENT_TYPE

        try:
            response = self.s3_client.put_object(
                Bucket=bucket_name,
                Key=key,
                Body=Path(file_path).read_bytes(),
                ContentType=content_type
            )
        except ClientError as e:
            logger.error(f"Error uploading {file_path} to s3://{bucket_name}/{key}: {e}")
            raise

        return UploadResult(
            key=key,
            etag=response.get('ETag', ''),
            url=f"https://{bucket_name}.s3.amazonaws.com/{key}"
        )

    def upload_directory(self, bucket_name: str, source_dir: Union[str, Path], prefix: str = '') -> List[UploadResult]:
        """
        Upload every file under a directory, keeping relative paths as keys.

        Args:
            bucket_name: Name of the target bucket
            source_dir: Local directory to upload
            prefix: Optional key prefix

        Returns:
            List of UploadResult, one per file
        """
        root = Path(source_dir)
        if not root.is_dir():
            raise ValueError(f"Source directory {source_dir} does not exist")

        results = []
        for file_path in sorted(p for p in root.rglob('*') if p.is_file()):
            relative_key = file_path.relative_to(root).as_posix()
            key = f"{prefix.rstrip('/')}/{relative_key}" if prefix else relative_key
            results.append(self.upload_file(bucket_name, key, file_path))

        return results

    def deploy_frontend_assets(self, bucket_name: str, source_dir: Union[str, Path]) -> List[UploadResult]:
        """
        Deploy frontend build output to a website bucket.

        Args:
            bucket_name: Name of the website bucket
            source_dir: Directory containing the built frontend

        Returns:
            List of UploadResult, one per file
        """
        if not self.bucket_exists(bucket_name):
            raise ValueError(f"S3 bucket {bucket_name} does not exist or is not accessible")

        results = self.upload_directory(bucket_name, source_dir)
        logger.info(f"Deployed {len(results)} files to S3 bucket {bucket_name}")
        return results
