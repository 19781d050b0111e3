"""
S3 tools for hosting rendered metric charts.

Tools:
- S3ImageStore.write_bytes: Write an object (private ACL)
"""

import logging
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from alert_router.errors import ImageUploadError

logger = logging.getLogger(__name__)

ROLE_SESSION_NAME = 'cw-alert-router'


def _assumed_role_session(role_arn: str, region: Optional[str]) -> boto3.session.Session:
    """Create a boto3 session using temporary credentials for role_arn."""
    sts = boto3.client('sts')
    credentials = sts.assume_role(RoleArn=role_arn, RoleSessionName=ROLE_SESSION_NAME)['Credentials']
    return boto3.session.Session(
        aws_access_key_id=credentials['AccessKeyId'],
        aws_secret_access_key=credentials['SecretAccessKey'],
        aws_session_token=credentials['SessionToken'],
        region_name=region,
    )


class S3ImageStore:
    """Object store backed by S3."""

    def __init__(self, client: Any = None, region: str = '', role_arn: str = ''):
        if client is None:
            region_name = region or None
            if region:
                logger.info(f's3: overriding default region to {region}')
            if role_arn:
                logger.info(f's3: using role arn: {role_arn}')
                client = _assumed_role_session(role_arn, region_name).client('s3')
            else:
                client = boto3.client('s3', region_name=region_name)
        self._client = client

    def write_bytes(self, bucket: str, key: str, data: bytes, content_type: str = 'image/png') -> None:
        """
        Write bytes to s3://bucket/key.

        Raises:
            ImageUploadError: the bucket is not configured or the write failed
        """
        if not bucket:
            raise ImageUploadError('image bucket is not configured')

        try:
            self._client.put_object(
                Bucket=bucket,
                Key=key,
                Body=data,
                ACL='private',
                ContentType=content_type,
            )
        except ClientError as e:
            code = e.response.get('Error', {}).get('Code', '')
            raise ImageUploadError(f'Error writing s3://{bucket}/{key}: {e}', code=code) from e
        except BotoCoreError as e:
            raise ImageUploadError(f'Error writing s3://{bucket}/{key}: {e}') from e
