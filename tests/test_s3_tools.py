"""
S3 Image Store Tests
"""

from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from alert_router.errors import ImageUploadError
from alert_router.tools.s3_tools import S3ImageStore

KEY = "graphs/2020/10/5/abc.png"


class TestWriteBytes:
    """Test S3ImageStore.write_bytes"""

    def test_private_png(self):
        client = MagicMock()
        S3ImageStore(client=client).write_bytes("test-images", KEY, b"\x89PNG")
        client.put_object.assert_called_once_with(
            Bucket="test-images",
            Key=KEY,
            Body=b"\x89PNG",
            ACL="private",
            ContentType="image/png",
        )

    def test_unconfigured_bucket(self):
        client = MagicMock()
        with pytest.raises(ImageUploadError):
            S3ImageStore(client=client).write_bytes("", KEY, b"\x89PNG")
        client.put_object.assert_not_called()

    def test_write_failure(self):
        client = MagicMock()
        client.put_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "Access Denied"}}, "PutObject"
        )
        with pytest.raises(ImageUploadError) as exc_info:
            S3ImageStore(client=client).write_bytes("test-images", KEY, b"\x89PNG")
        assert exc_info.value.code == "AccessDenied"


class TestClientConstruction:
    """Test region and role handling"""

    @patch("alert_router.tools.s3_tools.boto3")
    def test_region_override(self, mock_boto3):
        S3ImageStore(region="eu-west-1")
        mock_boto3.client.assert_called_once_with("s3", region_name="eu-west-1")

    @patch("alert_router.tools.s3_tools.boto3")
    def test_assumed_role(self, mock_boto3):
        mock_boto3.client.return_value.assume_role.return_value = {
            "Credentials": {
                "AccessKeyId": "AKID",
                "SecretAccessKey": "SECRET",
                "SessionToken": "TOKEN",
            }
        }
        S3ImageStore(region="eu-west-1", role_arn="arn:aws:iam::123456789012:role/images")

        mock_boto3.client.assert_called_once_with("sts")
        mock_boto3.client.return_value.assume_role.assert_called_once_with(
            RoleArn="arn:aws:iam::123456789012:role/images", RoleSessionName="cw-alert-router"
        )
        mock_boto3.session.Session.assert_called_once_with(
            aws_access_key_id="AKID",
            aws_secret_access_key="SECRET",
            aws_session_token="TOKEN",
            region_name="eu-west-1",
        )
        mock_boto3.session.Session.return_value.client.assert_called_once_with("s3")
