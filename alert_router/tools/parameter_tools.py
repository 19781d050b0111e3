"""
SSM Parameter Store tools.

Tools:
- ParameterStoreClient.get_value: Read a (decrypted) parameter
- ParameterStoreClient.put_value: Write a SecureString parameter (operator scripts)
"""

import logging
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from alert_router.errors import ParameterLookupError, ParameterNotFoundError

logger = logging.getLogger(__name__)


class ParameterStoreClient:
    """Thin wrapper over SSM GetParameter / PutParameter."""

    def __init__(self, client: Any = None):
        self._client = client if client is not None else boto3.client('ssm')

    def get_value(self, key: str) -> str:
        """
        Get the value of a parameter, decrypting SecureStrings.

        Raises:
            ParameterNotFoundError: the parameter does not exist
            ParameterLookupError: any other failure
        """
        try:
            response = self._client.get_parameter(Name=key, WithDecryption=True)
        except ClientError as e:
            code = e.response.get('Error', {}).get('Code', '')
            if code == 'ParameterNotFound':
                raise ParameterNotFoundError(f'Parameter not found: {key}', code=code) from e
            raise ParameterLookupError(f'Error retrieving parameter {key}: {e}', code=code) from e
        except BotoCoreError as e:
            raise ParameterLookupError(f'Error retrieving parameter {key}: {e}') from e

        return response['Parameter'].get('Value', '')

    def put_value(self, key: str, value: str, description: str = '') -> int:
        """
        Create or overwrite a SecureString parameter.

        Returns:
            int: the new parameter version
        """
        put_args = {
            'Name': key,
            'Value': value,
            'Type': 'SecureString',
            'Overwrite': True,
        }
        if description:
            put_args['Description'] = description

        try:
            response = self._client.put_parameter(**put_args)
        except (ClientError, BotoCoreError) as e:
            raise ParameterLookupError(f'Error writing parameter {key}: {e}') from e

        logger.info(f'Wrote parameter {key} (version {response.get("Version")})')
        return response.get('Version', 0)
