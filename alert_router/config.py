"""
Configuration for the alert router.

Configuration is read once per process and then treated as immutable. It is
layered from (lowest to highest precedence):

1. Model defaults
2. A YAML file named by CONFIG_PATH
3. A JSON object in CONFIG_JSON (how the deployment passes structured config)
4. Individual environment variables (DEFAULT_SLACK_CHANNEL, IMAGE_BUCKET, ...)

A .env file in the working directory is loaded first for local runs; it never
overrides variables that are already set.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from alert_router.errors import ConfigurationError

DEFAULT_OWNER_TAG_KEY = 'owner'
DEFAULT_SERVICE_NAME_TAG_KEY = 'service'
SLACK_CHANNEL_OVERRIDE_TAG_KEY = 'alerts:slack_channel'
# Must contain "true" to suppress; any other value (or absence) means page
PAGERDUTY_SUPPRESS_TAG_KEY = 'alerts:suppress_pagerduty'
DEFAULT_ROUTING_KEY_PARAMETER_PATTERN = '/service/cw_alert_router/pagerduty/routing_keys/{service}'

# Environment variable -> RouterConfig field
ENV_FIELDS = {
    'DEFAULT_SLACK_CHANNEL': 'default_slack_channel',
    'PAGERDUTY_DEFAULT_ROUTING_KEY': 'default_routing_key',
    'OWNER_TAG_KEY': 'owner_tag_key',
    'SERVICE_NAME_TAG_KEY': 'service_name_tag_key',
    'ROUTING_KEY_PARAMETER_PATTERN': 'routing_key_parameter_pattern',
    'IMAGE_BUCKET': 'image_bucket',
    'IMAGE_BUCKET_REGION': 'image_bucket_region',
    'IMAGE_BUCKET_ROLE_ARN': 'image_bucket_role_arn',
    'IMAGE_BUCKET_PREFIX': 'image_bucket_prefix',
    'IMAGE_HOST': 'image_host',
    'SLACK_TOKEN': 'slack_token',
    'SLACK_TOKEN_SSM_KEY': 'slack_token_ssm_key',
    'SLACK_API_URL': 'slack_api_url',
    'PAGERDUTY_EVENTS_URL': 'pagerduty_events_url',
    'SAMPLE_WINDOW_HOURS': 'sample_window_hours',
    'LOG_LEVEL': 'log_level',
}


class RouterConfig(BaseModel):
    """Process-wide, read-only router settings."""

    model_config = ConfigDict(frozen=True, extra='ignore')

    # Used when an alarm has neither a channel override nor an owner tag
    default_slack_channel: str = ''
    # Used when no per-service routing key is found in parameter store
    default_routing_key: str = Field(default='', repr=False)

    owner_tag_key: str = DEFAULT_OWNER_TAG_KEY
    service_name_tag_key: str = DEFAULT_SERVICE_NAME_TAG_KEY
    routing_key_parameter_pattern: str = DEFAULT_ROUTING_KEY_PARAMETER_PATTERN

    # Chart images: written to image_bucket, served from image_host
    image_bucket: str = ''
    image_bucket_region: str = ''
    image_bucket_role_arn: str = ''
    image_bucket_prefix: str = ''
    image_host: str = ''

    slack_token: str = Field(default='', repr=False)
    slack_token_ssm_key: str = ''
    slack_api_url: str = 'https://slack.com/api/'
    pagerduty_events_url: str = 'https://events.pagerduty.com/v2/enqueue'

    sample_window_hours: int = Field(default=1, ge=1, le=24)
    log_level: str = 'INFO'

    def routing_key_parameter(self, normalized_service: str) -> str:
        """Parameter store path holding the routing key for a service."""
        return self.routing_key_parameter_pattern.format(service=normalized_service)


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigurationError(f'Config file not found: {path}')
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f'Could not parse {path}: {e}') from e
    if not isinstance(data, dict):
        raise ConfigurationError(f'{path} must contain a mapping')
    return data


def load_config(environ: Optional[Mapping[str, str]] = None, dotenv: bool = True) -> RouterConfig:
    """
    Load router configuration from files and environment variables.

    Args:
        environ: Environment mapping to read (default: os.environ)
        dotenv: Whether to load a .env file from the working directory first

    Returns:
        RouterConfig: the immutable configuration

    Raises:
        ConfigurationError: unreadable CONFIG_PATH / CONFIG_JSON or invalid values
    """
    if environ is None:
        if dotenv:
            load_dotenv(override=False)
        environ = os.environ

    values: Dict[str, Any] = {}

    config_path = environ.get('CONFIG_PATH', '')
    if config_path:
        values.update(_load_yaml(Path(config_path)))

    config_json = environ.get('CONFIG_JSON', '')
    if config_json:
        try:
            data = json.loads(config_json)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f'Could not parse CONFIG_JSON: {e}') from e
        if not isinstance(data, dict):
            raise ConfigurationError('CONFIG_JSON must be a JSON object')
        values.update(data)

    for env_var, field_name in ENV_FIELDS.items():
        value = environ.get(env_var, '')
        if value:
            values[field_name] = value

    try:
        return RouterConfig.model_validate(values)
    except ValidationError as e:
        raise ConfigurationError(f'Invalid configuration: {e}') from e
