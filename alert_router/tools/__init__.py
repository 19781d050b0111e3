"""
AWS and SaaS collaborators used by the alert router.

Tools are organized by service:
- cloudwatch_tools: Alarm tags, recent metric samples
- s3_tools: Chart image storage
- parameter_tools: SSM Parameter Store (routing keys, Slack token)
- slack_tools: Slack message blocks and chat.postMessage
- pagerduty_tools: PagerDuty Events API v2
"""

from alert_router.tools.cloudwatch_tools import CloudWatchClient
from alert_router.tools.pagerduty_tools import PagerDutyClient, build_event_payload
from alert_router.tools.parameter_tools import ParameterStoreClient
from alert_router.tools.s3_tools import S3ImageStore
from alert_router.tools.slack_tools import (
    SlackClient,
    build_resolved_blocks,
    build_triggered_blocks,
)

__all__ = [
    'CloudWatchClient',
    'PagerDutyClient',
    'ParameterStoreClient',
    'S3ImageStore',
    'SlackClient',
    'build_event_payload',
    'build_resolved_blocks',
    'build_triggered_blocks',
]
