"""
Slack tools: Block Kit message builders and a chat.postMessage client.

Tools:
- build_triggered_blocks / build_resolved_blocks: Alarm notification blocks
- SlackClient.send_blocks: Post blocks to a channel, returning (channel_id, ts)
"""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

from alert_router.errors import ChatSendError, ConfigurationError
from alert_router.graph import format_timestamp
from alert_router.models import (
    METRIC_DIMENSIONS_KEY,
    METRIC_NAMES_KEY,
    METRIC_NAMESPACES_KEY,
    AlarmTransitionEvent,
    MetricSamples,
)

logger = logging.getLogger(__name__)

TRIGGERED_PREFIX = ':red_circle: (triggered)'
RESOLVED_PREFIX = ':white_check_mark: (resolved)'


def _mrkdwn_section(text: str) -> Dict[str, Any]:
    return {
        'type': 'section',
        'text': {
            'type': 'mrkdwn',
            'text': text
        }
    }


def header_block(event: AlarmTransitionEvent, prefix: str) -> Dict[str, Any]:
    return _mrkdwn_section(f'*{prefix} Cloudwatch Alarm: {event.alarm_name}*')


def summary_block(
    event: AlarmTransitionEvent,
    samples: Optional[MetricSamples],
    sample_error: str = '',
) -> Dict[str, Any]:
    """Metrics used by the alarm plus the most recent datapoint (or why it is missing)."""
    summary = event.metric_summary()
    parts = []
    if summary[METRIC_NAMES_KEY]:
        parts.append(f'Names: {",".join(summary[METRIC_NAMES_KEY])}')
    if summary[METRIC_NAMESPACES_KEY]:
        parts.append(f'Namespaces: {",".join(summary[METRIC_NAMESPACES_KEY])}')
    if summary[METRIC_DIMENSIONS_KEY]:
        parts.append(f'Dimensions: {",".join(summary[METRIC_DIMENSIONS_KEY])}')

    if not parts:
        return _mrkdwn_section('*Metrics*\n`None found`')

    latest = samples.latest() if samples else None
    if sample_error:
        recent = f'error fetching metrics: {sample_error}'.replace('`', "'")
    elif latest is None:
        recent = 'no recent data'
    else:
        value, ts = latest
        recent = f'{value:.2f} @ {format_timestamp(ts)} UTC'

    return _mrkdwn_section(f'*Metrics*: `{" - ".join(parts)}`\nRecent data: `{recent}`')


def reason_block(event: AlarmTransitionEvent) -> Optional[Dict[str, Any]]:
    if not event.reason:
        return None
    return _mrkdwn_section(f'*Reason*: {event.reason[:2500]}')  # Slack limit


def image_block(image_link: str) -> Dict[str, Any]:
    return {
        'type': 'image',
        'image_url': image_link,
        'alt_text': 'metricdata',
        'title': {
            'type': 'plain_text',
            'text': 'MetricData'
        }
    }


def console_link_block(event: AlarmTransitionEvent) -> Dict[str, Any]:
    return _mrkdwn_section(f'Link: <{event.console_link()}|AWS Console>')


def build_alarm_blocks(
    event: AlarmTransitionEvent,
    prefix: str,
    samples: Optional[MetricSamples] = None,
    image_link: Optional[str] = None,
    sample_error: str = '',
) -> List[Dict[str, Any]]:
    """
    Build the Block Kit blocks for an alarm notification.

    Layout: header, metrics summary, reason (if any), chart image (if any),
    console link.
    """
    blocks = [header_block(event, prefix), summary_block(event, samples, sample_error)]

    reason = reason_block(event)
    if reason is not None:
        blocks.append(reason)

    if image_link:
        blocks.append(image_block(image_link))

    blocks.append(console_link_block(event))
    return blocks


def build_triggered_blocks(event, samples=None, image_link=None, sample_error=''):
    return build_alarm_blocks(event, TRIGGERED_PREFIX, samples, image_link, sample_error)


def build_resolved_blocks(event, samples=None, image_link=None, sample_error=''):
    return build_alarm_blocks(event, RESOLVED_PREFIX, samples, image_link, sample_error)


class SlackClient:
    """Posts messages with the Slack Web API."""

    def __init__(self, token: str, api_url: str = 'https://slack.com/api/', timeout: int = 10):
        if not token:
            raise ConfigurationError('empty slack token provided')
        if api_url != 'https://slack.com/api/':
            logger.info(f'Initializing slack with alternate URL: {api_url}')
        self._token = token
        self._api_url = api_url if api_url.endswith('/') else f'{api_url}/'
        self._timeout = timeout

    def send_blocks(self, channel: str, blocks: List[Dict[str, Any]], text: str = '') -> Tuple[str, str]:
        """
        Post a message to a channel.

        Args:
            channel: Channel name or id
            blocks: Block Kit blocks
            text: Fallback text for notifications

        Returns:
            tuple: (channel_id, message_ts)

        Raises:
            ChatSendError: transport failure, HTTP error, or ok=false from Slack
        """
        logger.info(f'Sending message to slack channel {channel}')
        logger.debug(f'blocks json: {json.dumps(blocks)}')

        try:
            response = requests.post(
                f'{self._api_url}chat.postMessage',
                json={
                    'channel': channel,
                    'blocks': blocks,
                    'text': text,
                },
                headers={
                    'Authorization': f'Bearer {self._token}',
                    'Content-Type': 'application/json; charset=utf-8'
                },
                timeout=self._timeout
            )
        except requests.RequestException as e:
            raise ChatSendError(f'Error posting to slack: {e}') from e

        if response.status_code != 200:
            raise ChatSendError(
                f'Slack API error: {response.status_code} - {response.text}',
                code=str(response.status_code)
            )

        try:
            result = response.json()
        except ValueError as e:
            raise ChatSendError(f'Slack returned a non-JSON response: {response.text[:200]}') from e

        if not result.get('ok'):
            error = result.get('error', 'unknown_error')
            raise ChatSendError(f'Slack API error posting to {channel}: {error}', code=error)

        channel_id = result.get('channel', '')
        ts = result.get('ts', '')
        logger.info(f'Slack message posted: channel_id={channel_id}, ts={ts}')
        return channel_id, ts
