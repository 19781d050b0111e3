"""
PagerDuty tools: Events API v2 client.

Tools:
- build_event_payload: PagerDuty payload for an alarm event
- PagerDutyClient.submit_event: Send a trigger/resolve event with a dedup key
"""

import logging
from typing import Any, Dict

import requests

from alert_router.errors import PagingSubmitError
from alert_router.models import AlarmTransitionEvent

logger = logging.getLogger(__name__)

DEFAULT_EVENT_SEVERITY = 'critical'
CLIENT_NAME = 'cw-alert-router'
EVENTS_URL = 'https://events.pagerduty.com/v2/enqueue'


def mask_key(key: str) -> str:
    """Replace all but the last four characters with 'X'."""
    if len(key) <= 4:
        return key
    return 'X' * (len(key) - 4) + key[-4:]


def build_event_payload(event: AlarmTransitionEvent) -> Dict[str, Any]:
    """
    Build the ``payload`` section of a PagerDuty event.

    Example:
        >>> build_event_payload(event)['summary']
        'test-service-alarm-abcd'
    """
    details = event.to_dict()
    details['tags'] = dict(event.tags)
    payload = {
        'summary': event.alarm_name or event.alarm_arn,
        'source': event.alarm_arn,
        'severity': DEFAULT_EVENT_SEVERITY,
        'custom_details': details,
    }
    if event.timestamp:
        payload['timestamp'] = event.timestamp
    return payload


class PagerDutyClient:
    """Submits events to the PagerDuty Events API v2."""

    def __init__(self, events_url: str = EVENTS_URL, timeout: int = 10):
        self._events_url = events_url
        self._timeout = timeout

    def submit_event(self, routing_key: str, action: str, dedup_key: str, payload: Dict[str, Any]) -> None:
        """
        Send an event to PagerDuty.

        Args:
            routing_key: Integration routing key of the target service
            action: 'trigger' or 'resolve'
            dedup_key: Correlates trigger/resolve pairs (the alarm ARN)
            payload: Event payload (see build_event_payload)

        Raises:
            PagingSubmitError: transport failure or non-2xx response
        """
        logger.info(f'Submitting pagerduty event: routing_key={mask_key(routing_key)}, action={action}, dedup_key={dedup_key}')

        body = {
            'routing_key': routing_key,
            'event_action': action,
            'dedup_key': dedup_key,
            'client': CLIENT_NAME,
            'payload': payload,
        }

        try:
            response = requests.post(
                self._events_url,
                json=body,
                headers={'Content-Type': 'application/json'},
                timeout=self._timeout
            )
        except requests.RequestException as e:
            raise PagingSubmitError(f'Error submitting pagerduty event: {e}') from e

        if not 200 <= response.status_code < 300:
            raise PagingSubmitError(
                f'PagerDuty API error: {response.status_code} - {response.text}',
                code=str(response.status_code)
            )

        logger.info(f'pagerduty response: {response.status_code} - {response.text}')
