"""
PagerDuty Tools Tests
"""

import logging
from unittest.mock import MagicMock, patch

import pytest
import requests

from alert_router.errors import PagingSubmitError
from alert_router.tools.pagerduty_tools import PagerDutyClient, build_event_payload, mask_key

ALARM_ARN = "arn:aws:cloudwatch:us-east-1:123456789012:alarm:test-service-alarm-abcd"


def _response(status_code=202, text='{"status":"success"}'):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    return response


class TestEventPayload:
    """Test build_event_payload function"""

    def test_payload(self, triggered_event):
        event = triggered_event.with_tags({"owner": "test"})
        payload = build_event_payload(event)

        assert payload["summary"] == "test-service-alarm-abcd"
        assert payload["source"] == ALARM_ARN
        assert payload["severity"] == "critical"
        assert payload["timestamp"] == "2022-09-29T22:10:04.692+0000"
        assert payload["custom_details"]["tags"] == {"owner": "test"}
        assert payload["custom_details"]["detail"]["alarmName"] == "test-service-alarm-abcd"


class TestMaskKey:
    """Test mask_key function"""

    def test_mask(self):
        assert mask_key("abcdefgh1234") == "XXXXXXXX1234"

    def test_short_key(self):
        assert mask_key("abc") == "abc"


class TestPagerDutyClient:
    """Test PagerDutyClient.submit_event"""

    @patch("alert_router.tools.pagerduty_tools.requests.post")
    def test_submit(self, mock_post):
        mock_post.return_value = _response()
        payload = {"summary": "s", "source": ALARM_ARN, "severity": "critical"}

        PagerDutyClient().submit_event("routing-key-1234", "trigger", ALARM_ARN, payload)

        args, kwargs = mock_post.call_args
        assert args[0] == "https://events.pagerduty.com/v2/enqueue"
        assert kwargs["json"] == {
            "routing_key": "routing-key-1234",
            "event_action": "trigger",
            "dedup_key": ALARM_ARN,
            "client": "cw-alert-router",
            "payload": payload,
        }

    @patch("alert_router.tools.pagerduty_tools.requests.post")
    def test_routing_key_masked_in_logs(self, mock_post, caplog):
        mock_post.return_value = _response()
        with caplog.at_level(logging.INFO):
            PagerDutyClient().submit_event("secret-routing-key-1234", "resolve", ALARM_ARN, {})
        assert "secret-routing-key" not in caplog.text
        assert "1234" in caplog.text

    @patch("alert_router.tools.pagerduty_tools.requests.post")
    def test_rejected(self, mock_post):
        mock_post.return_value = _response(status_code=400, text='{"status":"invalid event"}')
        with pytest.raises(PagingSubmitError) as exc_info:
            PagerDutyClient().submit_event("k", "trigger", ALARM_ARN, {})
        assert exc_info.value.code == "400"

    @patch("alert_router.tools.pagerduty_tools.requests.post")
    def test_transport_error(self, mock_post):
        mock_post.side_effect = requests.Timeout("timed out")
        with pytest.raises(PagingSubmitError):
            PagerDutyClient().submit_event("k", "trigger", ALARM_ARN, {})
