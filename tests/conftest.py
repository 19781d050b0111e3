"""
Alert Router Test Configuration
Pytest fixtures and in-memory collaborators
"""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from alert_router.config import RouterConfig
from alert_router.errors import ParameterNotFoundError
from alert_router.models import MetricSamples, parse_event

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> dict:
    with open(FIXTURES_DIR / f"{name}.json", "r") as f:
        return json.load(f)


class FakeGateway:
    """In-memory MetadataGateway."""

    def __init__(self, tags=None, samples=None, tag_error=None, sample_error=None):
        self.tags = tags if tags is not None else {}
        self.samples = samples
        self.tag_error = tag_error
        self.sample_error = sample_error
        self.tag_calls = []
        self.sample_calls = []

    def get_tags(self, resource_arn):
        self.tag_calls.append(resource_arn)
        if self.tag_error:
            raise self.tag_error
        return dict(self.tags)

    def get_recent_samples(self, queries, hours=1):
        self.sample_calls.append((queries, hours))
        if self.sample_error:
            raise self.sample_error
        return self.samples


class FakeStore:
    """In-memory ObjectStore."""

    def __init__(self, error=None):
        self.error = error
        self.objects = {}

    def write_bytes(self, bucket, key, data):
        if self.error:
            raise self.error
        self.objects[(bucket, key)] = data


class FakeChat:
    """In-memory ChatService recording every message."""

    def __init__(self, error=None, channel_id="C0123456789", ts="1601880458.000100"):
        self.error = error
        self.channel_id = channel_id
        self.ts = ts
        self.messages = []

    def send_blocks(self, channel, blocks, text=""):
        self.messages.append({"channel": channel, "blocks": blocks, "text": text})
        if self.error:
            raise self.error
        return self.channel_id, self.ts


class FakePager:
    """In-memory PagingService recording every event."""

    def __init__(self, error=None):
        self.error = error
        self.events = []

    def submit_event(self, routing_key, action, dedup_key, payload):
        self.events.append({
            "routing_key": routing_key,
            "action": action,
            "dedup_key": dedup_key,
            "payload": payload,
        })
        if self.error:
            raise self.error


class FakeParameters:
    """In-memory ParameterStore; missing keys raise ParameterNotFoundError."""

    def __init__(self, values=None, error=None):
        self.values = values or {}
        self.error = error
        self.calls = []

    def get_value(self, key):
        self.calls.append(key)
        if self.error:
            raise self.error
        if key not in self.values:
            raise ParameterNotFoundError(f"Parameter not found: {key}", code="ParameterNotFound")
        return self.values[key]


@pytest.fixture
def config():
    """Router configuration used across tests"""
    return RouterConfig(
        default_slack_channel="default-alarms",
        default_routing_key="default-routing-key",
        image_bucket="test-images",
        image_bucket_prefix="graphs",
        image_host="https://images.example.com/",
    )


@pytest.fixture
def resolved_event():
    return parse_event(load_fixture("alarm_resolved"))


@pytest.fixture
def triggered_event():
    return parse_event(load_fixture("alarm_triggered"))


@pytest.fixture
def insufficient_to_ok_event():
    return parse_event(load_fixture("alarm_insufficient_to_ok"))


@pytest.fixture
def samples():
    """Six five-minute datapoints"""
    start = datetime(2020, 10, 5, 6, 15, tzinfo=timezone.utc)
    timestamps = [start + timedelta(minutes=5 * i) for i in range(6)]
    return MetricSamples(timestamps=timestamps, values=[10.0, 10.25, 12.5, 30.0, 10.0, 10.0])


@pytest.fixture
def gateway(samples):
    return FakeGateway(tags={"owner": "test", "service": "test-service"}, samples=samples)


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def chat():
    return FakeChat()


@pytest.fixture
def pager():
    return FakePager()


@pytest.fixture
def parameters():
    return FakeParameters({
        "/service/cw_alert_router/pagerduty/routing_keys/test_service": "pagerduty-key-1",
    })
