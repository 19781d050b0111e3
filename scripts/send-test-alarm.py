#!/usr/bin/env python3
"""
Send a test alarm event to the alert router's SQS queue.

Usage:
    python scripts/send-test-alarm.py <queue-url> alarm_triggered
    python scripts/send-test-alarm.py <queue-url> alarm_resolved
    python scripts/send-test-alarm.py <queue-url> all

Fixtures are read from tests/fixtures/<name>.json. The router fetches the
alarm's tags live, so the alarm ARN in the fixture must exist in the account
for routing to succeed.
"""

import argparse
import json
import sys
from pathlib import Path

import boto3

FIXTURES_DIR = Path(__file__).parent.parent / "tests" / "fixtures"

ALARM_FIXTURES = ["alarm_triggered", "alarm_resolved", "alarm_insufficient_to_ok"]


def load_fixture(fixture_name: str) -> dict:
    """Load test fixture JSON file."""
    fixture_path = FIXTURES_DIR / f"{fixture_name}.json"

    if not fixture_path.exists():
        print(f"Error: Fixture not found: {fixture_path}")
        sys.exit(1)

    with open(fixture_path, "r") as f:
        return json.load(f)


def send_test_alarm(queue_url: str, fixture_name: str, fixture_data: dict):
    """Send one alarm event to the queue."""
    sqs = boto3.client("sqs")

    try:
        print(f"\nSending test alarm: {fixture_name}")
        print(f"Queue: {queue_url}")
        print(f"Alarm: {fixture_data['detail']['alarmName']}")

        response = sqs.send_message(QueueUrl=queue_url, MessageBody=json.dumps(fixture_data))

        print("✅ Successfully sent test alarm!")
        print(f"Message ID: {response['MessageId']}")

    except Exception as e:
        print(f"❌ Error sending test alarm: {e}")
        sys.exit(1)


def main():
    parser = argparse.ArgumentParser(description="Send test alarms to the alert router queue")
    parser.add_argument("queue_url", help="URL of the router's SQS queue")
    parser.add_argument(
        "fixture",
        choices=ALARM_FIXTURES + ["all"],
        help="Alarm fixture to send"
    )

    args = parser.parse_args()

    fixtures = ALARM_FIXTURES if args.fixture == "all" else [args.fixture]
    for fixture_name in fixtures:
        send_test_alarm(args.queue_url, fixture_name, load_fixture(fixture_name))


if __name__ == "__main__":
    main()
