#!/usr/bin/env python3
"""
Deploy PagerDuty Routing Keys to SSM Parameter Store

Reads per-service routing keys from the .env file and writes them to the
parameter store paths the alert router looks them up from.

.env entries look like:
    ROUTING_KEY_PAYMENTS_API=0123456789abcdef0123456789abcdef
    ROUTING_KEY_SEARCH=fedcba9876543210fedcba9876543210

ROUTING_KEY_PAYMENTS_API is written to
/service/cw_alert_router/pagerduty/routing_keys/payments_api, which is where
an alarm tagged service=payments-api (or Payments-API) is routed.

Usage:
    python scripts/put-routing-keys.py
    python scripts/put-routing-keys.py --dry-run
"""

import argparse
import os
import sys
from pathlib import Path
from typing import Dict

import boto3
from dotenv import load_dotenv

from alert_router.config import load_config
from alert_router.errors import AlertRouterError
from alert_router.routing import normalize_service_name
from alert_router.tools.pagerduty_tools import mask_key
from alert_router.tools.parameter_tools import ParameterStoreClient

ENV_PREFIX = "ROUTING_KEY_"


class Colors:
    """ANSI color codes for terminal output."""

    RED = "\033[0;31m"
    GREEN = "\033[0;32m"
    BLUE = "\033[0;34m"
    NC = "\033[0m"  # No Color


def print_header(message: str) -> None:
    """Print a formatted header message."""
    print(f"\n{Colors.BLUE}{'=' * 70}{Colors.NC}")
    print(f"{Colors.BLUE}{message}{Colors.NC}")
    print(f"{Colors.BLUE}{'=' * 70}{Colors.NC}\n")


def print_success(message: str) -> None:
    print(f"{Colors.GREEN}✓{Colors.NC} {message}")


def print_error(message: str) -> None:
    print(f"{Colors.RED}✗{Colors.NC} {message}")


def print_info(message: str) -> None:
    print(f"  {message}")


def load_environment() -> bool:
    """Load .env from the repository root. Returns False if it is missing."""
    env_path = Path(__file__).parent.parent / ".env"

    if not env_path.exists():
        print_error(f".env file not found at {env_path}")
        return False

    load_dotenv(env_path)
    print_success(f"Loaded environment from {env_path}")
    return True


def collect_routing_keys() -> Dict[str, str]:
    """
    Collect ROUTING_KEY_<SERVICE> variables.

    Returns:
        Mapping of normalized service name -> routing key
    """
    keys = {}
    for name, value in os.environ.items():
        if not name.startswith(ENV_PREFIX) or not value.strip():
            continue
        service = normalize_service_name(name[len(ENV_PREFIX):])
        keys[service] = value.strip()
    return keys


def main():
    parser = argparse.ArgumentParser(description="Write PagerDuty routing keys to SSM Parameter Store")
    parser.add_argument("--dry-run", action="store_true", help="Show what would be written")
    args = parser.parse_args()

    print_header("SSM Parameter Store - Deploy PagerDuty Routing Keys")

    if not load_environment():
        sys.exit(1)

    routing_keys = collect_routing_keys()
    if not routing_keys:
        print_error(f"No {ENV_PREFIX}<SERVICE> entries found in .env")
        sys.exit(1)

    config = load_config(dotenv=False)
    region = os.environ.get("AWS_DEFAULT_REGION", "us-east-1")
    parameters = ParameterStoreClient(boto3.client("ssm", region_name=region))

    failed = 0
    for service, key in sorted(routing_keys.items()):
        path = config.routing_key_parameter(service)
        if args.dry_run:
            print_info(f"would write {path} = {mask_key(key)}")
            continue
        try:
            version = parameters.put_value(path, key, description=f"PagerDuty routing key for {service}")
            print_success(f"{path} (version {version})")
        except AlertRouterError as e:
            print_error(f"{path}: {e}")
            failed += 1

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
