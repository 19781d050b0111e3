"""
CloudWatch Alert Router - Lambda Handler

- Triggered by SQS (EventBridge "CloudWatch Alarm State Change" events)
- Routes each alarm through the LangGraph routing workflow
- Posts to Slack and submits to PagerDuty

Entry point: lambda_handler(event, context)
"""

import json
import logging
from typing import Any, Dict, List, Optional

from alert_router.config import RouterConfig, load_config
from alert_router.errors import ConfigurationError, FatalInputError
from alert_router.models import parse_event
from alert_router.tools import (
    CloudWatchClient,
    PagerDutyClient,
    ParameterStoreClient,
    S3ImageStore,
    SlackClient,
)
from alert_router.workflow import AlertRouterWorkflow

logger = logging.getLogger(__name__)

LOG_LEVELS = {
    'error': logging.ERROR,
    'warn': logging.WARNING,
    'warning': logging.WARNING,
    'info': logging.INFO,
    'debug': logging.DEBUG,
}

# Built on first invocation and reused while the container is warm
_workflow: Optional[AlertRouterWorkflow] = None


def configure_logging(level: str) -> None:
    """Set the root log level (unknown levels fall back to INFO)."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    logging.getLogger().setLevel(LOG_LEVELS.get(level.lower(), logging.INFO))


def build_workflow(config: RouterConfig) -> AlertRouterWorkflow:
    """
    Wire the workflow with production collaborators.

    The Slack token comes from config.slack_token or, when that is empty,
    from the parameter named by config.slack_token_ssm_key.
    """
    parameters = ParameterStoreClient()

    slack_token = config.slack_token
    if not slack_token:
        if not config.slack_token_ssm_key:
            raise ConfigurationError('Neither SLACK_TOKEN nor SLACK_TOKEN_SSM_KEY is set')
        logger.info(f'Fetching slack token from ssm key {config.slack_token_ssm_key}')
        slack_token = parameters.get_value(config.slack_token_ssm_key)

    return AlertRouterWorkflow(
        config=config,
        gateway=CloudWatchClient(),
        store=S3ImageStore(region=config.image_bucket_region, role_arn=config.image_bucket_role_arn),
        chat=SlackClient(slack_token, api_url=config.slack_api_url),
        pager=PagerDutyClient(events_url=config.pagerduty_events_url),
        parameters=parameters,
    )


def extract_messages(event: Dict[str, Any]) -> List[Any]:
    """
    Pull alarm event bodies out of the Lambda event.

    Supports SQS records (body), SNS records (Sns.Message) and a bare
    EventBridge event.
    """
    if 'Records' not in event:
        return [event]

    messages = []
    for record in event['Records']:
        if 'Sns' in record:
            messages.append(record['Sns'].get('Message', ''))
        else:
            logger.info(f"Processing SQS message ID: {record.get('messageId')} (source: {record.get('eventSource')})")
            messages.append(record.get('body', ''))
    return messages


def handle_batch(workflow: AlertRouterWorkflow, event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Route every message in the batch, strictly in order.

    The first malformed message or fatal error aborts the batch.
    """
    messages = extract_messages(event)
    if not messages:
        raise FatalInputError('no events to process')

    results = []
    for body in messages:
        logger.debug(f'Body: {body}')
        alarm = parse_event(body)
        final_state = workflow.run(alarm)
        results.append({
            'alarm': alarm.alarm_name,
            'action': final_state['chat_action'].value,
            'channel': final_state['routing'].channel,
            'slack_ts': final_state['slack_ts'],
            'paged': final_state['paged'],
        })

    return {'processed': len(results), 'results': results}


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for alarm routing.

    Args:
        event: SQS batch (or SNS / EventBridge event)
        context: Lambda context object

    Returns:
        dict: {"processed": int, "results": [...]}
    """
    global _workflow

    if _workflow is None:
        config = load_config()
        configure_logging(config.log_level)
        _workflow = build_workflow(config)

    try:
        result = handle_batch(_workflow, event)
    except Exception:
        logger.exception('Failed processing event batch')
        raise

    logger.info(f'Processed batch: {json.dumps(result)}')
    return result
