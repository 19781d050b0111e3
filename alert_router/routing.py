"""
Routing resolver: alarm tags -> Slack channel and PagerDuty routing key.

Channel resolution never fails; routing key resolution falls back to the
configured default when no per-service key exists, and fails hard on any
other parameter store error.
"""

import logging
from typing import Mapping

from alert_router.config import SLACK_CHANNEL_OVERRIDE_TAG_KEY, RouterConfig
from alert_router.errors import ParameterLookupError, ParameterNotFoundError, RoutingKeyLookupError
from alert_router.models import RoutingDecision
from alert_router.ports import ParameterStore

logger = logging.getLogger(__name__)

OWNER_CHANNEL_SUFFIX = '-alarms'


def get_owner(tags: Mapping[str, str], config: RouterConfig) -> str:
    """Owning team from the owner tag ("" when absent)."""
    return tags.get(config.owner_tag_key, '')


def get_service_name(tags: Mapping[str, str], config: RouterConfig) -> str:
    """Service name from the service tag ("" when absent)."""
    return tags.get(config.service_name_tag_key, '')


def get_channel_override(tags: Mapping[str, str]) -> str:
    return tags.get(SLACK_CHANNEL_OVERRIDE_TAG_KEY, '')


def channel_for_owner(owner: str, config: RouterConfig) -> str:
    """'<owner>-alarms', or the default channel when the owner is unknown."""
    if not owner:
        return config.default_slack_channel
    return f'{owner.lower()}{OWNER_CHANNEL_SUFFIX}'


def resolve_channel(tags: Mapping[str, str], config: RouterConfig) -> str:
    """
    Resolve the Slack channel for an alarm.

    Order: ``alerts:slack_channel`` tag (verbatim), then ``<owner>-alarms``,
    then the configured default channel.
    """
    override = get_channel_override(tags)
    if override:
        logger.info(f'Slack channel override: {override}')
        return override

    owner = get_owner(tags, config)
    channel = channel_for_owner(owner, config)
    logger.info(f'Owner (from tags): {owner!r} -> using slack channel: {channel}')
    return channel


def normalize_service_name(service_name: str) -> str:
    """Lowercase and replace '-' with '_' (the form used in parameter paths)."""
    return service_name.lower().replace('-', '_')


def resolve_paging_key(service_name: str, config: RouterConfig, parameters: ParameterStore) -> str:
    """
    Resolve the PagerDuty routing key for a service.

    Args:
        service_name: Value of the service tag (may be empty)
        config: Router configuration (default key, parameter path pattern)
        parameters: Parameter store to look up per-service overrides

    Returns:
        str: the per-service routing key, or the default routing key when the
            service is unknown, has no parameter, or the parameter is empty

    Raises:
        RoutingKeyLookupError: parameter store failed for any reason other
            than the parameter not existing
    """
    if not service_name:
        logger.info('No service name - using the default pagerduty routing key')
        return config.default_routing_key

    normalized = normalize_service_name(service_name)
    parameter = config.routing_key_parameter(normalized)

    try:
        value = parameters.get_value(parameter)
    except ParameterNotFoundError:
        logger.warning(f'Parameter {parameter} does not exist - using the default pagerduty routing key')
        return config.default_routing_key
    except ParameterLookupError as e:
        raise RoutingKeyLookupError(
            f'Error retrieving routing key parameter {parameter}: {e}', code=e.code
        ) from e

    if not value:
        logger.info(f'Routing key parameter for {normalized} is empty - using the default pagerduty routing key')
        return config.default_routing_key

    logger.info(f'Found a pagerduty routing key parameter for {normalized}')
    return value


def resolve_routing(tags: Mapping[str, str], config: RouterConfig, parameters: ParameterStore) -> RoutingDecision:
    """
    Compute the full routing decision for a tagged alarm.

    Raises:
        RoutingKeyLookupError: routing key lookup failed, or no key remains
            after all fallbacks
    """
    service_name = get_service_name(tags, config)
    owner = get_owner(tags, config)
    logger.info(f'Service name (from tags): {service_name!r}')

    routing_key = resolve_paging_key(service_name, config, parameters)
    if not routing_key:
        raise RoutingKeyLookupError(
            f'No pagerduty routing key for service {service_name!r} and no default configured'
        )

    return RoutingDecision(
        channel=resolve_channel(tags, config),
        routing_key=routing_key,
        service_name=service_name,
        owner=owner,
    )
