"""
Data models for CloudWatch alarm state-change events.

The wire format is the EventBridge "CloudWatch Alarm State Change" event as
it arrives in the SQS message body. Alarm tags are not part of that payload:
they are fetched separately and attached with ``with_tags`` before any
routing decision is made.
"""

import json
from datetime import datetime
from typing import Any, Dict, List, NamedTuple, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from alert_router.errors import MalformedEventError

# Keys used by AlarmTransitionEvent.metric_summary()
METRIC_NAMES_KEY = 'names'
METRIC_NAMESPACES_KEY = 'namespaces'
METRIC_DIMENSIONS_KEY = 'dimensions'

CONSOLE_BASE_URL = 'https://console.aws.amazon.com/cloudwatch/home'


class _WireModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra='ignore')


class AlarmState(_WireModel):
    """One side of the transition (``state`` or ``previousState``)."""

    value: str = ''
    reason: str = ''
    reason_data: str = Field(default='', alias='reasonData')
    timestamp: str = ''


class MetricDetail(_WireModel):
    namespace: str = ''
    name: str = ''
    dimensions: Dict[str, str] = Field(default_factory=dict)


class MetricStat(_WireModel):
    metric: MetricDetail = Field(default_factory=MetricDetail)
    period: int = 0
    stat: str = ''


class MetricQuery(_WireModel):
    """A metric query descriptor from the alarm configuration."""

    id: str = ''
    return_data: bool = Field(default=True, alias='returnData')
    metric_stat: Optional[MetricStat] = Field(default=None, alias='metricStat')
    expression: Optional[str] = None
    label: Optional[str] = None


class AlarmConfiguration(_WireModel):
    description: str = ''
    metrics: List[MetricQuery] = Field(default_factory=list)


class AlarmDetail(_WireModel):
    alarm_name: str = Field(default='', alias='alarmName')
    state: AlarmState = Field(default_factory=AlarmState)
    previous_state: AlarmState = Field(default_factory=AlarmState, alias='previousState')
    configuration: AlarmConfiguration = Field(default_factory=AlarmConfiguration)


class AlarmTransitionEvent(_WireModel):
    """An immutable CloudWatch alarm state-change notification."""

    version: str = ''
    id: str = ''
    detail_type: str = Field(default='', alias='detail-type')
    source: str = ''
    account: str = ''
    time: str = ''
    region: str = ''
    resources: List[str]
    detail: AlarmDetail = Field(default_factory=AlarmDetail)

    # Not part of the wire payload
    tags: Dict[str, str] = Field(default_factory=dict, exclude=True)

    @field_validator('resources')
    @classmethod
    def _exactly_one_resource(cls, value: List[str]) -> List[str]:
        if len(value) != 1:
            raise ValueError(
                f'resources in the cloudwatch alarm event must be exactly 1 (got {len(value)})'
            )
        return value

    @property
    def alarm_arn(self) -> str:
        return self.resources[0]

    @property
    def alarm_name(self) -> str:
        return self.detail.alarm_name

    @property
    def previous_state(self) -> str:
        return self.detail.previous_state.value

    @property
    def current_state(self) -> str:
        return self.detail.state.value

    @property
    def reason(self) -> str:
        return self.detail.state.reason

    @property
    def timestamp(self) -> str:
        return self.detail.state.timestamp

    @property
    def metric_queries(self) -> List[MetricQuery]:
        return self.detail.configuration.metrics

    def with_tags(self, tags: Dict[str, str]) -> 'AlarmTransitionEvent':
        """Return a copy of this event carrying the given resource tags."""
        return self.model_copy(update={'tags': dict(tags)})

    def console_link(self) -> str:
        """Link to the alarm in the CloudWatch console."""
        return f'{CONSOLE_BASE_URL}?region={self.region}#alarmsV2:alarm/{self.alarm_name}'

    def metric_summary(self) -> Dict[str, List[str]]:
        """
        Collect metric names, namespaces and dimensions used by the alarm.

        Returns:
            dict: {"names": [...], "namespaces": [...], "dimensions": ["Key:Value", ...]}
        """
        summary: Dict[str, List[str]] = {
            METRIC_NAMES_KEY: [],
            METRIC_NAMESPACES_KEY: [],
            METRIC_DIMENSIONS_KEY: [],
        }
        for query in self.metric_queries:
            if query.metric_stat is None:
                continue
            metric = query.metric_stat.metric
            if metric.namespace:
                summary[METRIC_NAMESPACES_KEY].append(metric.namespace)
            if metric.name:
                summary[METRIC_NAMES_KEY].append(metric.name)
            for key in sorted(metric.dimensions):
                summary[METRIC_DIMENSIONS_KEY].append(f'{key}:{metric.dimensions[key]}')
        return summary

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation (tags excluded)."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class MetricSamples(NamedTuple):
    """Recent datapoints for one metric query, oldest first."""

    timestamps: List[datetime]
    values: List[float]

    def latest(self) -> Optional[tuple]:
        """Return the most recent (value, timestamp) pair, or None when empty."""
        if not self.timestamps:
            return None
        return self.values[-1], self.timestamps[-1]


class RoutingDecision(NamedTuple):
    """Where an event goes: Slack channel and PagerDuty routing key."""

    channel: str
    routing_key: str
    service_name: str = ''
    owner: str = ''


def parse_event(body: Union[str, bytes, Dict[str, Any]]) -> AlarmTransitionEvent:
    """
    Deserialize an alarm state-change event.

    Args:
        body: JSON text (as found in an SQS message body) or an already
            decoded dict

    Returns:
        AlarmTransitionEvent: the parsed event, with no tags attached

    Raises:
        MalformedEventError: invalid JSON, schema violation, or a resource
            count other than one
    """
    try:
        if isinstance(body, (str, bytes)):
            data = json.loads(body)
        else:
            data = body
        if not isinstance(data, dict):
            raise MalformedEventError(f'event must be a JSON object, got {type(data).__name__}')
        return AlarmTransitionEvent.model_validate(data)
    except json.JSONDecodeError as e:
        raise MalformedEventError(f'event body is not valid JSON: {e}') from e
    except ValidationError as e:
        raise MalformedEventError(f'invalid alarm event: {e}') from e
