"""
CloudWatch metadata tools: alarm tags and recent metric samples.

Tools:
- CloudWatchClient.get_tags: Get the tags of an alarm (by ARN)
- CloudWatchClient.get_recent_samples: Get the last N hours of the alarm's metric
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from alert_router.errors import MetricDataError, TagLookupError, UnsupportedMetricQueryError
from alert_router.models import MetricQuery, MetricSamples

logger = logging.getLogger(__name__)


def synthetic_query_id(index: int) -> str:
    """Query ids from the alarm payload are UUIDs, which GetMetricData rejects."""
    return f'm{index}'


def aligned_window(now: datetime, period_seconds: int, hours: int) -> tuple:
    """
    Compute a (start, end) window whose end is truncated to the metric period.

    Example:
        now=06:47:38, period=300, hours=1  ->  (05:45:00, 06:45:00)
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    end_time = now
    if period_seconds > 0:
        epoch = int(now.timestamp())
        end_time = datetime.fromtimestamp(epoch - epoch % period_seconds, tz=timezone.utc)
    start_time = end_time - timedelta(hours=hours)
    return start_time, end_time


class CloudWatchClient:
    """Alarm metadata gateway backed by the CloudWatch API."""

    def __init__(self, client: Any = None, clock: Optional[Callable[[], datetime]] = None):
        self._client = client if client is not None else boto3.client('cloudwatch')
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def get_tags(self, resource_arn: str) -> Dict[str, str]:
        """
        Get the tags attached to an alarm.

        Args:
            resource_arn: Alarm ARN

        Returns:
            dict: {tag_key: tag_value}

        Raises:
            TagLookupError: the alarm does not exist or the call failed
        """
        try:
            response = self._client.list_tags_for_resource(ResourceARN=resource_arn)
        except ClientError as e:
            code = e.response.get('Error', {}).get('Code', '')
            raise TagLookupError(f'Error fetching tags for {resource_arn}: {e}', code=code) from e
        except BotoCoreError as e:
            raise TagLookupError(f'Error fetching tags for {resource_arn}: {e}') from e

        return {tag['Key']: tag['Value'] for tag in response.get('Tags', [])}

    def build_queries(self, queries: List[MetricQuery]) -> List[Dict[str, Any]]:
        """Translate alarm metric queries into GetMetricData queries with conforming ids."""
        metric_queries = []
        for idx, query in enumerate(queries):
            if query.metric_stat is None:
                raise MetricDataError(f'metric query {query.id!r} has no metricStat (expressions are not supported)')
            stat = query.metric_stat
            metric_queries.append({
                'Id': synthetic_query_id(idx),
                'ReturnData': query.return_data,
                'MetricStat': {
                    'Metric': {
                        'Namespace': stat.metric.namespace,
                        'MetricName': stat.metric.name,
                        'Dimensions': [
                            {'Name': name, 'Value': value}
                            for name, value in sorted(stat.metric.dimensions.items())
                        ],
                    },
                    'Period': stat.period,
                    'Stat': stat.stat,
                },
            })
        return metric_queries

    def get_recent_samples(self, queries: List[MetricQuery], hours: int = 1) -> MetricSamples:
        """
        Get recent datapoints for the alarm's metric.

        Args:
            queries: Metric queries from the alarm configuration (exactly one supported)
            hours: Hours of data to retrieve (default: 1)

        Returns:
            MetricSamples: timestamps and values, oldest first

        Raises:
            UnsupportedMetricQueryError: more than one metric query
            MetricDataError: no queries, API failure, or unexpected result count
        """
        if not queries:
            raise MetricDataError('alarm has no metric queries')
        if len(queries) > 1:
            raise UnsupportedMetricQueryError(
                f'unsupported: multiple metric queries ({len(queries)})'
            )

        metric_queries = self.build_queries(queries)
        period = queries[0].metric_stat.period
        start_time, end_time = aligned_window(self._clock(), period, hours)

        try:
            response = self._client.get_metric_data(
                MetricDataQueries=metric_queries,
                StartTime=start_time,
                EndTime=end_time,
                ScanBy='TimestampAscending',
            )
        except ClientError as e:
            code = e.response.get('Error', {}).get('Code', '')
            raise MetricDataError(f'Error fetching metric data: {e}', code=code) from e
        except BotoCoreError as e:
            raise MetricDataError(f'Error fetching metric data: {e}') from e

        results = response.get('MetricDataResults', [])
        if len(results) != 1:
            raise MetricDataError(f'number of metric data results != 1 (got {len(results)})')

        result = results[0]
        logger.debug(f'Received metric data: {result}')
        return MetricSamples(
            timestamps=list(result.get('Timestamps', [])),
            values=[float(v) for v in result.get('Values', [])],
        )
