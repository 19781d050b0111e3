"""
Evidence builder: metric samples -> rendered chart -> public image link.

Every step is best-effort. A failure anywhere is logged at WARNING and turns
into "no evidence"; nothing raised here may stop an alarm from being routed
or paged.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, NamedTuple, Optional, Sequence

from alert_router.config import RouterConfig
from alert_router.errors import UnsupportedMetricQueryError
from alert_router.graph import render_time_series_png
from alert_router.models import AlarmTransitionEvent, MetricSamples
from alert_router.ports import MetadataGateway, ObjectStore

logger = logging.getLogger(__name__)

Renderer = Callable[[Sequence[datetime], Sequence[float]], bytes]


class SampleFetch(NamedTuple):
    """Outcome of a sample fetch: samples, or a short note on why there are none."""

    samples: Optional[MetricSamples]
    error: str = ''


def image_object_key(prefix: str, now: datetime, image_id: Optional[str] = None) -> str:
    """
    Object key for a chart image: ``{prefix}/{year}/{month}/{day}/{uuid}.png``.

    An empty prefix drops the leading segment.
    """
    image_id = image_id or str(uuid.uuid4())
    parts = [str(now.year), str(now.month), str(now.day), f'{image_id}.png']
    prefix = prefix.strip('/')
    if prefix:
        parts.insert(0, prefix)
    return '/'.join(parts)


def image_link(host: str, object_key: str) -> str:
    """Join the image host and object key with exactly one '/'."""
    return f"{host.rstrip('/')}/{object_key.lstrip('/')}"


class EvidenceBuilder:
    """Produces an optional chart link for an alarm event."""

    def __init__(
        self,
        gateway: MetadataGateway,
        store: ObjectStore,
        config: RouterConfig,
        renderer: Renderer = render_time_series_png,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._gateway = gateway
        self._store = store
        self._config = config
        self._renderer = renderer
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def collect_samples(self, event: AlarmTransitionEvent) -> SampleFetch:
        """Fetch recent samples for the alarm's metric; failures come back as an error note."""
        try:
            samples = self._gateway.get_recent_samples(
                event.metric_queries, hours=self._config.sample_window_hours
            )
        except UnsupportedMetricQueryError as e:
            logger.warning(f'Skipping metric chart for {event.alarm_name}: {e}')
            return SampleFetch(None, str(e))
        except Exception as e:
            logger.warning(f'Failed fetching metric samples for {event.alarm_name}: {e}')
            return SampleFetch(None, str(e) or type(e).__name__)
        return SampleFetch(samples)

    def publish_chart(self, samples: Optional[MetricSamples]) -> Optional[str]:
        """Render samples, upload the image and return its link, or None on failure."""
        if samples is None:
            return None

        try:
            image = self._renderer(samples.timestamps, samples.values)
        except Exception as e:
            logger.warning(f'Failed rendering metric chart: {e}')
            return None

        bucket = self._config.image_bucket
        object_key = image_object_key(self._config.image_bucket_prefix, self._clock())
        logger.info(f'Writing graph to Bucket({bucket}) Key({object_key})')

        try:
            self._store.write_bytes(bucket, object_key, image)
        except Exception as e:
            logger.warning(f'Failed uploading metric chart: {e}')
            return None

        return image_link(self._config.image_host, object_key)

    def build(self, event: AlarmTransitionEvent) -> Optional[str]:
        """
        Build the evidence link for an event.

        Returns:
            str: link to the rendered chart, or None if any step failed
        """
        return self.publish_chart(self.collect_samples(event).samples)
