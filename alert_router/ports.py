"""Collaborator interfaces consumed by the router.

Production implementations live in ``alert_router.tools``; tests use
in-memory stand-ins.
"""

from typing import Any, Dict, List, Protocol, Tuple

from alert_router.models import MetricQuery, MetricSamples


class MetadataGateway(Protocol):
    def get_tags(self, resource_arn: str) -> Dict[str, str]:
        ...

    def get_recent_samples(self, queries: List[MetricQuery], hours: int = 1) -> MetricSamples:
        ...


class ObjectStore(Protocol):
    def write_bytes(self, bucket: str, key: str, data: bytes) -> None:
        ...


class ChatService(Protocol):
    def send_blocks(self, channel: str, blocks: List[Dict[str, Any]], text: str = '') -> Tuple[str, str]:
        ...


class PagingService(Protocol):
    def submit_event(self, routing_key: str, action: str, dedup_key: str, payload: Dict[str, Any]) -> None:
        ...


class ParameterStore(Protocol):
    def get_value(self, key: str) -> str:
        ...
