"""
Exception types raised by the alert router.

Fatal errors abort the event (and the batch it arrived in) and are surfaced
to the Lambda runtime so the queue can redrive the message. Evidence errors
are degraded conditions: they are logged and absorbed by the evidence
builder and never leave it.
"""

from typing import Optional


class AlertRouterError(Exception):
    """Base class for all alert router errors."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class ConfigurationError(AlertRouterError):
    """Configuration could not be loaded or is incomplete."""


# Fatal input

class FatalInputError(AlertRouterError):
    """The inbound message cannot be handled; retrying will not help."""


class MalformedEventError(FatalInputError):
    """The alarm state-change event failed to parse or validate."""


# Fatal dependency

class FatalDependencyError(AlertRouterError):
    """A collaborator required to route the event failed."""


class TagLookupError(FatalDependencyError):
    """Alarm tags could not be fetched."""


class ParameterLookupError(FatalDependencyError):
    """Parameter store returned an error other than not-found."""


class RoutingKeyLookupError(FatalDependencyError):
    """No PagerDuty routing key could be resolved for the event."""


class ChatSendError(FatalDependencyError):
    """Slack rejected or failed to deliver the message."""


class PagingSubmitError(FatalDependencyError):
    """PagerDuty rejected or failed to accept the event."""


class ParameterNotFoundError(AlertRouterError):
    """Parameter does not exist. Routing treats this as 'use the default'."""


# Degraded (absorbed by the evidence builder)

class EvidenceError(AlertRouterError):
    """Base class for failures while producing the metric chart link."""


class MetricDataError(EvidenceError):
    """Metric samples could not be fetched."""


class UnsupportedMetricQueryError(MetricDataError):
    """The alarm uses more than one metric query."""


class ChartRenderError(EvidenceError):
    """The metric chart could not be rendered."""


class ImageUploadError(EvidenceError):
    """The rendered chart could not be written to object storage."""
