"""
Alarm transition classifier.

Maps (previous state, current state, suppressed) to the action taken for the
alarm. The transition table below lists every combination of known states
explicitly; it is checked for completeness at import time so that adding a
state without deciding its transitions fails immediately.
"""

from enum import Enum
from itertools import product
from typing import Dict, Mapping, Optional, Tuple

from alert_router.config import PAGERDUTY_SUPPRESS_TAG_KEY


class TransitionAction(str, Enum):
    """What to do with an alarm transition. Values match PagerDuty event actions."""

    TRIGGER = 'trigger'
    RESOLVE = 'resolve'
    IGNORE = 'ignore'


class AlarmStateValue(str, Enum):
    OK = 'OK'
    ALARM = 'ALARM'
    INSUFFICIENT_DATA = 'INSUFFICIENT_DATA'
    # Any string CloudWatch sends that we do not recognise
    UNKNOWN = 'UNKNOWN'


def parse_state(value: Optional[str]) -> AlarmStateValue:
    """Map a free-form state string onto a known state (UNKNOWN otherwise)."""
    try:
        return AlarmStateValue(value)
    except ValueError:
        return AlarmStateValue.UNKNOWN


_OK = AlarmStateValue.OK
_ALARM = AlarmStateValue.ALARM
_INSUFFICIENT = AlarmStateValue.INSUFFICIENT_DATA
_UNKNOWN = AlarmStateValue.UNKNOWN

# (previous, current) -> action when paging is not suppressed
TRANSITIONS: Dict[Tuple[AlarmStateValue, AlarmStateValue], TransitionAction] = {
    (_OK, _OK): TransitionAction.IGNORE,
    (_OK, _ALARM): TransitionAction.TRIGGER,
    (_OK, _INSUFFICIENT): TransitionAction.IGNORE,
    (_OK, _UNKNOWN): TransitionAction.IGNORE,

    (_ALARM, _OK): TransitionAction.RESOLVE,
    (_ALARM, _ALARM): TransitionAction.TRIGGER,
    (_ALARM, _INSUFFICIENT): TransitionAction.IGNORE,
    (_ALARM, _UNKNOWN): TransitionAction.IGNORE,

    (_INSUFFICIENT, _OK): TransitionAction.IGNORE,
    (_INSUFFICIENT, _ALARM): TransitionAction.TRIGGER,
    (_INSUFFICIENT, _INSUFFICIENT): TransitionAction.IGNORE,
    (_INSUFFICIENT, _UNKNOWN): TransitionAction.IGNORE,

    (_UNKNOWN, _OK): TransitionAction.IGNORE,
    (_UNKNOWN, _ALARM): TransitionAction.TRIGGER,
    (_UNKNOWN, _INSUFFICIENT): TransitionAction.IGNORE,
    (_UNKNOWN, _UNKNOWN): TransitionAction.IGNORE,
}


def _check_exhaustive() -> None:
    missing = [pair for pair in product(AlarmStateValue, repeat=2) if pair not in TRANSITIONS]
    if missing:
        raise RuntimeError(f'Transition table is missing: {missing}')


_check_exhaustive()


def classify(previous_state: Optional[str], current_state: Optional[str], suppressed: bool) -> TransitionAction:
    """
    Classify an alarm transition.

    Args:
        previous_state: State the alarm moved from (e.g. "ALARM")
        current_state: State the alarm moved to (e.g. "OK")
        suppressed: True when paging is suppressed for the alarm's resource

    Returns:
        TransitionAction: IGNORE when suppressed, otherwise the table entry

    Example:
        >>> classify('ALARM', 'OK', False)
        <TransitionAction.RESOLVE: 'resolve'>
    """
    if suppressed:
        return TransitionAction.IGNORE
    return TRANSITIONS[(parse_state(previous_state), parse_state(current_state))]


def is_paging_suppressed(tags: Mapping[str, str]) -> bool:
    """True only when the suppression tag is exactly the string "true"."""
    return tags.get(PAGERDUTY_SUPPRESS_TAG_KEY) == 'true'
