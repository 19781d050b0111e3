"""
Metric chart rendering.

Uses matplotlib's object-oriented Figure API so nothing touches pyplot's
global state; safe to call repeatedly within one Lambda container.
"""

import io
from datetime import datetime, timezone
from typing import Sequence

import matplotlib.dates as mdates
from matplotlib.figure import Figure
from matplotlib.ticker import FuncFormatter

from alert_router.errors import ChartRenderError

DEFAULT_GRAPH_WIDTH = 512
DEFAULT_GRAPH_HEIGHT = 200
_DPI = 100


def format_timestamp(ts: datetime) -> str:
    """Format a timestamp as HH:MM:SS in UTC (naive timestamps are taken as UTC)."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).strftime('%H:%M:%S')


def _tick_label(x: float, pos=None) -> str:
    return format_timestamp(mdates.num2date(x, tz=timezone.utc))


def render_time_series_png(
    timestamps: Sequence[datetime],
    values: Sequence[float],
    width: int = DEFAULT_GRAPH_WIDTH,
    height: int = DEFAULT_GRAPH_HEIGHT,
) -> bytes:
    """
    Render a time-series line chart as PNG.

    Args:
        timestamps: Sample times, oldest first
        values: Sample values, same length as timestamps
        width: Image width in pixels (default: 512)
        height: Image height in pixels (default: 200)

    Returns:
        bytes: PNG image data

    Raises:
        ChartRenderError: no datapoints, mismatched series, or a matplotlib failure
    """
    if not timestamps:
        raise ChartRenderError('no datapoints to plot')
    if len(timestamps) != len(values):
        raise ChartRenderError(
            f'timestamps and values differ in length ({len(timestamps)} != {len(values)})'
        )

    try:
        fig = Figure(figsize=(width / _DPI, height / _DPI), dpi=_DPI)
        ax = fig.add_subplot(1, 1, 1)
        ax.plot(list(timestamps), list(values), linewidth=1.5)
        ax.set_xlabel('Time')
        ax.set_ylabel('Value')
        ax.xaxis.set_major_formatter(FuncFormatter(_tick_label))
        ax.grid(True, alpha=0.3)
        fig.tight_layout()

        buffer = io.BytesIO()
        fig.savefig(buffer, format='png')
    except (ValueError, TypeError, OverflowError) as e:
        raise ChartRenderError(f'failed rendering chart: {e}') from e

    return buffer.getvalue()
