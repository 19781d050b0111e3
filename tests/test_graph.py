"""
Metric Chart Tests
"""

from datetime import datetime, timedelta, timezone

import matplotlib.dates as mdates
import pytest

from alert_router.errors import ChartRenderError
from alert_router.graph import _tick_label, format_timestamp, render_time_series_png

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class TestRenderTimeSeries:
    """Test render_time_series_png function"""

    def test_renders_png(self, samples):
        """Test six datapoints render to a non-trivial PNG"""
        image = render_time_series_png(samples.timestamps, samples.values)
        assert image.startswith(PNG_SIGNATURE)
        assert len(image) > 1024

    def test_default_size(self, samples):
        """Test the image is 512x200 (read from the IHDR chunk)"""
        image = render_time_series_png(samples.timestamps, samples.values)
        width = int.from_bytes(image[16:20], "big")
        height = int.from_bytes(image[20:24], "big")
        assert (width, height) == (512, 200)

    def test_single_point(self):
        image = render_time_series_png([datetime(2020, 10, 5, 6, 40, tzinfo=timezone.utc)], [1.0])
        assert image.startswith(PNG_SIGNATURE)

    def test_empty_series(self):
        with pytest.raises(ChartRenderError):
            render_time_series_png([], [])

    def test_mismatched_series(self):
        start = datetime(2020, 10, 5, 6, 15, tzinfo=timezone.utc)
        with pytest.raises(ChartRenderError):
            render_time_series_png([start, start + timedelta(minutes=5)], [1.0])


class TestFormatTimestamp:
    """Test format_timestamp function"""

    def test_utc(self):
        assert format_timestamp(datetime(2020, 10, 5, 6, 47, 38, tzinfo=timezone.utc)) == "06:47:38"

    def test_converts_to_utc(self):
        eastern = timezone(timedelta(hours=-4))
        assert format_timestamp(datetime(2020, 10, 5, 2, 47, 38, tzinfo=eastern)) == "06:47:38"

    def test_naive_is_utc(self):
        assert format_timestamp(datetime(2020, 10, 5, 6, 47, 38)) == "06:47:38"


class TestTickLabels:
    """Test the X axis tick formatter"""

    def test_utc_label(self):
        x = mdates.date2num(datetime(2020, 10, 5, 6, 47, 38, tzinfo=timezone.utc))
        assert _tick_label(x) == "06:47:38"

    def test_non_utc_label_shown_in_utc(self):
        tokyo = timezone(timedelta(hours=9))
        x = mdates.date2num(datetime(2020, 10, 5, 15, 47, 38, tzinfo=tokyo))
        assert _tick_label(x, 0) == "06:47:38"
