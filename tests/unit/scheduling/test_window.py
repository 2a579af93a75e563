from __future__ import annotations

from datetime import datetime, time, timezone

import pytest

from leadrotation.core.exceptions import ConfigurationError
from leadrotation.scheduling.window import ActiveWindow


def test_window_uses_its_own_timezone():
    window = ActiveWindow.parse("09:00", "18:00", "Asia/Kolkata")

    # 04:00 UTC is 09:30 IST.
    assert window.contains(datetime(2026, 3, 2, 4, 0, tzinfo=timezone.utc)) is True
    # 13:00 UTC is 18:30 IST.
    assert window.contains(datetime(2026, 3, 2, 13, 0, tzinfo=timezone.utc)) is False


def test_window_start_inclusive_end_exclusive():
    window = ActiveWindow.parse("09:00", "18:00", "UTC")

    assert window.contains(datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)) is True
    assert window.contains(datetime(2026, 3, 2, 17, 59, tzinfo=timezone.utc)) is True
    assert window.contains(datetime(2026, 3, 2, 18, 0, tzinfo=timezone.utc)) is False


def test_naive_datetimes_are_treated_as_utc():
    window = ActiveWindow.parse("09:00", "18:00", "UTC")
    assert window.contains(datetime(2026, 3, 2, 12, 0)) is True


def test_overnight_window_wraps_midnight():
    window = ActiveWindow(start=time(22, 0), end=time(2, 0), timezone="UTC")

    assert window.contains(datetime(2026, 3, 2, 23, 30, tzinfo=timezone.utc)) is True
    assert window.contains(datetime(2026, 3, 3, 1, 0, tzinfo=timezone.utc)) is True
    assert window.contains(datetime(2026, 3, 3, 12, 0, tzinfo=timezone.utc)) is False


def test_invalid_window_values_raise():
    with pytest.raises(ConfigurationError):
        ActiveWindow.parse("9am", "18:00", "UTC")
    with pytest.raises(ConfigurationError):
        ActiveWindow.parse("09:00", "18:00", "Mars/Olympus")


def test_describe():
    assert ActiveWindow.parse("09:00", "18:00", "UTC").describe() == "09:00-18:00 UTC"
