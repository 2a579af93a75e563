"""Daily time-of-day window during which scheduled firings are allowed."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time

import pytz

from leadrotation.core.exceptions import ConfigurationError


def _parse_clock(value: str) -> time:
    try:
        hour, minute = map(int, value.split(":"))
        return time(hour, minute)
    except (ValueError, AttributeError) as exc:
        raise ConfigurationError(f"Invalid HH:MM value: {value!r}") from exc


@dataclass(frozen=True)
class ActiveWindow:
    """Window in a fixed timezone; start is inclusive, end exclusive.

    A window whose end is before its start wraps past midnight.
    """

    start: time
    end: time
    timezone: str = "Asia/Kolkata"

    @classmethod
    def parse(cls, start: str, end: str, timezone: str = "Asia/Kolkata") -> "ActiveWindow":
        try:
            pytz.timezone(timezone)
        except pytz.exceptions.UnknownTimeZoneError as exc:
            raise ConfigurationError(f"Unknown timezone: {timezone}") from exc
        return cls(start=_parse_clock(start), end=_parse_clock(end), timezone=timezone)

    def localize(self, moment: datetime) -> datetime:
        if moment.tzinfo is None:
            moment = pytz.utc.localize(moment)
        return moment.astimezone(pytz.timezone(self.timezone))

    def contains(self, moment: datetime) -> bool:
        local = self.localize(moment).time()
        if self.start == self.end:
            return True
        if self.start < self.end:
            return self.start <= local < self.end
        return local >= self.start or local < self.end

    def describe(self) -> str:
        return f"{self.start.strftime('%H:%M')}-{self.end.strftime('%H:%M')} {self.timezone}"
