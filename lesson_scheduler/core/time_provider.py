from __future__ import annotations

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from lesson_scheduler.config import settings


APP_TIMEZONE = settings.app_timezone or 'Asia/Jerusalem'
APP_ZONEINFO = ZoneInfo(APP_TIMEZONE)


class TimeProvider:
    def now(self) -> datetime:
        return datetime.now(APP_ZONEINFO)

    def today(self) -> date:
        return self.now().date()

    def local_now(self, tz: str) -> datetime:
        return datetime.now(ZoneInfo(tz))

    def current_week_start(self) -> date:
        # Weeks start on Sunday; date.weekday() is Monday-first.
        today = self.today()
        return today - timedelta(days=(today.weekday() + 1) % 7)


default_time_provider = TimeProvider()
