"""Resolution of raw date occurrences into concrete start/end instants."""
import logging
import re
from datetime import datetime, timedelta, tzinfo
from typing import List, Optional, Tuple

from dateutil import parser, tz

from processor.models import DateOccurrence, Event, ResolvedOccurrence

logger = logging.getLogger(__name__)

START_TIME_PATTERN = re.compile(r'(\d{1,2})[h:](\d{2})?')


def parse_date(value: Optional[str], zone: tzinfo, now: datetime) -> Optional[datetime]:
    """
    Parse a date or date-time string in the given zone.

    ISO 8601 is tried first; other formats are read day first. Parts
    missing from a partial date (e.g. "14/07") come from the local day
    of `now`.
    Naive values are localized, aware values converted.

    Returns:
        Timezone-aware datetime, or None if the value cannot be parsed
    """
    if not value:
        return None
    try:
        parsed = parser.isoparse(value)
    except (ValueError, OverflowError, TypeError):
        if now.tzinfo is not None:
            now = now.astimezone(zone)
        default = now.replace(hour=0, minute=0, second=0, microsecond=0, tzinfo=None)
        try:
            parsed = parser.parse(value, dayfirst=True, default=default)
        except (ValueError, OverflowError, TypeError):
            return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=zone)
    try:
        return parsed.astimezone(zone)
    except OverflowError:
        return None


class DateResolver:
    """Turns date occurrences into start/end datetimes in the feed timezone."""

    def __init__(self, timezone_name: str = 'Europe/Paris', default_duration_hours: float = 2):
        """
        Initialize the resolver.

        Args:
            timezone_name: IANA name of the feed timezone
            default_duration_hours: Duration used when no end time is known
        """
        self.zone = tz.gettz(timezone_name)
        if self.zone is None:
            raise ValueError(f"Unknown timezone: {timezone_name}")
        self.default_duration = timedelta(hours=default_duration_hours)

    def _localize(self, now: datetime) -> datetime:
        if now.tzinfo is None:
            return now.replace(tzinfo=self.zone)
        return now.astimezone(self.zone)

    def _parse_start_time(self, start_time: Optional[str]) -> Optional[Tuple[int, int]]:
        """Return (hours, minutes) from free text such as "à 14h30", or None."""
        if not start_time:
            return None
        match = START_TIME_PATTERN.search(start_time)
        if not match:
            return None

        hours = int(match.group(1))
        minutes = int(match.group(2) or 0)
        if hours > 23 or minutes > 59:
            return None
        return hours, minutes

    def resolve(self, occurrence: DateOccurrence, now: datetime) -> Optional[ResolvedOccurrence]:
        """
        Resolve a single occurrence.

        Args:
            occurrence: Raw date occurrence
            now: Current instant; occurrences ending before it are dropped

        Returns:
            ResolvedOccurrence, or None if unusable or already over
        """
        start = parse_date(occurrence.start_date, self.zone, now)
        if start is None:
            return None

        end = parse_date(occurrence.end_date, self.zone, now)
        has_end_date = end is not None
        if end is None:
            end = start

        clock = self._parse_start_time(occurrence.start_time)
        if clock:
            hours, minutes = clock
            start = start.replace(hour=hours, minute=minutes, second=0, microsecond=0)
            if not has_end_date or occurrence.oneday:
                try:
                    end = start + self.default_duration
                except OverflowError:
                    logger.debug(f"Date out of range: {occurrence.start_date}")
                    return None

        if end < start:
            end = start

        if end < self._localize(now):
            return None

        return ResolvedOccurrence(start=start, end=end)

    def resolve_all(self, event: Event, now: datetime) -> List[ResolvedOccurrence]:
        """
        Resolve the occurrences of an event, keeping source order.

        Args:
            event: Canonical event
            now: Current instant

        Returns:
            Upcoming resolved occurrences
        """
        resolved = []
        for occurrence in event.dates:
            if parse_date(occurrence.start_date, self.zone, now) is None:
                logger.warning(
                    f"Unusable date for event '{event.title}': {occurrence.start_date}"
                )
                continue

            result = self.resolve(occurrence, now)
            if result:
                resolved.append(result)
        return resolved
