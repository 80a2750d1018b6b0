"""Exclusion rules applied to canonical events."""
import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional

from dateutil import tz

from processor.date_resolver import parse_date
from processor.models import Event

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDED_TYPES = ('exposition', 'expositions', 'exhibition')
DEFAULT_TITLE_KEYWORDS = ('exposition', 'exhibition')


class EventFilter:
    """Decides which events are left out of the feed."""

    def __init__(
        self,
        excluded_types: Iterable[str] = DEFAULT_EXCLUDED_TYPES,
        max_occurrences: int = 20,
        max_span_days: int = 60,
        title_keywords: Iterable[str] = (),
        timezone_name: str = 'Europe/Paris'
    ):
        """
        Initialize the filter.

        Args:
            excluded_types: Category labels to exclude (case-insensitive)
            max_occurrences: Maximum number of dates an event may have
            max_span_days: Maximum span of an event in days
            title_keywords: Title substrings that exclude an event
            timezone_name: Zone used to interpret raw dates
        """
        self.excluded_types = {t.strip().lower() for t in excluded_types if t.strip()}
        self.max_occurrences = max_occurrences
        self.max_span = timedelta(days=max_span_days)
        self.title_keywords = [k.strip().lower() for k in title_keywords if k.strip()]
        self.zone = tz.gettz(timezone_name)
        if self.zone is None:
            raise ValueError(f"Unknown timezone: {timezone_name}")

    def exclusion_reason(self, event: Event, now: datetime) -> Optional[str]:
        """
        Return why an event is excluded, or None if it is kept.

        Args:
            event: Canonical event
            now: Current instant

        Returns:
            Short reason string or None
        """
        if event.type and event.type.strip().lower() in self.excluded_types:
            return f"excluded type '{event.type}'"

        title = (event.title or '').lower()
        for keyword in self.title_keywords:
            if keyword in title:
                return f"title keyword '{keyword}'"

        if len(event.dates) > self.max_occurrences:
            return f"{len(event.dates)} occurrences"

        starts = [parse_date(o.start_date, self.zone, now) for o in event.dates]
        starts = [s for s in starts if s is not None]
        if not starts:
            return None

        first = event.dates[0]
        first_start = parse_date(first.start_date, self.zone, now)
        first_end = parse_date(first.end_date, self.zone, now)
        if first_start and first_end and first_end - first_start > self.max_span:
            return 'first occurrence too long'

        if max(starts) - min(starts) > self.max_span:
            return 'occurrences spread too far apart'

        if self._is_expired(event, now):
            return 'expired'

        return None

    def excludes(self, event: Event, now: datetime) -> bool:
        """Return True if the event must be left out of the feed."""
        reason = self.exclusion_reason(event, now)
        if reason:
            logger.debug(f"Excluding event '{event.title}' ({event.sheet_id}): {reason}")
            return True
        return False

    def _is_expired(self, event: Event, now: datetime) -> bool:
        """True when every occurrence ended before today."""
        if now.tzinfo is None:
            now = now.replace(tzinfo=self.zone)
        today = now.astimezone(self.zone).date()

        for occurrence in event.dates:
            last_day = (
                parse_date(occurrence.end_date, self.zone, now)
                or parse_date(occurrence.start_date, self.zone, now)
            )
            if last_day is None or last_day.date() >= today:
                return False
        return True
