"""Event processor turning canonical events into calendar entries."""
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from processor.date_resolver import DateResolver
from processor.event_filter import EventFilter
from processor.models import CalendarEntry, Event, ProcessingResult, ResolvedOccurrence

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = 'pays-bigouden-calendar'


class EventProcessor:
    """Filters events and builds one calendar entry per upcoming occurrence."""

    def __init__(
        self,
        event_filter: EventFilter,
        resolver: DateResolver,
        namespace: str = DEFAULT_NAMESPACE
    ):
        """
        Initialize the processor.

        Args:
            event_filter: Exclusion rules
            resolver: Date occurrence resolver
            namespace: Suffix of calendar entry UIDs
        """
        self.event_filter = event_filter
        self.resolver = resolver
        self.namespace = namespace

    def process_events(self, events: List[Event], now: datetime) -> ProcessingResult:
        """
        Filter events and resolve their occurrences.

        Args:
            events: Deduplicated canonical events
            now: Current instant

        Returns:
            ProcessingResult with the kept events and their calendar entries
        """
        kept = []
        entries = []
        excluded = 0

        for event in events:
            try:
                if self.event_filter.excludes(event, now):
                    excluded += 1
                    continue

                occurrences = self.resolver.resolve_all(event, now)
                if not occurrences:
                    logger.debug(
                        f"No upcoming date for event '{event.title}' ({event.sheet_id})"
                    )
                    continue

                event_entries = self.build_entries(event, occurrences)
            except Exception as e:
                logger.warning(
                    f"Failed to process event '{event.title}' ({event.sheet_id}): {e}"
                )
                continue

            kept.append(event)
            entries.extend(event_entries)

        logger.info(
            f"Kept {len(kept)} events out of {len(events)} "
            f"({excluded} excluded), {len(entries)} calendar entries"
        )
        return ProcessingResult(events=kept, entries=entries, excluded=excluded)

    def build_entries(
        self,
        event: Event,
        occurrences: List[ResolvedOccurrence]
    ) -> List[CalendarEntry]:
        """Build the calendar entries of an event, one per occurrence."""
        description = self._build_description(event)
        location = self._build_location(event)
        geo = self._build_geo(event)

        return [
            CalendarEntry(
                uid=self.generate_uid(event.sheet_id, index),
                start=occurrence.start,
                end=occurrence.end,
                summary=event.title,
                description=description,
                location=location,
                url=event.url,
                category=event.type,
                geo=geo
            )
            for index, occurrence in enumerate(occurrences)
        ]

    def generate_uid(self, sheet_id: str, index: int) -> str:
        """
        Generate the UID of an occurrence.

        The format is kept stable so subscribers see updates, not new events.
        """
        return f"{sheet_id}-{index}@{self.namespace}"

    @staticmethod
    def _build_description(event: Event) -> str:
        parts = []
        if event.description:
            parts.append(event.description)
        if event.phone:
            parts.append(f"📞 {event.phone}")
        parts.append(f"🔗 {event.url}")
        return '\n\n'.join(parts)

    @staticmethod
    def _build_location(event: Event) -> str:
        parts = []
        if event.address:
            parts.append(event.address.replace('\n', ', '))
        if event.town and event.town not in (event.address or ''):
            parts.append(event.town)
        return ' - '.join(parts)

    @staticmethod
    def _build_geo(event: Event) -> Optional[Tuple[float, float]]:
        if not event.gps:
            return None
        try:
            return float(event.gps.latitude), float(event.gps.longitude)
        except ValueError:
            logger.debug(f"Invalid coordinates for event '{event.title}'")
            return None
