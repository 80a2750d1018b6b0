"""Calendar and JSON output of the feed."""
import json
import logging
import os
from datetime import datetime, timezone
from typing import List

from icalendar import Calendar, Event as ICalEvent

from processor.models import CalendarEntry, Event

logger = logging.getLogger(__name__)

PRODID = '-//Pays Bigouden Calendar//Events//FR'


class CalendarWriter:
    """Builds the iCalendar document from calendar entries."""

    def __init__(
        self,
        name: str,
        description: str,
        timezone_name: str,
        url: str
    ):
        self.name = name
        self.description = description
        self.timezone_name = timezone_name
        self.url = url

    def build(self, entries: List[CalendarEntry], generated_at: datetime) -> Calendar:
        """
        Build a calendar with one VEVENT per entry.

        Instants are written in UTC; X-WR-TIMEZONE carries the display zone.

        Args:
            entries: Calendar entries
            generated_at: Timestamp used for DTSTAMP

        Returns:
            icalendar Calendar
        """
        calendar = Calendar()
        calendar.add('prodid', PRODID)
        calendar.add('version', '2.0')
        calendar.add('calscale', 'GREGORIAN')
        calendar.add('method', 'PUBLISH')
        calendar.add('x-wr-calname', self.name)
        calendar.add('x-wr-caldesc', self.description)
        calendar.add('x-wr-timezone', self.timezone_name)
        if self.url:
            calendar.add('url', self.url)

        stamp = generated_at.astimezone(timezone.utc)
        for entry in entries:
            calendar.add_component(self._build_event(entry, stamp))

        return calendar

    def to_ical(self, entries: List[CalendarEntry], generated_at: datetime) -> bytes:
        """Serialize the entries as an iCalendar document."""
        return self.build(entries, generated_at).to_ical()

    @staticmethod
    def _build_event(entry: CalendarEntry, stamp: datetime) -> ICalEvent:
        event = ICalEvent()
        event.add('uid', entry.uid)
        event.add('dtstamp', stamp)
        event.add('dtstart', entry.start.astimezone(timezone.utc))
        event.add('dtend', entry.end.astimezone(timezone.utc))
        event.add('summary', entry.summary)
        if entry.description:
            event.add('description', entry.description)
        if entry.location:
            event.add('location', entry.location)
        if entry.url:
            event.add('url', entry.url)
        if entry.category:
            event.add('categories', [entry.category])
        if entry.geo:
            event.add('geo', entry.geo)
        return event


class FeedWriter:
    """Writes the calendar file and the JSON dump of the kept events."""

    def __init__(
        self,
        output_dir: str,
        calendar_filename: str = 'pays-bigouden.ics',
        json_filename: str = 'events.json'
    ):
        self.output_dir = output_dir
        self.calendar_path = os.path.join(output_dir, calendar_filename)
        self.json_path = os.path.join(output_dir, json_filename)

    def write_calendar(self, content: bytes) -> str:
        """Write the iCalendar bytes and return the file path."""
        os.makedirs(self.output_dir, exist_ok=True)
        with open(self.calendar_path, 'wb') as f:
            f.write(content)
        logger.info(f"Wrote calendar to {self.calendar_path}")
        return self.calendar_path

    def write_events_json(self, events: List[Event]) -> str:
        """Write the canonical events as JSON and return the file path."""
        os.makedirs(self.output_dir, exist_ok=True)
        with open(self.json_path, 'w', encoding='utf-8') as f:
            json.dump([event.to_dict() for event in events], f, ensure_ascii=False, indent=2)
        logger.info(f"Wrote {len(events)} events to {self.json_path}")
        return self.json_path
