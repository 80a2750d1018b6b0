"""Unit tests for calendar and JSON output."""
import json
from datetime import datetime, timezone

from dateutil import tz
from icalendar import Calendar

from processor.models import CalendarEntry, DateOccurrence, Event, GeoPoint
from storage.feed_writer import CalendarWriter, FeedWriter

PARIS = tz.gettz("Europe/Paris")
GENERATED_AT = datetime(2025, 7, 1, 10, 0, tzinfo=timezone.utc)


def make_writer():
    return CalendarWriter(
        name="Agenda Pays Bigouden",
        description="Événements du Pays Bigouden - Bretagne",
        timezone_name="Europe/Paris",
        url="https://www.destination-paysbigouden.com/a-voir-a-faire/agenda"
    )


def make_entry(uid="123-0@pays-bigouden-calendar", **overrides):
    fields = dict(
        uid=uid,
        start=datetime(2025, 7, 14, 14, 30, tzinfo=PARIS),
        end=datetime(2025, 7, 14, 16, 30, tzinfo=PARIS),
        summary="Fest-noz",
        description="Bal breton.",
        location="Salle des fêtes - Loctudy",
        url="https://example.com/fiche/FMA/123/fest-noz",
        category="Concert",
        geo=(47.83, -4.17)
    )
    fields.update(overrides)
    return CalendarEntry(**fields)


class TestCalendarWriter:
    """Test cases for CalendarWriter."""

    def test_calendar_properties(self):
        calendar = Calendar.from_ical(make_writer().to_ical([], GENERATED_AT))

        assert str(calendar["x-wr-calname"]) == "Agenda Pays Bigouden"
        assert str(calendar["x-wr-timezone"]) == "Europe/Paris"
        assert str(calendar["version"]) == "2.0"
        assert list(calendar.walk("VEVENT")) == []

    def test_one_vevent_per_entry(self):
        entries = [make_entry(), make_entry("123-1@pays-bigouden-calendar")]

        calendar = Calendar.from_ical(make_writer().to_ical(entries, GENERATED_AT))
        events = list(calendar.walk("VEVENT"))

        assert [str(e["uid"]) for e in events] == [
            "123-0@pays-bigouden-calendar",
            "123-1@pays-bigouden-calendar"
        ]

    def test_vevent_fields(self):
        calendar = Calendar.from_ical(make_writer().to_ical([make_entry()], GENERATED_AT))
        event = list(calendar.walk("VEVENT"))[0]

        assert event.decoded("dtstart") == datetime(2025, 7, 14, 12, 30, tzinfo=timezone.utc)
        assert event.decoded("dtend") == datetime(2025, 7, 14, 14, 30, tzinfo=timezone.utc)
        assert str(event["summary"]) == "Fest-noz"
        assert str(event["description"]) == "Bal breton."
        assert str(event["location"]) == "Salle des fêtes - Loctudy"
        assert str(event["url"]) == "https://example.com/fiche/FMA/123/fest-noz"
        assert b"CATEGORIES:Concert" in event.to_ical()
        assert b"GEO:47.83;-4.17" in event.to_ical()

    def test_optional_fields_are_omitted(self):
        entry = make_entry(category=None, geo=None, location="")

        event = make_writer().build([entry], GENERATED_AT).walk("VEVENT")[0]

        assert "categories" not in event
        assert "geo" not in event
        assert "location" not in event


class TestFeedWriter:
    """Test cases for FeedWriter."""

    def test_write_calendar(self, tmp_path):
        writer = FeedWriter(str(tmp_path / "out"), calendar_filename="feed.ics")

        path = writer.write_calendar(b"BEGIN:VCALENDAR\r\nEND:VCALENDAR\r\n")

        assert path == str(tmp_path / "out" / "feed.ics")
        assert (tmp_path / "out" / "feed.ics").read_bytes().startswith(b"BEGIN:VCALENDAR")

    def test_write_events_json(self, tmp_path):
        event = Event(
            sheet_id="123",
            bordereau="FMA",
            title="Fête des Brodeuses",
            type="Fête",
            description=None,
            town="Pont-l'Abbé",
            address=None,
            gps=GeoPoint(latitude="47.86", longitude="-4.22"),
            phone="02 98 82 37 99",
            url="https://example.com/fiche/FMA/123/fete",
            dates=[DateOccurrence(start_date="2025-07-13", start_time="à 14h30", oneday=True)]
        )
        writer = FeedWriter(str(tmp_path))

        path = writer.write_events_json([event])

        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        assert data == [{
            "sheetId": "123",
            "bordereau": "FMA",
            "title": "Fête des Brodeuses",
            "type": "Fête",
            "description": None,
            "town": "Pont-l'Abbé",
            "address": None,
            "gps": {"latitude": "47.86", "longitude": "-4.22"},
            "phone": {"number": "02 98 82 37 99"},
            "url": "https://example.com/fiche/FMA/123/fete",
            "dates": [{
                "oneday": True,
                "start": {"startDate": "2025-07-13", "startTime": "à 14h30"},
                "end": {"endDate": None}
            }]
        }]
