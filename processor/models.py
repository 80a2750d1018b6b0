"""Data models for event processing."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple


@dataclass
class GeoPoint:
    """GPS coordinates as published by the source (numeric strings)."""
    latitude: str
    longitude: str


@dataclass
class DateOccurrence:
    """One raw date entry of an event."""
    start_date: Optional[str]
    start_time: Optional[str] = None
    end_date: Optional[str] = None
    oneday: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'oneday': self.oneday,
            'start': {
                'startDate': self.start_date,
                'startTime': self.start_time
            },
            'end': {'endDate': self.end_date}
        }


@dataclass
class Event:
    """Canonical event built from a raw site record."""
    sheet_id: str
    bordereau: Optional[str]
    title: str
    type: Optional[str]
    description: Optional[str]
    town: Optional[str]
    address: Optional[str]
    gps: Optional[GeoPoint]
    phone: Optional[str]
    url: str
    dates: List[DateOccurrence] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the site's field names for the JSON dump."""
        return {
            'sheetId': self.sheet_id,
            'bordereau': self.bordereau,
            'title': self.title,
            'type': self.type,
            'description': self.description,
            'town': self.town,
            'address': self.address,
            'gps': {
                'latitude': self.gps.latitude,
                'longitude': self.gps.longitude
            } if self.gps else None,
            'phone': {'number': self.phone} if self.phone else None,
            'url': self.url,
            'dates': [occurrence.to_dict() for occurrence in self.dates]
        }


@dataclass
class ResolvedOccurrence:
    """Concrete start/end instants of an occurrence."""
    start: datetime
    end: datetime


@dataclass
class CalendarEntry:
    """One calendar event, built per (event, resolved occurrence) pair."""
    uid: str
    start: datetime
    end: datetime
    summary: str
    description: str
    location: str
    url: str
    category: Optional[str] = None
    geo: Optional[Tuple[float, float]] = None


@dataclass
class ProcessingResult:
    """Output of the filter/resolve stage."""
    events: List[Event]
    entries: List[CalendarEntry]
    excluded: int


@dataclass
class FeedResult:
    """Result of a full feed generation run."""
    events_collected: int
    events_kept: int
    entries_written: int
    calendar_path: str
    json_path: str
