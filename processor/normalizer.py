"""Mapping of raw site records into canonical events."""
import logging
import re
import unicodedata
from typing import Any, Dict, List, Optional

from processor.models import DateOccurrence, Event, GeoPoint

logger = logging.getLogger(__name__)

DETAIL_BORDEREAU = 'FMA'

CLOCK_TIME_PATTERN = re.compile(r'^(\d{1,2}):(\d{2})(?::\d{2})?$')
SLUG_PATTERN = re.compile(r'[^a-z0-9]+')


def _text(value: Any) -> Optional[str]:
    """Return a stripped string, or None for empty values."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _mapping(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def format_start_time(raw: Any) -> Optional[str]:
    """
    Format a start time the way the agenda displays it.

    "14:30:00" becomes "à 14h30". Free text is kept as is.
    """
    text = _text(raw)
    if not text:
        return None

    match = CLOCK_TIME_PATTERN.match(text)
    if match:
        return f"à {int(match.group(1)):02d}h{match.group(2)}"
    return text


def slugify(title: str) -> str:
    """Build the URL slug of an event title."""
    normalized = unicodedata.normalize('NFD', title.lower())
    stripped = ''.join(c for c in normalized if not unicodedata.combining(c))
    return SLUG_PATTERN.sub('-', stripped).strip('-')


def build_event_url(base_url: str, bordereau: Optional[str], sheet_id: str, title: str) -> str:
    """Derive the detail page URL: /fiche/<bordereau>/<sheetId>/<slug>."""
    return f"{base_url.rstrip('/')}/fiche/{bordereau}/{sheet_id}/{slugify(title)}"


def _build_gps(latitude: Any, longitude: Any) -> Optional[GeoPoint]:
    latitude = _text(latitude)
    longitude = _text(longitude)
    if latitude and longitude:
        return GeoPoint(latitude=latitude, longitude=longitude)
    return None


def _build_occurrence(
    start_date: Any,
    start_time: Any,
    end_date: Any,
    oneday: Any,
    title: str
) -> Optional[DateOccurrence]:
    start_date = _text(start_date)
    if not start_date:
        logger.debug(f"Dropping occurrence without start date for '{title}'")
        return None

    return DateOccurrence(
        start_date=start_date,
        start_time=format_start_time(start_time),
        end_date=_text(end_date),
        oneday=bool(oneday)
    )


def _listing_dates(raw_dates: Any, title: str) -> List[DateOccurrence]:
    dates = []
    for raw in raw_dates if isinstance(raw_dates, list) else []:
        raw = _mapping(raw)
        start = _mapping(raw.get('start'))
        end = _mapping(raw.get('end'))
        occurrence = _build_occurrence(
            start.get('startDate'),
            start.get('startTime'),
            end.get('endDate'),
            raw.get('oneday'),
            title
        )
        if occurrence:
            dates.append(occurrence)
    return dates


def _detail_dates(opening_periods: Any, title: str) -> List[DateOccurrence]:
    periods = _mapping(opening_periods).get('periods')
    dates = []
    for period in periods if isinstance(periods, list) else []:
        period = _mapping(period)
        occurrence = _build_occurrence(
            period.get('startDate'),
            period.get('startTime'),
            period.get('endDate'),
            period.get('oneDay'),
            title
        )
        if occurrence:
            dates.append(occurrence)
    return dates


def _detail_address(address: Dict[str, Any]) -> Optional[str]:
    """Address line 1, then line 2, then "zip locality"."""
    line = _text(address.get('address1')) or _text(address.get('address2'))
    if line:
        return line

    locality_parts = [
        part for part in (_text(address.get('zipcode')), _text(address.get('locality')))
        if part
    ]
    if locality_parts:
        return ' '.join(locality_parts)
    return None


def normalize_listing_record(record: Any, base_url: str) -> Optional[Event]:
    """
    Normalize a record of the agenda listing (itemsData array).

    Args:
        record: Raw record from the listing page
        base_url: Site root used to derive event URLs

    Returns:
        Event, or None if the record has no identifier
    """
    if not isinstance(record, dict):
        return None

    sheet_id = _text(record.get('sheetId'))
    if not sheet_id:
        return None

    title = _text(record.get('title')) or ''
    bordereau = _text(record.get('bordereau'))
    gps = _mapping(record.get('gps'))

    return Event(
        sheet_id=sheet_id,
        bordereau=bordereau,
        title=title,
        type=_text(record.get('type')),
        description=_text(record.get('description')),
        town=_text(record.get('town')),
        address=_text(record.get('address')),
        gps=_build_gps(gps.get('latitude'), gps.get('longitude')),
        phone=_text(_mapping(record.get('phone')).get('number')),
        url=_text(record.get('url')) or build_event_url(base_url, bordereau, sheet_id, title),
        dates=_listing_dates(record.get('dates'), title)
    )


def normalize_detail_record(
    record: Any,
    page_url: str,
    bordereau: str = DETAIL_BORDEREAU
) -> Optional[Event]:
    """
    Normalize the offer object of a detail page.

    Only records of the expected bordereau are kept.

    Args:
        record: Raw offer object
        page_url: URL the page was fetched from
        bordereau: Accepted record type

    Returns:
        Event, or None if the record is not an event sheet
    """
    if not isinstance(record, dict):
        return None
    if _text(record.get('bordereau')) != bordereau:
        return None

    sheet_id = _text(record.get('sheetId')) or _text(record.get('id'))
    if not sheet_id:
        return None

    title = _text(record.get('title')) or ''
    address = _mapping(record.get('address'))
    phones = record.get('phones')
    first_phone = _mapping(phones[0]) if isinstance(phones, list) and phones else {}

    return Event(
        sheet_id=sheet_id,
        bordereau=bordereau,
        title=title,
        type=_text(record.get('type')),
        description=_text(record.get('description')),
        town=_text(address.get('locality')),
        address=_detail_address(address),
        gps=_build_gps(record.get('latitude'), record.get('longitude')),
        phone=_text(first_phone.get('number')),
        url=_text(record.get('url')) or page_url,
        dates=_detail_dates(record.get('openingPeriods'), title)
    )
