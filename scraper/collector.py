"""Collection of events from the agenda listing or the sitemap."""
import logging
import re
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Pattern, Tuple, Union
from urllib.parse import urlsplit

from bs4 import BeautifulSoup

from processor.models import Event
from processor.normalizer import (
    DETAIL_BORDEREAU,
    normalize_detail_record,
    normalize_listing_record
)
from scraper.extractor import DETAIL_MARKER, LISTING_PATTERN, extract_array, extract_object
from scraper.fetcher import PageFetcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SitemapSource:
    """Detail pages enumerated from one or more sitemaps."""
    sitemap_urls: Tuple[str, ...]
    path_pattern: str = r'/fiche/'


@dataclass(frozen=True)
class PaginatedSource:
    """Agenda listing pages walked until they run dry."""
    agenda_url: str
    max_pages: int = 50
    max_consecutive_empty: int = 2
    page_param: str = 'listpage'


Source = Union[SitemapSource, PaginatedSource]


def merge_events(collected: Dict[str, Event], events: Iterable[Event]) -> int:
    """
    Add events to the map keyed by sheet id; the first one seen wins.

    Returns:
        Number of events that were new
    """
    added = 0
    for event in events:
        if event.sheet_id not in collected:
            collected[event.sheet_id] = event
            added += 1
    return added


def deduplicate(events: Iterable[Event]) -> List[Event]:
    """Drop events whose sheet id was already seen, keeping order."""
    collected: Dict[str, Event] = {}
    merge_events(collected, events)
    return list(collected.values())


def extract_sitemap_locations(document: str) -> List[str]:
    """Return the <loc> entries of a sitemap document."""
    soup = BeautifulSoup(document, 'html.parser')
    return [loc.get_text(strip=True) for loc in soup.find_all('loc') if loc.get_text(strip=True)]


class EventCollector:
    """Drives retrieval for a configured source."""

    def __init__(
        self,
        fetcher: PageFetcher,
        concurrency: int = 10,
        batch_delay: float = 0.5,
        bordereau: str = DETAIL_BORDEREAU,
        detail_marker: Union[str, Pattern] = DETAIL_MARKER,
        listing_pattern: Union[str, Pattern] = LISTING_PATTERN,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize the collector.

        Args:
            fetcher: Page fetcher
            concurrency: Number of detail pages fetched per batch
            batch_delay: Pause between batches in seconds
            bordereau: Record type accepted on detail pages
            detail_marker: Marker preceding the detail page object
            listing_pattern: Marker preceding the listing page array
            sleep: Sleep function used between batches
        """
        self.fetcher = fetcher
        self.concurrency = max(1, concurrency)
        self.batch_delay = batch_delay
        self.bordereau = bordereau
        self.detail_marker = detail_marker
        self.listing_pattern = listing_pattern
        self.sleep = sleep

    def collect(self, source: Source) -> List[Event]:
        """
        Collect deduplicated events from the source.

        Args:
            source: SitemapSource or PaginatedSource

        Returns:
            Events in first-seen order, unique by sheet id
        """
        if isinstance(source, PaginatedSource):
            return self._collect_paginated(source)
        if isinstance(source, SitemapSource):
            return self._collect_sitemap(source)
        raise TypeError(f"Unsupported source: {source!r}")

    # Paginated listing

    def fetch_listing_page(self, source: PaginatedSource, page: int) -> List[Event]:
        """Fetch and normalize one listing page; failures yield no events."""
        params = None if page == 1 else {source.page_param: str(page)}
        document = self.fetcher.fetch_text(source.agenda_url, params=params)
        if document is None:
            return []

        records = extract_array(document, self.listing_pattern)
        if records is None:
            logger.warning(f"No event data found on listing page {page}")
            return []

        base_url = self._site_root(source.agenda_url)
        events = []
        for record in records:
            event = normalize_listing_record(record, base_url)
            if event:
                events.append(event)
        return events

    def _collect_paginated(self, source: PaginatedSource) -> List[Event]:
        logger.info(f"Collecting events from agenda pages: {source.agenda_url}")
        collected: Dict[str, Event] = {}
        consecutive_empty = 0
        page = 1

        while consecutive_empty < source.max_consecutive_empty and page <= source.max_pages:
            events = self.fetch_listing_page(source, page)

            if not events:
                consecutive_empty += 1
                logger.info(f"Page {page}: no events")
            else:
                consecutive_empty = 0
                added = merge_events(collected, events)
                logger.info(f"Page {page}: {len(events)} events ({added} new)")

            page += 1

        logger.info(f"Collected {len(collected)} unique events")
        return list(collected.values())

    # Sitemap

    def discover_detail_urls(self, source: SitemapSource) -> List[str]:
        """
        List detail page URLs from the sitemaps.

        Nested sitemap indexes are followed one level deep.
        """
        pattern = re.compile(source.path_pattern)
        urls: List[str] = []
        seen = set()

        def add_locations(locations: List[str], follow_nested: bool):
            for location in locations:
                path = urlsplit(location).path
                if follow_nested and path.endswith('.xml'):
                    nested = self.fetcher.fetch_text(location)
                    if nested is not None:
                        add_locations(extract_sitemap_locations(nested), False)
                elif pattern.search(path) and location not in seen:
                    seen.add(location)
                    urls.append(location)

        for sitemap_url in source.sitemap_urls:
            document = self.fetcher.fetch_text(sitemap_url)
            if document is None:
                continue
            add_locations(extract_sitemap_locations(document), True)

        logger.info(f"Found {len(urls)} detail pages in {len(source.sitemap_urls)} sitemap(s)")
        return urls

    def fetch_detail_page(self, url: str) -> Optional[Event]:
        """Fetch and normalize one detail page; unusable pages yield None."""
        document = self.fetcher.fetch_text(url)
        if document is None:
            return None

        record = extract_object(document, self.detail_marker)
        if record is None:
            logger.debug(f"No offer data on {url}")
            return None
        return normalize_detail_record(record, url, self.bordereau)

    def _collect_sitemap(self, source: SitemapSource) -> List[Event]:
        urls = self.discover_detail_urls(source)
        collected: Dict[str, Event] = {}

        with ThreadPoolExecutor(max_workers=self.concurrency) as executor:
            for offset in range(0, len(urls), self.concurrency):
                if offset:
                    self.sleep(self.batch_delay)

                batch = urls[offset:offset + self.concurrency]
                results = list(executor.map(self.fetch_detail_page, batch))
                added = merge_events(collected, [event for event in results if event])
                logger.info(
                    f"Batch {offset // self.concurrency + 1}: "
                    f"{len(batch)} pages ({added} new events)"
                )

        logger.info(f"Collected {len(collected)} unique events")
        return list(collected.values())

    @staticmethod
    def _site_root(url: str) -> str:
        parts = urlsplit(url)
        return f"{parts.scheme}://{parts.netloc}"
