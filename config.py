"""Runtime configuration read from environment variables."""
import os
from dataclasses import dataclass
from typing import List, Mapping, Optional, Tuple

from processor.event_filter import DEFAULT_EXCLUDED_TYPES, DEFAULT_TITLE_KEYWORDS
from processor.event_processor import DEFAULT_NAMESPACE
from scraper.collector import PaginatedSource, SitemapSource, Source

SITEMAP_MODE = 'sitemap'
PAGINATED_MODE = 'paginated'

BASE_URL = 'https://www.destination-paysbigouden.com'


def split_list(value: str) -> List[str]:
    """Split a comma separated value, dropping blanks."""
    return [part.strip() for part in value.split(',') if part.strip()]


@dataclass
class Settings:
    """Feed generation settings."""
    source_mode: str = PAGINATED_MODE
    base_url: str = BASE_URL
    agenda_url: str = f"{BASE_URL}/a-voir-a-faire/agenda"
    sitemap_urls: Tuple[str, ...] = (f"{BASE_URL}/sitemap.xml",)
    detail_path_pattern: str = r'/fiche/'
    calendar_name: str = 'Agenda Pays Bigouden'
    calendar_description: str = 'Événements du Pays Bigouden - Bretagne'
    timezone: str = 'Europe/Paris'
    namespace: str = DEFAULT_NAMESPACE
    default_duration_hours: float = 2
    excluded_types: Tuple[str, ...] = DEFAULT_EXCLUDED_TYPES
    title_keywords: Tuple[str, ...] = ()
    max_occurrences: int = 20
    max_span_days: int = 60
    fetch_concurrency: int = 10
    batch_delay_seconds: float = 0.5
    max_pages: int = 50
    max_consecutive_empty: int = 2
    timeout_seconds: int = 30
    output_dir: str = '.'
    calendar_filename: str = 'pays-bigouden.ics'
    json_filename: str = 'events.json'
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        """
        Load settings from environment variables.

        Sitemap mode tightens the span limit to 31 days and enables the
        title keyword check unless overridden.

        Raises:
            ValueError: If a value is malformed or the mode is unknown
        """
        env = os.environ if environ is None else environ
        mode = env.get('SOURCE_MODE', PAGINATED_MODE).strip().lower()
        if mode not in (SITEMAP_MODE, PAGINATED_MODE):
            raise ValueError(f"Unknown SOURCE_MODE: {mode}")

        sitemap = mode == SITEMAP_MODE
        base_url = env.get('BASE_URL', BASE_URL).rstrip('/')
        keywords = ','.join(DEFAULT_TITLE_KEYWORDS) if sitemap else ''

        return cls(
            source_mode=mode,
            base_url=base_url,
            agenda_url=env.get('AGENDA_URL', f"{base_url}/a-voir-a-faire/agenda"),
            sitemap_urls=tuple(split_list(env.get('SITEMAP_URLS', f"{base_url}/sitemap.xml"))),
            detail_path_pattern=env.get('DETAIL_PATH_PATTERN', r'/fiche/'),
            calendar_name=env.get('CALENDAR_NAME', 'Agenda Pays Bigouden'),
            calendar_description=env.get(
                'CALENDAR_DESCRIPTION', 'Événements du Pays Bigouden - Bretagne'
            ),
            timezone=env.get('CALENDAR_TIMEZONE', 'Europe/Paris'),
            namespace=env.get('FEED_NAMESPACE', DEFAULT_NAMESPACE),
            default_duration_hours=float(env.get('DEFAULT_DURATION_HOURS', '2')),
            excluded_types=tuple(
                split_list(env.get('EXCLUDED_TYPES', ','.join(DEFAULT_EXCLUDED_TYPES)))
            ),
            title_keywords=tuple(split_list(env.get('TITLE_KEYWORDS', keywords))),
            max_occurrences=int(env.get('MAX_OCCURRENCES', '20')),
            max_span_days=int(env.get('MAX_SPAN_DAYS', '31' if sitemap else '60')),
            fetch_concurrency=int(env.get('FETCH_CONCURRENCY', '10')),
            batch_delay_seconds=float(env.get('BATCH_DELAY_SECONDS', '0.5')),
            max_pages=int(env.get('MAX_PAGES', '50')),
            max_consecutive_empty=int(env.get('MAX_CONSECUTIVE_EMPTY', '2')),
            timeout_seconds=int(env.get('TIMEOUT_SECONDS', '30')),
            output_dir=env.get('OUTPUT_DIR', '.'),
            calendar_filename=env.get('CALENDAR_FILENAME', 'pays-bigouden.ics'),
            json_filename=env.get('JSON_FILENAME', 'events.json'),
            log_level=env.get('LOG_LEVEL', 'INFO')
        )

    def source(self) -> Source:
        """Return the retrieval strategy for the configured mode."""
        if self.source_mode == SITEMAP_MODE:
            return SitemapSource(
                sitemap_urls=self.sitemap_urls,
                path_pattern=self.detail_path_pattern
            )
        return PaginatedSource(
            agenda_url=self.agenda_url,
            max_pages=self.max_pages,
            max_consecutive_empty=self.max_consecutive_empty
        )
