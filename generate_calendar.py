"""Command line entry point for the Pays Bigouden calendar feed."""
import json
import logging
import sys
import time
from datetime import datetime, timezone
from typing import Optional

from config import Settings
from processor.date_resolver import DateResolver
from processor.event_filter import EventFilter
from processor.event_processor import EventProcessor
from processor.models import FeedResult
from scraper.collector import EventCollector
from scraper.fetcher import PageFetcher
from storage.feed_writer import CalendarWriter, FeedWriter


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def run(settings: Settings, now: Optional[datetime] = None) -> FeedResult:
    """
    Collect, filter and resolve events, then write the calendar and JSON dump.

    Args:
        settings: Feed settings
        now: Current instant (defaults to the wall clock)

    Returns:
        FeedResult with run statistics
    """
    logger = logging.getLogger(__name__)
    now = now or datetime.now(timezone.utc)

    fetcher = PageFetcher(timeout=settings.timeout_seconds)
    collector = EventCollector(
        fetcher,
        concurrency=settings.fetch_concurrency,
        batch_delay=settings.batch_delay_seconds
    )
    processor = EventProcessor(
        EventFilter(
            excluded_types=settings.excluded_types,
            max_occurrences=settings.max_occurrences,
            max_span_days=settings.max_span_days,
            title_keywords=settings.title_keywords,
            timezone_name=settings.timezone
        ),
        DateResolver(settings.timezone, settings.default_duration_hours),
        namespace=settings.namespace
    )
    calendar_writer = CalendarWriter(
        name=settings.calendar_name,
        description=settings.calendar_description,
        timezone_name=settings.timezone,
        url=settings.agenda_url
    )
    feed_writer = FeedWriter(
        settings.output_dir,
        calendar_filename=settings.calendar_filename,
        json_filename=settings.json_filename
    )

    logger.info(f"Collecting events ({settings.source_mode} mode)")
    events = collector.collect(settings.source())

    result = processor.process_events(events, now)

    calendar_path = feed_writer.write_calendar(calendar_writer.to_ical(result.entries, now))
    json_path = feed_writer.write_events_json(result.events)

    return FeedResult(
        events_collected=len(events),
        events_kept=len(result.events),
        entries_written=len(result.entries),
        calendar_path=calendar_path,
        json_path=json_path
    )


def main() -> int:
    """Run the feed generation; returns the process exit status."""
    start_time = time.time()
    try:
        settings = Settings.from_env()
        setup_logging(settings.log_level)
    except ValueError as e:
        setup_logging()
        logging.getLogger(__name__).error(f"Invalid configuration: {e}")
        return 1

    logger = logging.getLogger(__name__)

    try:
        result = run(settings)
    except Exception as e:
        duration = time.time() - start_time
        logger.error(
            f"Calendar generation failed: {str(e)}",
            extra={
                'duration_seconds': round(duration, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )
        return 1

    duration = time.time() - start_time
    logger.info(
        f"Calendar generated: {result.entries_written} occurrences "
        f"from {result.events_kept}/{result.events_collected} events "
        f"in {round(duration, 2)}s ({result.calendar_path})"
    )
    return 0


if __name__ == '__main__':
    sys.exit(main())
