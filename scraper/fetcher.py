"""HTTP transport for agenda, sitemap and detail pages."""
import logging
import threading
from typing import Dict, Optional

import requests

logger = logging.getLogger(__name__)

USER_AGENT = 'Mozilla/5.0 (compatible; PaysBigoudenCalendar/1.0)'


class PageFetcher:
    """Fetches page bodies; a failed request yields None."""

    def __init__(self, timeout: int = 30, user_agent: str = USER_AGENT):
        """
        Initialize the fetcher.

        Each thread gets its own requests session, since sessions are
        not safe to share between worker threads.

        Args:
            timeout: HTTP request timeout in seconds (default: 30)
            user_agent: User-Agent header sent with each request
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self._local = threading.local()

    @property
    def session(self) -> requests.Session:
        """Session of the calling thread."""
        session = getattr(self._local, 'session', None)
        if session is None:
            session = requests.Session()
            session.headers.update({'User-Agent': self.user_agent})
            self._local.session = session
        return session

    def fetch_text(self, url: str, params: Optional[Dict[str, str]] = None) -> Optional[str]:
        """
        Fetch a page as text.

        Args:
            url: Page URL
            params: Optional query parameters

        Returns:
            Response body, or None on network error or non-success status
        """
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.text
        except requests.RequestException as e:
            logger.warning(f"Failed to fetch {url} (params={params}): {e}")
            return None
