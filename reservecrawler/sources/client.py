"""
HTTP client for the German operating reserve data portals.

This module fetches raw CSV responses from the TransnetBW needs archive and
the regelleistung.net data and tender pages, with retry logic and response
validation. Parsing of the responses lives in sources.parsers.
"""

from datetime import date
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..config import (
    NEEDS_BASE_URL, CALLS_URL, AUCTIONS_URL,
    REQUEST_TIMEOUT, MAX_RETRIES, BACKOFF_FACTOR, USER_AGENT
)
from ..exceptions import SourceUnavailableError


class ReserveDataClient:
    """Client for the needs archive and the regelleistung.net portal.

    Features:
    - Automatic retry with exponential backoff
    - Encoding detection (the portals mix UTF-8 and Latin-1)
    - Rejection of HTML error pages served with status 200
    """

    def __init__(
        self,
        needs_base_url: Optional[str] = None,
        calls_url: Optional[str] = None,
        auctions_url: Optional[str] = None,
        timeout: Optional[int] = None,
        max_retries: Optional[int] = None,
        backoff_factor: Optional[float] = None
    ):
        """
        Initialize client with retry logic.

        Args:
            needs_base_url: Base URL of the monthly needs CSV files (defaults to env var)
            calls_url: URL of the call data download (defaults to env var)
            auctions_url: URL of the tender results download (defaults to env var)
            timeout: Request timeout in seconds
            max_retries: Maximum number of retry attempts
            backoff_factor: Backoff factor for exponential delay
        """
        self.needs_base_url = (needs_base_url or NEEDS_BASE_URL).rstrip('/')
        self.calls_url = calls_url or CALLS_URL
        self.auctions_url = auctions_url or AUCTIONS_URL
        self.timeout = timeout or REQUEST_TIMEOUT

        self.session = requests.Session()
        self.session.headers.update({
            'User-Agent': USER_AGENT,
            'Accept': 'text/csv,text/plain,*/*;q=0.8',
            'Accept-Language': 'de,en;q=0.9',
        })

        # The portals answer form posts idempotently, so POST is retried too
        retry_strategy = Retry(
            total=MAX_RETRIES if max_retries is None else max_retries,
            backoff_factor=BACKOFF_FACTOR if backoff_factor is None else backoff_factor,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET", "POST"],
            raise_on_status=False
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)

    @staticmethod
    def _format_date(day: date) -> str:
        """Format a date the way the portal forms expect it (DD.MM.YYYY)."""
        return day.strftime('%d.%m.%Y')

    @staticmethod
    def _decode(content: bytes) -> str:
        """Decode a response body, falling back to Latin-1."""
        try:
            return content.decode('utf-8-sig')
        except UnicodeDecodeError:
            return content.decode('latin-1')

    def _request(self, method: str, url: str, **kwargs) -> str:
        """
        Send a request and return the CSV body.

        Raises:
            SourceUnavailableError: On HTTP failure or a non-CSV response
        """
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.RequestException as e:
            raise SourceUnavailableError(f"Failed to fetch {url} after retries: {e}") from e

        text = self._decode(response.content)

        content_type = response.headers.get('Content-Type', '').lower()
        if 'html' in content_type or ';' not in text[:2000]:
            snippet = text[:200].replace('\n', ' ')
            raise SourceUnavailableError(
                f"Response from {url} doesn't appear to be CSV "
                f"(content-type={content_type}, body[:200]={snippet})"
            )

        return text

    def fetch_needs_month(self, year: int, month: int) -> str:
        """
        Fetch the 4-second needs file of one month.

        Args:
            year: Year
            month: Month (1-12)

        Returns:
            str: CSV content
        """
        url = f"{self.needs_base_url}/{year}-{month:02d}.csv"
        return self._request("GET", url)

    def fetch_calls(self, start_date: date, end_date: date, uenb: str, reserve_type: str) -> str:
        """
        Fetch 15-minute operating reserve calls.

        Args:
            start_date: First day
            end_date: Last day
            uenb: Operator code (see constants.UENB_CODES)
            reserve_type: Data type (see constants.CALL_RESERVE_TYPES)

        Returns:
            str: CSV content
        """
        form = {
            'from': self._format_date(start_date),
            'to': self._format_date(end_date),
            'tsoId': uenb,
            'dataType': reserve_type,
            'download': 'true',
        }
        return self._request("POST", self.calls_url, data=form)

    def fetch_auctions(self, week_start: date, week_end: date, product: str) -> str:
        """
        Fetch the tender results of one auction week.

        Args:
            week_start: Monday of the auction week
            week_end: Sunday of the auction week
            product: Tender product code (see constants.AUCTION_PRODUCTS)

        Returns:
            str: CSV content
        """
        form = {
            'from': self._format_date(week_start),
            'to': self._format_date(week_end),
            'productId': product,
            'download': 'true',
        }
        return self._request("POST", self.auctions_url, data=form)
