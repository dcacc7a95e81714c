# focos/services/firms_client.py

import logging
import time
from typing import Dict, Optional, Tuple

import httpx

from ..config import Settings
from .firms_parser import ParseResult, has_coordinate_columns, parse_csv

log = logging.getLogger(__name__)


class FirmsError(Exception):
    """Failure talking to NASA FIRMS. `code` is NO_API_KEY or UPSTREAM_ERROR."""

    NO_API_KEY = "NO_API_KEY"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"

    def __init__(self, message: str, code: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.code = code
        self.status_code = status_code


class FirmsClient:
    """
    Fetches hotspot CSV for the configured bbox from the FIRMS area API:

        {base}/{MAP_KEY}/{source}/{west},{south},{east},{north}/{days}

    Responses are cached in-process for `settings.firms_cache_ttl` seconds
    (FIRMS rate-limits MAP_KEYs per 10 minute window).
    """

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.transport = transport
        self._cache: Dict[str, Tuple[float, str]] = {}

    def build_url(self, days: int) -> str:
        west, south, east, north = self.settings.bbox
        return (
            f"{self.settings.firms_base_url}/{self.settings.firms_map_key}/"
            f"{self.settings.firms_source}/{west},{south},{east},{north}/{days}"
        )

    def _redacted(self, url: str) -> str:
        return url.replace(self.settings.firms_map_key or "", "***")

    def _cached(self, url: str) -> Optional[str]:
        hit = self._cache.get(url)
        if hit is None:
            return None
        expires, text = hit
        if time.monotonic() >= expires:
            del self._cache[url]
            return None
        return text

    def clear_cache(self) -> None:
        self._cache.clear()

    async def fetch_csv(self, days: Optional[int] = None) -> str:
        if not self.settings.firms_map_key:
            raise FirmsError("NASA_FIRMS_MAP_KEY not configured", FirmsError.NO_API_KEY)

        days = days or self.settings.fetch_days
        url = self.build_url(days)

        if self.settings.firms_cache_ttl > 0:
            cached = self._cached(url)
            if cached is not None:
                log.info("[FIRMS] Using cached response for %s", self._redacted(url))
                return cached

        log.info("[FIRMS] GET %s", self._redacted(url))
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.http_timeout,
                transport=self.transport,
            ) as client:
                resp = await client.get(url, headers={"Accept": "text/csv"})
        except httpx.HTTPError as e:
            raise FirmsError(f"FIRMS request failed: {e}", FirmsError.UPSTREAM_ERROR) from e

        if resp.is_error:
            log.error(
                "[FIRMS] HTTP error %s: %s", resp.status_code, resp.text[:200]
            )
            raise FirmsError(
                f"FIRMS API error: {resp.status_code}",
                FirmsError.UPSTREAM_ERROR,
                status_code=resp.status_code,
            )

        text = resp.text
        first_line = text.strip().split("\n", 1)[0]
        if first_line and not has_coordinate_columns(first_line):
            # FIRMS answers a bad key / exceeded quota with 200 and a plain message
            raise FirmsError(
                f"FIRMS API returned a non-CSV body: {first_line[:200]}",
                FirmsError.UPSTREAM_ERROR,
                status_code=resp.status_code,
            )

        if self.settings.firms_cache_ttl > 0:
            self._cache[url] = (time.monotonic() + self.settings.firms_cache_ttl, text)
        return text

    async def fetch_hotspots(self, days: Optional[int] = None) -> ParseResult:
        csv_text = await self.fetch_csv(days)
        return parse_csv(csv_text, bbox=self.settings.bbox)
