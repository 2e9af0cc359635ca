"""QuickBooks Online Accounting API client for financial reports.

Endpoints used (bearer token + realm id, obtained outside this package):
  - v3/company/{realm}/reports/ProfitAndLoss?start_date=&end_date=
  - v3/company/{realm}/reports/BalanceSheet?start_date=&end_date=
  - v3/company/{realm}/companyinfo/{realm}

QBO allows 10 concurrent requests per realm and answers 429 beyond that.
The client paces itself below the ceiling but does NOT retry a 429: it
raises QBORateLimitError carrying the server's Retry-After so the caller
decides how to back off (see retry.py). 5xx and connection errors are
retried here with a short exponential backoff.

Successful report responses are cached in memory for a few minutes.
"""

from __future__ import annotations

import functools
import logging
import math
import threading
import time
from collections.abc import Callable
from datetime import date
from typing import Any
from urllib.parse import quote

import requests

from qbo_metrics.models import Organisation, ReportKind
from qbo_metrics.periods import coerce_date

log = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════
#  Constants
# ═══════════════════════════════════════════════════════════════════════════

SANDBOX_BASE = "https://sandbox-quickbooks.api.intuit.com"
PRODUCTION_BASE = "https://quickbooks.api.intuit.com"
REPORT_URL = "{base}/v3/company/{realm}/reports/{kind}"
COMPANY_INFO_URL = "{base}/v3/company/{realm}/companyinfo/{realm}"

DEFAULT_MINOR_VERSION = 65
MAX_REQUESTS_PER_SECOND = 8.0
REPORT_CACHE_TTL = 120  # 2 minutes; current-month figures move during the day


def base_url_for(environment: str) -> str:
    """Sandbox for "sandbox", production for anything else."""
    return SANDBOX_BASE if environment.strip().lower() == "sandbox" else PRODUCTION_BASE


# ═══════════════════════════════════════════════════════════════════════════
#  Errors
# ═══════════════════════════════════════════════════════════════════════════

class QBORateLimitError(requests.exceptions.HTTPError):
    """HTTP 429 from QBO. ``retry_after`` is in seconds, None if not sent."""

    def __init__(self, *args: Any, retry_after: float | None = None, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.retry_after = retry_after


def parse_retry_after(value: str | None) -> float | None:
    """Parse a Retry-After header given in seconds. HTTP-date forms are ignored."""
    if value is None:
        return None
    try:
        seconds = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(seconds) or seconds < 0:
        return None
    return seconds


# ═══════════════════════════════════════════════════════════════════════════
#  Cache helper
# ═══════════════════════════════════════════════════════════════════════════

class _CacheEntry:
    """Simple timestamped cache entry."""
    __slots__ = ("data", "timestamp")

    def __init__(self, data: Any):
        self.data = data
        self.timestamp = time.time()

    def expired(self, ttl: float) -> bool:
        return (time.time() - self.timestamp) > ttl


# ═══════════════════════════════════════════════════════════════════════════
#  QBO client
# ═══════════════════════════════════════════════════════════════════════════

class QBOClient:
    """HTTP client for QBO report endpoints.

    Thread-safe pacing between requests and a short-lived report cache.
    """

    def __init__(
        self,
        access_token: str,
        realm_id: str,
        *,
        environment: str = "sandbox",
        minor_version: int = DEFAULT_MINOR_VERSION,
        max_requests_per_second: float = MAX_REQUESTS_PER_SECOND,
        cache_ttl: float = REPORT_CACHE_TTL,
        session: requests.Session | None = None,
    ):
        self.realm_id = realm_id
        self.base_url = base_url_for(environment)
        self.minor_version = minor_version
        self.cache_ttl = cache_ttl
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }
        self._session = session or requests.Session()
        # Rate limiter state
        self._min_interval = 1.0 / max_requests_per_second if max_requests_per_second > 0 else 0.0
        self._last_request_time = 0.0
        self._rate_lock = threading.Lock()
        # Cache
        self._report_cache: dict[tuple[str, str, str], _CacheEntry] = {}
        self._cache_lock = threading.Lock()

    # ── Paced HTTP request ────────────────────────────────────────────

    def _request(
        self,
        url: str,
        params: dict | None = None,
        timeout: int = 30,
        retries: int = 2,
    ) -> requests.Response:
        """GET with pacing and retry on 5xx/connection errors.

        A 429 is raised immediately as QBORateLimitError; any other
        non-2xx status raises requests.HTTPError.
        """
        last_exc: Exception | None = None
        for attempt in range(1 + retries):
            with self._rate_lock:
                elapsed = time.time() - self._last_request_time
                if elapsed < self._min_interval:
                    time.sleep(self._min_interval - elapsed)
                self._last_request_time = time.time()

            try:
                resp = self._session.get(url, headers=self.headers, params=params, timeout=timeout)
            except requests.exceptions.ConnectionError as exc:
                last_exc = exc
                if attempt < retries:
                    wait = min(2 ** attempt, 8)
                    log.warning("Connection error, retrying in %ds: %s", wait, exc)
                    time.sleep(wait)
                    continue
                raise
            except requests.exceptions.Timeout as exc:
                last_exc = exc
                if attempt < retries:
                    log.warning("Request timeout, retrying: %s", exc)
                    continue
                raise

            if resp.status_code == 429:
                retry_after = parse_retry_after(resp.headers.get("Retry-After"))
                log.warning("QBO rate-limited (429), retry-after=%s", retry_after)
                raise QBORateLimitError(
                    f"429 Too Many Requests for url: {url}",
                    retry_after=retry_after,
                    response=resp,
                )
            if resp.status_code in (500, 502, 503, 504) and attempt < retries:
                wait = min(2 ** attempt, 8)
                log.warning("QBO %d error, retrying in %ds…", resp.status_code, wait)
                time.sleep(wait)
                continue
            resp.raise_for_status()
            return resp

        if last_exc:
            raise last_exc
        raise requests.exceptions.ConnectionError(f"Failed after {retries + 1} attempts: {url}")

    def _request_json(self, url: str, params: dict | None = None, timeout: int = 30) -> dict:
        """GET request that returns parsed JSON."""
        params = {**(params or {}), "minorversion": self.minor_version}
        data = self._request(url, params=params, timeout=timeout).json()
        return data if isinstance(data, dict) else {}

    # ── Reports ──────────────────────────────────────────────────────

    def fetch_report(
        self,
        report_kind: ReportKind | str,
        start_date: date | str,
        end_date: date | str,
    ) -> dict:
        """Fetch a ProfitAndLoss or BalanceSheet report for an inclusive date range.

        Raises QBORateLimitError on 429 and requests exceptions on other
        failures; the report tree is returned as-is.
        """
        kind = ReportKind(report_kind).value
        start = coerce_date(start_date).isoformat()
        end = coerce_date(end_date).isoformat()
        key = (kind, start, end)

        with self._cache_lock:
            cached = self._report_cache.get(key)
        if cached and not cached.expired(self.cache_ttl):
            return cached.data

        url = REPORT_URL.format(base=self.base_url, realm=quote(self.realm_id, safe=""), kind=kind)
        log.info("Fetching %s %s..%s", kind, start, end)
        report = self._request_json(url, params={"start_date": start, "end_date": end})
        with self._cache_lock:
            self._evict_expired()
            self._report_cache[key] = _CacheEntry(report)
        return report

    def _evict_expired(self) -> None:
        """Drop stale reports; caller holds _cache_lock."""
        stale = [k for k, entry in self._report_cache.items() if entry.expired(self.cache_ttl)]
        for k in stale:
            del self._report_cache[k]

    def report_fetcher(self, report_kind: ReportKind | str) -> Callable[[str, str], dict]:
        """Bind a report kind, leaving (from_date, to_date) for the caller."""
        return functools.partial(self.fetch_report, report_kind)

    def get_company_info(self) -> Organisation:
        realm = quote(self.realm_id, safe="")
        data = self._request_json(COMPANY_INFO_URL.format(base=self.base_url, realm=realm))
        info = data.get("CompanyInfo") or {}
        return Organisation(
            name=info.get("CompanyName") or "Unknown",
            short_code=info.get("LegalName") or "",
        )

    def clear_cache(self) -> None:
        with self._cache_lock:
            self._report_cache.clear()


# ═══════════════════════════════════════════════════════════════════════════
#  Singleton accessor
# ═══════════════════════════════════════════════════════════════════════════

_client: QBOClient | None = None


def get_qbo_client() -> QBOClient:
    """Get or create the shared QBOClient singleton from config."""
    global _client
    if _client is None:
        from qbo_metrics.config import get_config
        config = get_config()
        if not config.qbo_access_token or not config.qbo_realm_id:
            raise ValueError(
                "QBO_ACCESS_TOKEN and QBO_REALM_ID must be set. "
                "Add them to your .env file to query QuickBooks."
            )
        _client = QBOClient(
            config.qbo_access_token,
            config.qbo_realm_id,
            environment=config.qbo_environment,
            minor_version=config.qbo_minor_version,
            max_requests_per_second=config.qbo_max_requests_per_second,
            cache_ttl=config.report_cache_ttl,
        )
    return _client
