"""HTTP reachability checks with browser-like requests and dataset scoring."""

from __future__ import annotations

import random
import threading
import time
import urllib.parse
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

import requests

DEFAULT_TIMEOUT = 15.0
MAX_REDIRECTS = 10
DEFAULT_BATCH_CONCURRENCY = 5

_USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:121.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.1 Safari/605.1.15",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.0.0",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
)

_INTERESTING_HEADERS = (
    "Content-Disposition",
    "Content-Encoding",
    "Content-Language",
    "Access-Control-Allow-Origin",
    "X-Powered-By",
    "X-Frame-Options",
    "X-Content-Type-Options",
    "Strict-Transport-Security",
    "Location",
    "Refresh",
    "Retry-After",
)

# Checked in order; the first content type that matches wins.
_CONTENT_TYPE_SCORES = (
    ("text/csv", 0.9),
    ("application/json", 0.7),
    ("application/xml", 0.6),
    ("application/zip", 0.8),
    ("application/x-tar", 0.8),
    ("application/gzip", 0.7),
    ("application/octet-stream", 0.5),
    ("application/vnd.ms-excel", 0.8),
    ("application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", 0.8),
    ("text/html", 0.3),
)

_DATASET_URL_PATTERNS = (
    "download", "data", "dataset", "file", "archive", "export",
    ".csv", ".tsv", ".json", ".xml", ".zip", ".tar", ".gz",
    ".xlsx", ".xls", ".h5", ".hdf5", ".parquet", ".feather",
)

_DATASET_DOMAINS = (
    "zenodo.org", "figshare.com", "dryad.org", "osf.io",
    "data.mendeley.com", "kaggle.com", "dataverse.org",
    "ncbi.nlm.nih.gov", "ebi.ac.uk", "github.com",
)

_REQUEST_ERRORS = (requests.RequestException, ValueError)


@dataclass
class HTTPValidationResult:
    """Detailed outcome of an HTTP check of one URL."""

    url: str
    headers: dict[str, str] = field(default_factory=dict)
    error: str = ""
    final_url: str = ""
    request_method: str = ""
    content_type: str = ""
    last_modified: str = ""
    etag: str = ""
    server: str = ""
    redirect_chain: list[str] = field(default_factory=list)
    response_time: float = 0.0
    content_length: int = 0
    dataset_score: float = 0.0
    status_code: int = 0
    accessible: bool = False
    is_dataset: bool = False


def random_user_agent() -> str:
    """Return one of a set of realistic browser user agents."""
    return random.choice(_USER_AGENTS)


def is_healthy_response(status_code: int) -> bool:
    """Return True for 2xx and 3xx status codes."""
    return 200 <= status_code < 400


def content_type_category(content_type: str) -> str:
    """Classify a content type into a broad category."""
    lowered = content_type.lower()
    if "csv" in lowered or "json" in lowered or "xml" in lowered:
        return "structured_data"
    if "zip" in lowered or "tar" in lowered or "gzip" in lowered:
        return "archive"
    if "excel" in lowered or "spreadsheet" in lowered:
        return "spreadsheet"
    if "pdf" in lowered:
        return "document"
    if "html" in lowered:
        return "webpage"
    if "octet-stream" in lowered:
        return "binary"
    return "unknown"


def analyze_dataset_likelihood(result: HTTPValidationResult) -> HTTPValidationResult:
    """Score how likely the checked URL points to a dataset; updates and returns result."""
    score = 0.0

    content_type = result.content_type.lower()
    for marker, weight in _CONTENT_TYPE_SCORES:
        if marker in content_type:
            score += weight
            break

    url_lower = result.url.lower()
    score += 0.2 * sum(1 for pattern in _DATASET_URL_PATTERNS if pattern in url_lower)

    if any(domain in url_lower for domain in _DATASET_DOMAINS):
        score += 0.4

    disposition = result.headers.get("content-disposition")
    if disposition is not None and "attachment" in disposition.lower():
        score += 0.3

    if result.content_length > 100 * 1024 * 1024:
        score += 0.3
    elif result.content_length > 10 * 1024 * 1024:
        score += 0.2
    elif result.content_length > 1024 * 1024:
        score += 0.1

    score = min(score, 1.0)
    result.dataset_score = score
    result.is_dataset = score >= 0.5
    return result


def _browser_headers(user_agent: str) -> dict[str, str]:
    return {
        "User-Agent": user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,"
        "image/avif,image/webp,image/apng,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
        "Accept-Encoding": "gzip, deflate, br",
        "DNT": "1",
        "Connection": "keep-alive",
        "Upgrade-Insecure-Requests": "1",
        "Sec-Fetch-Dest": "document",
        "Sec-Fetch-Mode": "navigate",
        "Sec-Fetch-Site": "none",
        "Sec-Fetch-User": "?1",
        "Cache-Control": "max-age=0",
    }


def _extract_headers(response: requests.Response, result: HTTPValidationResult) -> None:
    headers = response.headers
    result.content_type = headers.get("Content-Type", "")
    result.last_modified = headers.get("Last-Modified", "")
    result.etag = headers.get("ETag", "")
    result.server = headers.get("Server", "")

    raw_length = headers.get("Content-Length", "")
    if raw_length:
        try:
            result.content_length = int(raw_length)
        except ValueError:
            pass

    for name in _INTERESTING_HEADERS:
        value = headers.get(name)
        if value:
            result.headers[name.lower()] = value


class HTTPValidator:
    """Checks URLs with HEAD first, falling back to ranged and plain GET requests."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.timeout = float(timeout) if timeout else DEFAULT_TIMEOUT
        self.user_agent = random_user_agent()
        self._local = threading.local()

    def _session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.max_redirects = MAX_REDIRECTS
            session.headers.update(_browser_headers(self.user_agent))
            self._local.session = session
        return session

    def _perform(self, method: str, url: str, *, ranged: bool = False) -> HTTPValidationResult:
        extra = {"Range": "bytes=0-1023"} if ranged else None
        with self._session().request(
            method,
            url,
            headers=extra,
            timeout=self.timeout,
            allow_redirects=True,
            stream=True,
        ) as response:
            result = HTTPValidationResult(url=url, status_code=response.status_code)
            if response.history:
                result.final_url = response.url
                if not ranged:
                    result.redirect_chain = [url, response.url]
            else:
                result.final_url = url
            _extract_headers(response, result)
        return result

    def _finish(self, result: HTTPValidationResult, method: str, start: float) -> HTTPValidationResult:
        result.request_method = method
        result.response_time = time.monotonic() - start
        result.accessible = is_healthy_response(result.status_code)
        return analyze_dataset_likelihood(result)

    def validate_url(self, target_url: str) -> HTTPValidationResult:
        """Check a URL; failures are reported in the result's error field."""
        start = time.monotonic()
        try:
            url = urllib.parse.urlsplit(target_url).geturl()
        except ValueError as exc:
            return HTTPValidationResult(
                url=target_url,
                error=f"invalid URL: {exc}",
                response_time=time.monotonic() - start,
            )

        head_error: Exception | None = None
        try:
            head_result = self._perform("HEAD", url)
        except _REQUEST_ERRORS as exc:
            head_error = exc
        else:
            if head_result.status_code < 400:
                return self._finish(head_result, "HEAD", start)

        try:
            range_result = self._perform("GET", url, ranged=True)
        except _REQUEST_ERRORS:
            pass
        else:
            return self._finish(range_result, "GET (Range)", start)

        try:
            get_result = self._perform("GET", url)
        except _REQUEST_ERRORS as exc:
            return HTTPValidationResult(
                url=target_url,
                error=f"all requests failed - HEAD: {head_error}, GET: {exc}",
                response_time=time.monotonic() - start,
            )
        return self._finish(get_result, "GET", start)

    def validate_batch(
        self, urls: list[str], max_concurrency: int = DEFAULT_BATCH_CONCURRENCY
    ) -> dict[str, HTTPValidationResult]:
        """Check many URLs concurrently, returning results keyed by URL."""
        if max_concurrency <= 0:
            max_concurrency = DEFAULT_BATCH_CONCURRENCY
        if not urls:
            return {}
        with ThreadPoolExecutor(max_workers=max_concurrency) as pool:
            return dict(zip(urls, pool.map(self.validate_url, urls)))