"""Text and URL clean-up helpers for links pulled out of document text."""

from __future__ import annotations

import re
import urllib.parse
from collections.abc import Iterable

from hapiq.patterns import default_cleaners
from hapiq.types import LinkType


def _rx(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, re.ASCII)


_ARXIV_ID = _rx(r"\d{4}\.\d{4,5}(?:v\d+)?")
_WHITESPACE = _rx(r"\s+")

_STOP_PATTERNS = (
    "Correspondence", "Peerreview", "Naturecommunications", "Publishersnote",
    "Springernature", "Reprintsandpermission", "Acknowledgments", "Authorcontributions",
    "Competinginterests", "Supplementaryinformation", "Extendeddata",
)

_SUSPICIOUS_PATTERNS = tuple(pattern.lower() for pattern in _STOP_PATTERNS)

_CORRUPTION_PATTERNS = tuple(
    _rx(pattern)
    for pattern in (
        r"\.\s*[1-9]\s*\Z",
        r"\s+[1-9]\s*\Z",
        r"[A-Z][a-z]+dataset.*\Z",
        r"[A-Z][a-z]+[A-Z][a-z].*\Z",
        r"\.[A-Z][a-z]+.*\Z",
    )
)

_BIO_PREFIXES = (
    "SRR", "ERR", "DRR", "SRX", "ERX", "SRS", "ERS", "SRP", "ERP",
    "PRJNA", "PRJEB", "PRJDB", "PRJCA", "SAMN", "SAME", "SAMD", "SAMC",
    "GSE", "GSM", "GPL", "GDS", "CRR", "CRX", "CRA", "CHEMBL",
    "NC_", "NM_", "NP_", "NR_", "NT_", "NW_", "NZ_", "XM_", "XP_", "XR_",
)

_PMID = _rx(r"[+-]?\d+")
_PDB_ID = _rx(r"[1-9][a-zA-Z0-9]{3}")
_UNIPROT_ID = _rx(r"[A-NR-Z][0-9][A-Z][A-Z0-9]{2}[0-9]|[OPQ][0-9][A-Z0-9]{3}[0-9]")
_BAD_HOST_CHARS = set(' \t\r\n\f\v<>"{}|\\^`')

_REPO_PATTERN = _rx(
    r"(https?://[^\s]*(?:zenodo|dryad|osf|mendeley)\.(?:org|com)/[^\s]*?/?\s*)\s*(\w{6,})"
)
_FIGSHARE_WITH_ID = _rx(r"(https?://(?:www\.)?figshare\.com/[a-zA-Z0-9/_.-]*?/?\s*\d{6,8})")
_SPACED_ID = _rx(r"\s+(\d{6,8})")

_VERSION_PATTERNS = tuple(
    _rx(pattern)
    for pattern in (
        r"\.v\d+.*\Z",
        r"\.\d+\.\d+[A-Z][a-z].*\Z",
        r"\.\d+[A-Z][a-z].*\Z",
        r"\.[\w]+[A-Z][a-z].*\Z",
    )
)

_TOKENIZATION_PATTERNS = tuple(
    _rx(pattern)
    for pattern in (
        r"([a-z]{4,})([A-Z][a-z])",
        r"([a-z]{3,})(\d{4,})",
        r"(\d{4,})([a-z]{3,})",
        r"([.!?])([A-Z])",
        r"(https?://[^\s]+?)([A-Z][a-z])",
        r"([a-z])(https?://)",
        r"(doi\.org/[^\s]+?)([A-Z][a-z])",
        r"([0-9]/[0-9\-]+)([A-Z])",
        r"([a-z])(doi\.org)",
        r"(\d{4,})([A-Z][a-z])",
        r"(figshare\.com/[^/\s]+/[^/\s]+)([A-Z][a-z])",
        r"(zenodo\.org/[^/\s]+/[^/\s]+)([A-Z][a-z])",
        r"(\.\d+)([A-Z][a-z])",
    )
)

FIGSHARE_CONTEXT_WINDOW = 200


def clean_text(text: str, cleaners: Iterable[re.Pattern[str]] | None = None) -> str:
    """Replace every cleaner match with a space and trim the result."""
    if cleaners is None:
        cleaners = default_cleaners()
    cleaned = text
    for cleaner in cleaners:
        cleaned = cleaner.sub(" ", cleaned)
    return cleaned.strip()


def clean_url(raw_url: str) -> str:
    """Strip text that PDF extraction tends to glue onto the end of URLs."""
    lowered = raw_url.lower()
    cut = len(raw_url)
    for pattern in _STOP_PATTERNS:
        index = lowered.find(pattern.lower())
        if 0 < index < cut and "://" in raw_url[:index]:
            cut = index
    url = raw_url[:cut].strip()

    if url.startswith("http"):
        url = url.rstrip(".,:;!?)]}")
    else:
        url = url.rstrip(",:;!?)]}")

    if not _ARXIV_ID.fullmatch(url):
        for pattern in _CORRUPTION_PATTERNS:
            url = pattern.sub("", url)

    if url.endswith("/10.") or url.endswith("/10"):
        url = url[: url.rfind("/10")]

    return url.strip()


def _is_valid_identifier(raw_url: str) -> bool:
    if "10." in raw_url and "/" in raw_url:
        return True
    upper = raw_url.upper()
    if any(upper.startswith(prefix) for prefix in _BIO_PREFIXES):
        return True
    if 7 <= len(raw_url) <= 8 and _PMID.fullmatch(raw_url):
        return True
    if _ARXIV_ID.fullmatch(raw_url):
        return True
    if len(raw_url) == 4 and _PDB_ID.fullmatch(raw_url):
        return True
    return bool(_UNIPROT_ID.fullmatch(raw_url))


def is_valid_url(raw_url: str) -> bool:
    """Return True if the string looks like a usable URL or known identifier."""
    if len(raw_url) > 500:
        return False
    if not raw_url.startswith(("http://", "https://", "ftp://")):
        return _is_valid_identifier(raw_url)

    try:
        parsed = urllib.parse.urlsplit(raw_url)
        parsed.port
    except ValueError:
        return False

    host = parsed.netloc.rpartition("@")[2]
    if not host or any(char in _BAD_HOST_CHARS or ord(char) < 0x20 for char in host):
        return False

    lowered = raw_url.lower()
    if any(pattern in lowered for pattern in _SUSPICIOUS_PATTERNS):
        return False
    if lowered.count("http://") > 1 or lowered.count("https://") > 1:
        return False
    return len(urllib.parse.unquote(parsed.path)) <= 200


def normalize_candidate(text: str, link_type: LinkType) -> str:
    """Turn a raw match into a URL-like form suited to its link type."""
    text = text.strip()
    if link_type == LinkType.DOI:
        if not text.lower().startswith("http"):
            return "https://doi.org/" + text
        return text
    if link_type == LinkType.URL:
        if _ARXIV_ID.fullmatch(text):
            return "https://arxiv.org/abs/" + text
        return text.rstrip(".,:;!?)]}")
    return text


def extract_context(text: str, match: str, length: int) -> str:
    """Return about `length` characters of text around the first occurrence of match."""
    index = text.find(match)
    if index == -1:
        return ""
    half = length // 2
    start = max(index - half, 0)
    end = min(index + len(match) + half, len(text))
    context = text[start:end].replace("\n", " ")
    return _WHITESPACE.sub(" ", context).strip()


def reconstruct_url_from_context(partial_url: str, context: str) -> str:
    """Complete a truncated repository URL using an identifier found in its context."""
    if "figshare.com" in partial_url:
        return reconstruct_figshare_url(partial_url, context)

    found = _REPO_PATTERN.search(context)
    if found:
        base = found.group(1).replace(" ", "").strip()
        if not base.endswith("/"):
            base += "/"
        return base + found.group(2)
    return partial_url


def _expand_context_window(url: str, context: str, window: int) -> str:
    index = context.find(url)
    if index == -1:
        return context
    half = window // 2
    start = max(index - half, 0)
    end = min(index + len(url) + half, len(context))
    return context[start:end]


def _join_id(url: str, identifier: str) -> str:
    base = url.removesuffix("/")
    if "/articles/" in url and not base.endswith("/"):
        base += "/"
    return base + identifier


def _find_spaced_numeric_id(url: str, context: str) -> str:
    base = re.escape(url)
    for pattern in (base + r"/?\s+(\d{6,8})", base + r"\s+(\d{6,8})"):
        found = re.search(pattern, context, re.ASCII)
        if found:
            return _join_id(url, found.group(1))

    for found in _FIGSHARE_WITH_ID.finditer(context):
        cleaned = _SPACED_ID.sub(r"/\1", found.group(0))
        if url in cleaned or "figshare.com" in url:
            return cleaned
    return url


def _find_id_after_punctuation(url: str, context: str) -> str:
    found = re.search(re.escape(url) + r"[,.\s]+(\d{6,8})", context, re.ASCII)
    if found:
        return _join_id(url, found.group(1))
    return url


def clean_version_suffix(url: str) -> str:
    """Drop figshare version suffixes and text glued on after them."""
    for pattern in _VERSION_PATTERNS:
        if pattern.search(url):
            return pattern.sub("", url)
    return url


def reconstruct_figshare_url(partial_url: str, context: str) -> str:
    """Repair a figshare URL using nearby identifiers and suffix clean-up."""
    normalized = partial_url.strip().removesuffix("/")
    window = _expand_context_window(partial_url, context, FIGSHARE_CONTEXT_WINDOW)

    for heuristic in (_find_spaced_numeric_id, _find_id_after_punctuation):
        reconstructed = heuristic(normalized, window)
        if reconstructed != normalized:
            return reconstructed

    return clean_version_suffix(normalized)


def improve_tokenization(text: str) -> str:
    """Insert spaces at likely word boundaries lost during text extraction."""
    result = text
    for pattern in _TOKENIZATION_PATTERNS:
        result = pattern.sub(r"\1 \2", result)
    return _WHITESPACE.sub(" ", result).strip()


def is_incomplete_url(url: str) -> bool:
    """Return True if the URL looks truncated."""
    if "figshare.com" in url:
        return url.endswith("figshare.com") or url.endswith("figshare.com/")
    if url.endswith("/") and "/dataset/" in url:
        return True
    return len(url) < 20