"""Find dataset links and identifiers in document text."""

from __future__ import annotations

import re
import time
import zlib
from collections import Counter
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

import requests

from hapiq import textclean
from hapiq.dedup import adjust_confidence_for_corruption, deduplicate_links, sort_links
from hapiq.http_validator import HTTPValidator
from hapiq.patterns import default_cleaners, extraction_patterns, section_regexes
from hapiq.types import (
    ExtractedLink,
    ExtractionOptions,
    ExtractionResult,
    ExtractionStats,
    LinkType,
    Position,
    ValidationResult,
    default_extraction_options,
)

VALIDATION_WORKERS = 5
HTTP_VALIDATION_TIMEOUT = 15.0


def _rx(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, re.ASCII)


_ARXIV_ID = _rx(r"\d{4}\.\d{4,5}(?:v\d+)?")

_ACCESSION_PATTERNS: tuple[tuple[str, re.Pattern[str], LinkType, float], ...] = (
    ("GEO Series", _rx(r"\b(GSE\d{1,8})\b"), LinkType.GEO_ID, 0.95),
    ("GEO Sample", _rx(r"\b(GSM\d{1,9})\b"), LinkType.GEO_ID, 0.95),
    ("GEO Platform", _rx(r"\b(GPL\d{1,6})\b"), LinkType.GEO_ID, 0.95),
    ("GEO Dataset", _rx(r"\b(GDS\d{1,6})\b"), LinkType.GEO_ID, 0.95),
    ("SRA Run", _rx(r"\b(SRR\d{6,9})\b"), LinkType.URL, 0.95),
    ("SRA Experiment", _rx(r"\b(SRX\d{6,9})\b"), LinkType.URL, 0.95),
    ("SRA Sample", _rx(r"\b(SRS\d{6,9})\b"), LinkType.URL, 0.95),
    ("SRA Study", _rx(r"\b(SRP\d{6,9})\b"), LinkType.URL, 0.95),
    ("SRA Project", _rx(r"\b(PRJNA\d{6,9})\b"), LinkType.URL, 0.95),
    ("ArrayExpress", _rx(r"\b(E-\w{4}-\d+)\b"), LinkType.URL, 0.95),
    ("BioProject", _rx(r"\b(PRJNA\d{6,9})\b"), LinkType.URL, 0.95),
    ("BioSample", _rx(r"\b(SAMN\d{8,9})\b"), LinkType.URL, 0.95),
    ("PubMed ID", _rx(r"(?i)(?:PMID:?\s*)(\d{7,8})"), LinkType.URL, 0.85),
    ("PDB ID", _rx(r"\b([1-9][A-Za-z][A-Za-z0-9]{2})\b"), LinkType.URL, 0.7),
    ("arXiv ID", _rx(r"(?i)arXiv:(\d{4}\.\d{4,5}(?:v\d+)?)"), LinkType.URL, 0.9),
)

_SECTIONS: dict[str, tuple[str, ...]] = {
    "abstract": ("abstract", "summary"),
    "introduction": ("introduction", "background"),
    "methods": ("methods", "methodology", "materials and methods"),
    "results": ("results", "findings"),
    "discussion": ("discussion", "conclusion", "conclusions"),
    "references": ("references", "bibliography", "works cited"),
    "data": ("data availability", "data statement", "data access"),
}


@dataclass
class LinkCandidate:
    """A possible link found in text before classification."""

    text: str
    normalized_url: str = ""
    type: LinkType = LinkType.URL
    confidence: float = 0.0
    position: int = 0


def map_domain_to_link_type(validator_name: str, dataset_type: str) -> LinkType:
    """Map a domain validator's name and dataset type onto a link type."""
    if validator_name == "geo":
        return LinkType.GEO_ID
    return {
        "doi": LinkType.DOI,
        "zenodo": LinkType.ZENODO,
        "figshare": LinkType.FIGSHARE,
    }.get(dataset_type, LinkType.URL)


def adjust_confidence_by_validation(
    original_confidence: float, validation: ValidationResult | None
) -> float:
    """Raise or lower a confidence according to the outcome of an HTTP check."""
    if validation is None:
        return original_confidence
    if validation.is_accessible:
        if validation.is_dataset:
            return min(original_confidence * 1.1, 1.0)
        return original_confidence

    status = validation.status_code
    if status == 404:
        return min(original_confidence * 0.1, 0.15)
    if status == 403:
        return min(original_confidence * 0.6, 0.7)
    if status >= 500:
        return min(original_confidence * 0.7, 0.8)
    if status >= 400:
        return min(original_confidence * 0.3, 0.4)
    return min(original_confidence * 0.5, 0.6)


def detect_section(text: str) -> str:
    """Guess which paper section a piece of text comes from."""
    lowered = text.lower()
    first_line = lowered.split("\n", 1)[0].strip()

    for section, keywords in _SECTIONS.items():
        for keyword in keywords:
            if first_line == keyword or first_line.startswith(keyword + " "):
                return section

    for section, keywords in _SECTIONS.items():
        if any(keyword in lowered for keyword in keywords):
            return section
    return "unknown"


def filter_accessible_links(links: Iterable[ExtractedLink]) -> list[ExtractedLink]:
    """Drop links whose validation shows they cannot be reached; keep unvalidated ones."""
    return [
        link for link in links if link.validation is None or link.validation.is_accessible
    ]


# --- minimal PDF text reading -------------------------------------------------

_PDF_STREAM = re.compile(rb"stream\r?\n(.*?)\r?\nendstream", re.S)
_PDF_ESCAPES = {ord("n"): 10, ord("r"): 13, ord("t"): 9, ord("b"): 8, ord("f"): 12}
_PDF_LINE_OPS = {b"Td", b"TD", b"T*", b"'", b'"', b"ET", b"Tm"}
_OPERATOR_CHARS = frozenset(b"*'\"")


def _read_literal(data: bytes, i: int) -> tuple[str, int]:
    out = bytearray()
    depth = 1
    n = len(data)
    while i < n:
        c = data[i]
        if c == 0x5C:
            i += 1
            if i >= n:
                break
            escaped = data[i]
            if escaped in _PDF_ESCAPES:
                out.append(_PDF_ESCAPES[escaped])
                i += 1
            elif 0x30 <= escaped <= 0x37:
                j = i
                while j < n and j < i + 3 and 0x30 <= data[j] <= 0x37:
                    j += 1
                out.append(int(data[i:j], 8) & 0xFF)
                i = j
            elif escaped in (0x0A, 0x0D):
                i += 1
                if escaped == 0x0D and i < n and data[i] == 0x0A:
                    i += 1
            else:
                out.append(escaped)
                i += 1
            continue
        if c == 0x28:
            depth += 1
        elif c == 0x29:
            depth -= 1
            if depth == 0:
                return out.decode("latin-1"), i + 1
        out.append(c)
        i += 1
    return out.decode("latin-1"), i


def _decode_hex(raw: bytes) -> str:
    digits = b"".join(raw.split())
    if len(digits) % 2:
        digits += b"0"
    try:
        decoded = bytes.fromhex(digits.decode("ascii"))
    except ValueError:
        return ""
    if decoded.startswith(b"\xfe\xff"):
        return decoded[2:].decode("utf-16-be", errors="replace")
    return decoded.decode("latin-1")


def _content_lines(content: bytes) -> list[str]:
    lines: list[str] = []
    current: list[str] = []
    i = 0
    n = len(content)
    while i < n:
        c = content[i]
        if c == 0x28:
            text, i = _read_literal(content, i + 1)
            current.append(text)
        elif c == 0x3C:
            if i + 1 < n and content[i + 1] == 0x3C:
                i += 2
                continue
            end = content.find(b">", i)
            if end == -1:
                break
            current.append(_decode_hex(content[i + 1 : end]))
            i = end + 1
        elif c == 0x25:
            end = content.find(b"\n", i)
            i = n if end == -1 else end + 1
        elif chr(c).isalpha() or c in _OPERATOR_CHARS:
            j = i
            while j < n and (chr(content[j]).isalpha() or content[j] in _OPERATOR_CHARS):
                j += 1
            if content[i:j] in _PDF_LINE_OPS and current:
                lines.append("".join(current))
                current = []
            i = j
        else:
            i += 1
    if current:
        lines.append("".join(current))
    return lines


def _pdf_text(data: bytes) -> str:
    lines: list[str] = []
    for found in _PDF_STREAM.finditer(data):
        raw = found.group(1)
        try:
            raw = zlib.decompress(raw)
        except zlib.error:
            pass
        lines.extend(_content_lines(raw))
    return "\n".join(lines)


def _document_text(filename: str) -> str:
    try:
        data = Path(filename).read_bytes()
    except OSError as exc:
        raise OSError(f"failed to convert PDF file '{filename}': {exc}") from exc
    if data.lstrip().startswith(b"%PDF"):
        return _pdf_text(data)
    return data.decode("utf-8", errors="replace")


# --- extractor ----------------------------------------------------------------


class PDFExtractor:
    """Extracts dataset links and identifiers from documents."""

    def __init__(self, options: ExtractionOptions | None = None) -> None:
        self.options = options if options is not None else default_extraction_options()
        self.patterns = extraction_patterns()
        self.section_regexes = section_regexes()
        self.cleaners = default_cleaners()
        self._http_validator = HTTPValidator(HTTP_VALIDATION_TIMEOUT)

    def extract_from_file(self, filename: str) -> ExtractionResult:
        """Read a document and extract the links it contains."""
        return self.extract_from_text(_document_text(filename), filename)

    def extract_from_text(self, text: str, filename: str = "") -> ExtractionResult:
        """Extract links from already converted document text."""
        start = time.monotonic()
        if not text.strip():
            raise ValueError("no readable text found in PDF file")

        result = ExtractionResult(
            filename=filename,
            pages=1,
            links=sort_links(self._extract_links_from_text(text, 1, "unknown")),
        )

        accessible = validated = 0
        if self.options.validate_links and result.links:
            accessible, validated = self.validate_links(result)
            if not self.options.keep_404s:
                result.links = filter_accessible_links(result.links)

        result.total_text = len(text.encode("utf-8"))
        result.summary = ExtractionStats(
            links_by_type=dict(Counter(link.type for link in result.links)),
            links_by_page=dict(Counter(link.page for link in result.links)),
            total_links=len(result.links),
            unique_links=len({link.url for link in result.links}),
            validated_links=validated,
            accessible_links=accessible,
        )
        result.process_time = time.monotonic() - start
        return result

    def _extract_links_from_text(self, text: str, page: int, section: str) -> list[ExtractedLink]:
        cleaned = self.clean_text(text)
        links: list[ExtractedLink] = []
        for candidate in self.extract_candidates(cleaned):
            context = self.extract_context_for_match(cleaned, candidate.text)
            if candidate.type == LinkType.FIGSHARE:
                url = textclean.reconstruct_figshare_url(candidate.normalized_url, context)
            else:
                url = textclean.reconstruct_url_from_context(candidate.normalized_url, context)
            links.append(
                ExtractedLink(
                    url=url,
                    type=candidate.type,
                    context=context,
                    page=page,
                    position=Position(),
                    confidence=candidate.confidence,
                    section=section,
                )
            )

        links = deduplicate_links(adjust_confidence_for_corruption(links))
        kept = [link for link in links if link.confidence >= self.options.min_confidence]
        return sort_links(kept)

    def extract_candidates(self, text: str) -> list[LinkCandidate]:
        """Find every possible identifier or URL in the text."""
        candidates: list[LinkCandidate] = []
        if self.options.use_accession_recognition:
            candidates.extend(self.extract_accessions(text))

        for pattern in self.patterns:
            for found in pattern.regex.finditer(text):
                match_text = found.group(1)
                if not match_text:
                    continue

                cleaned = textclean.clean_url(textclean.normalize_candidate(match_text, pattern.type))
                if (
                    pattern.type == LinkType.URL
                    and not cleaned.startswith("http")
                    and not cleaned.startswith("ftp://")
                    and not _ARXIV_ID.fullmatch(match_text)
                    and len(cleaned) < 10
                    and "." not in cleaned
                ):
                    continue

                if textclean.is_valid_url(cleaned):
                    candidates.append(
                        LinkCandidate(
                            text=match_text,
                            normalized_url=cleaned,
                            type=pattern.type,
                            confidence=pattern.confidence,
                            position=found.start(),
                        )
                    )
        return candidates

    def extract_accessions(self, text: str) -> list[LinkCandidate]:
        """Find biological database accessions in the text."""
        return [
            LinkCandidate(
                text=found.group(1),
                normalized_url=found.group(1),
                type=link_type,
                confidence=confidence,
            )
            for _name, regex, link_type, confidence in _ACCESSION_PATTERNS
            for found in regex.finditer(text)
        ]

    def extract_context_for_match(self, text: str, match: str) -> str:
        """Return the text around a match, or nothing when context is disabled."""
        if not self.options.include_context:
            return ""
        return textclean.extract_context(text, match, self.options.context_length)

    def clean_text(self, text: str) -> str:
        """Collapse whitespace and remove noise from extracted text."""
        return textclean.clean_text(text, self.cleaners)

    def filter_links(self, links: Iterable[ExtractedLink]) -> list[ExtractedLink]:
        """Keep links above the confidence threshold and within the allowed domains."""
        domains = [domain.lower() for domain in self.options.filter_domains or []]
        filtered: list[ExtractedLink] = []
        for link in links:
            if link.confidence < self.options.min_confidence:
                continue
            if domains and not any(domain in link.url.lower() for domain in domains):
                continue
            filtered.append(link)
        return filtered

    def validate_links(self, result: ExtractionResult) -> tuple[int, int]:
        """Check every link over HTTP; returns (accessible count, validated count)."""
        links = result.links
        if not links:
            return 0, 0

        with ThreadPoolExecutor(max_workers=min(VALIDATION_WORKERS, len(links))) as pool:
            futures = [pool.submit(self._validate_link, link.url) for link in links]

        accessible = validated = 0
        for link, future in zip(links, futures):
            try:
                validation = future.result()
            except (requests.RequestException, OSError, ValueError) as exc:
                result.warnings.append(f"Failed to validate {link.url}: {exc}")
                continue
            link.validation = validation
            validated += 1
            if validation.is_accessible:
                accessible += 1
            link.confidence = adjust_confidence_by_validation(link.confidence, validation)
        return accessible, validated

    def _validate_link(self, url: str) -> ValidationResult:
        checked = self._http_validator.validate_url(url)
        validation = ValidationResult(
            is_accessible=checked.accessible,
            status_code=checked.status_code,
            content_type=checked.content_type,
            content_length=checked.content_length,
            last_modified=checked.last_modified,
            response_time=checked.response_time,
            final_url=checked.final_url,
            is_dataset=checked.is_dataset,
            dataset_score=checked.dataset_score,
            request_method=checked.request_method,
        )
        if not checked.accessible:
            validation.error = checked.error or f"HTTP {checked.status_code}"
        return validation