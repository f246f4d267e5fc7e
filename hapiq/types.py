"""Data types shared by the link extraction pipeline."""

from __future__ import annotations

import dataclasses
import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


class LinkType(str, enum.Enum):
    """Kind of link or identifier found in a document."""

    URL = "url"
    DOI = "doi"
    GEO_ID = "geo_id"
    FIGSHARE = "figshare"
    ZENODO = "zenodo"
    GENERIC = "generic"

    def __str__(self) -> str:
        return self.value


def _nanoseconds(seconds: float) -> int:
    """Durations are serialised as integer nanoseconds."""
    return int(round(seconds * 1_000_000_000))


@dataclass
class Position:
    """Location of a link within a page."""

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0


@dataclass
class ValidationResult:
    """Outcome of checking whether a link is reachable."""

    last_checked: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    content_type: str = ""
    last_modified: str = ""
    final_url: str = ""
    error: str = ""
    request_method: str = ""
    status_code: int = 0
    content_length: int = 0
    response_time: float = 0.0
    dataset_score: float = 0.0
    is_accessible: bool = False
    is_dataset: bool = False


def _validation_to_dict(validation: ValidationResult) -> dict[str, Any]:
    data: dict[str, Any] = {"last_checked": validation.last_checked.isoformat()}
    optional_strings = ("content_type", "last_modified", "final_url", "error", "request_method")
    for name in optional_strings:
        value = getattr(validation, name)
        if value:
            data[name] = value
    data["status_code"] = validation.status_code
    if validation.content_length:
        data["content_length"] = validation.content_length
    if validation.response_time:
        data["response_time"] = _nanoseconds(validation.response_time)
    if validation.dataset_score:
        data["dataset_score"] = validation.dataset_score
    data["is_accessible"] = validation.is_accessible
    if validation.is_dataset:
        data["is_dataset"] = True
    return data


def _domain_result_to_dict(domain_result: Any) -> Any:
    to_dict = getattr(domain_result, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if dataclasses.is_dataclass(domain_result) and not isinstance(domain_result, type):
        return dataclasses.asdict(domain_result)
    return domain_result


@dataclass
class ExtractedLink:
    """A link found in a document, with its provenance and confidence."""

    url: str
    type: LinkType = LinkType.URL
    context: str = ""
    section: str = ""
    position: Position = field(default_factory=Position)
    page: int = 0
    confidence: float = 0.0
    validation: ValidationResult | None = None
    domain_result: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready mapping, leaving out empty optional fields."""
        data: dict[str, Any] = {}
        if self.validation is not None:
            data["validation"] = _validation_to_dict(self.validation)
        if self.domain_result is not None:
            data["domain_result"] = _domain_result_to_dict(self.domain_result)
        data["url"] = self.url
        data["type"] = str(self.type)
        if self.context:
            data["context"] = self.context
        if self.section:
            data["section"] = self.section
        data["position"] = dataclasses.asdict(self.position)
        data["page"] = self.page
        data["confidence"] = self.confidence
        return data


@dataclass
class ExtractionStats:
    """Summary statistics for a set of extracted links."""

    links_by_type: dict[LinkType, int] = field(default_factory=dict)
    links_by_page: dict[int, int] = field(default_factory=dict)
    total_links: int = 0
    unique_links: int = 0
    validated_links: int = 0
    accessible_links: int = 0


def _stats_to_dict(stats: ExtractionStats) -> dict[str, Any]:
    return {
        "links_by_type": {str(key): count for key, count in stats.links_by_type.items()},
        "links_by_page": {str(page): count for page, count in stats.links_by_page.items()},
        "total_links": stats.total_links,
        "unique_links": stats.unique_links,
        "validated_links": stats.validated_links,
        "accessible_links": stats.accessible_links,
    }


@dataclass
class ExtractionResult:
    """Complete result of extracting links from one document."""

    filename: str
    summary: ExtractionStats = field(default_factory=ExtractionStats)
    links: list[ExtractedLink] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    pages: int = 0
    total_text: int = 0
    process_time: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready mapping of the whole result."""
        data: dict[str, Any] = {
            "filename": self.filename,
            "summary": _stats_to_dict(self.summary),
            "links": [link.to_dict() for link in self.links],
        }
        if self.errors:
            data["errors"] = list(self.errors)
        if self.warnings:
            data["warnings"] = list(self.warnings)
        data["pages"] = self.pages
        data["total_text"] = self.total_text
        data["process_time"] = _nanoseconds(self.process_time)
        return data


@dataclass
class ExtractionOptions:
    """Settings that control link extraction."""

    filter_domains: list[str] = field(default_factory=list)
    context_length: int = 100
    min_confidence: float = 0.5
    max_links_per_page: int = 50
    validate_links: bool = False
    include_context: bool = True
    use_accession_recognition: bool = True
    use_convert_tokenization: bool = True
    extract_positions: bool = False
    keep_404s: bool = False


def default_extraction_options() -> ExtractionOptions:
    """Return the default extraction settings."""
    return ExtractionOptions()