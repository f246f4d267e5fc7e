"""Ordering, normalisation and de-duplication of extracted links."""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Iterable, Sequence

from hapiq.types import ExtractedLink, LinkType


def _rx(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, re.ASCII)


_GEO_ID = _rx(r"\b(G[SP][EM]\d+|GPL\d+|GDS\d+)\b")
_TRAILING_DIGITS = _rx(r"\d{2,}\Z")
_DOI_STRUCTURE = _rx(r"10\.\d{4,}/[^|\s\]}>)]{1,100}\Z")

_DOI_PREFIXES = (
    "https://doi.org/",
    "http://doi.org/",
    "https://dx.doi.org/",
    "http://dx.doi.org/",
    "doi:",
)
_DOI_NOISE_WORDS = ("article", "nature", "supplementary")
_CORRUPTION_SUFFIXES = ("62", "64", "66", "68")
_CANONICAL_DOI_STEM = "10.1038/s41467-021-23778"

LONG_URL_LIMIT = 300


def _strip_scheme_and_www(url: str) -> str:
    return url.removeprefix("https://").removeprefix("http://").removeprefix("www.")


def normalize_url_for_sorting(url: str) -> str:
    """Return a form of the URL that orders consistently across scheme variants."""
    normalized = _strip_scheme_and_www(url.lower()).removesuffix("/")
    if "figshare.com" in normalized:
        normalized = normalized.replace(" ", "")
    return normalized


def _sort_key(link: ExtractedLink) -> tuple[str, str, int, float]:
    return (
        normalize_url_for_sorting(link.url),
        str(link.type),
        link.page,
        -link.confidence,
    )


def sort_links(links: Iterable[ExtractedLink]) -> list[ExtractedLink]:
    """Return links ordered by URL, type, page and then descending confidence."""
    return sorted(links, key=_sort_key)


def normalize_doi(url: str) -> str:
    """Reduce a DOI link to its core identifier, dropping common corruption."""
    normalized = url.lower()
    for prefix in _DOI_PREFIXES:
        normalized = normalized.removeprefix(prefix)
    normalized = normalized.strip()

    index = normalized.find("10.")
    if index != -1:
        doi_part = normalized[index:].split("|", 1)[0]
        for word in _DOI_NOISE_WORDS:
            cut = doi_part.find(word)
            if cut != -1:
                doi_part = doi_part[:cut]

        if "/" in doi_part:
            for suffix in _CORRUPTION_SUFFIXES:
                if doi_part.endswith(suffix):
                    without = doi_part[: -len(suffix)]
                    if without.endswith("-"):
                        base = without[:-1]
                        if _CANONICAL_DOI_STEM in base:
                            return "doi:" + base + "-6"
                    doi_part = without
                    break
            return "doi:" + doi_part

    return "doi:" + normalized


def normalize_figshare(url: str) -> str:
    """Reduce a figshare link to its share hash or article path."""
    normalized = _strip_scheme_and_www(url.lower())
    if normalized.startswith("figshare.com/"):
        path = normalized.removeprefix("figshare.com/")
        if path.startswith("s/"):
            path = path.split(".", 1)[0]
        elif path.startswith("articles/"):
            parts = path.split("/")
            if len(parts) >= 4:
                path = "/".join(parts[:4])
        return "figshare:" + path
    return "figshare:" + normalized


def normalize_zenodo(url: str) -> str:
    """Reduce a zenodo record link to its record identifier."""
    normalized = _strip_scheme_and_www(url.lower())
    if normalized.startswith("zenodo.org/"):
        path = normalized.removeprefix("zenodo.org/")
        if path.startswith("record/"):
            record = re.split(r"[/?#]", path.removeprefix("record/"), maxsplit=1)[0]
            return "zenodo:record/" + record
    return "zenodo:" + normalized


def normalize_geo_id(url: str) -> str:
    """Reduce a GEO link or accession to the lower-case accession."""
    found = _GEO_ID.search(url.upper())
    if found:
        return "geo:" + found.group(1).lower()
    return "geo:" + url.lower()


def normalize_generic_url(url: str) -> str:
    """Reduce a URL to host and path, without scheme, query or fragment."""
    normalized = _strip_scheme_and_www(url.lower())
    normalized = normalized.split("?", 1)[0]
    normalized = normalized.split("#", 1)[0]
    return "url:" + normalized


def normalized_key(url: str, link_type: LinkType) -> str:
    """Return the grouping key used to spot duplicates of the same resource."""
    if link_type == LinkType.DOI:
        return normalize_doi(url)
    if link_type == LinkType.GEO_ID:
        return normalize_geo_id(url)
    if link_type == LinkType.FIGSHARE:
        return normalize_figshare(url)
    if link_type == LinkType.ZENODO:
        return normalize_zenodo(url)
    return normalize_generic_url(url)


def score_link_quality(link: ExtractedLink) -> float:
    """Score a link for choosing the best among near-duplicates."""
    url = link.url
    is_doi = link.type == LinkType.DOI
    score = link.confidence

    if len(url) > LONG_URL_LIMIT:
        score -= (len(url) - LONG_URL_LIMIT) / 1000.0
    if url.startswith("https://"):
        score += 0.1
    if "arxiv.org/abs/" in url and "." in url:
        score += 0.2
    if "|" in url:
        score -= 0.3
    if is_doi and "article" in url.lower():
        score -= 0.2
    if is_doi and _TRAILING_DIGITS.search(url) and "arxiv" not in url:
        score -= 0.15
    if is_doi and _DOI_STRUCTURE.search(url):
        score += 0.2
    return score


def select_best_candidate(candidates: Sequence[ExtractedLink]) -> ExtractedLink:
    """Return the highest-scoring link; the earliest wins a tie."""
    if not candidates:
        raise ValueError("no candidates to choose from")
    best = candidates[0]
    best_score = score_link_quality(best)
    for candidate in candidates[1:]:
        score = score_link_quality(candidate)
        if score > best_score:
            best, best_score = candidate, score
    return best


def deduplicate_links(links: Iterable[ExtractedLink]) -> list[ExtractedLink]:
    """Keep one link per normalised resource, ordered by the normalised key."""
    groups: dict[str, list[ExtractedLink]] = {}
    for link in links:
        groups.setdefault(normalized_key(link.url, link.type), []).append(link)

    seen: set[str] = set()
    deduped: list[ExtractedLink] = []
    for key in sorted(groups):
        best = select_best_candidate(groups[key])
        if best.url not in seen:
            seen.add(best.url)
            deduped.append(best)
    return deduped


def _corruption_cap(link: ExtractedLink) -> float:
    confidence = link.confidence
    url = link.url
    lowered = url.lower()
    is_doi = link.type == LinkType.DOI

    if "|" in url:
        confidence = min(confidence, 0.1)
    if "article" in lowered and is_doi:
        confidence = min(confidence, 0.15)
    if "nature" in lowered and "nature.com" not in lowered:
        confidence = min(confidence, 0.15)
    if "supplementary" in lowered:
        confidence = min(confidence, 0.2)
    if is_doi:
        for suffix in _CORRUPTION_SUFFIXES:
            if url.endswith(suffix) and url[: -len(suffix)].endswith("-"):
                confidence = min(confidence, 0.1)
                break
    return confidence


def adjust_confidence_for_corruption(links: Iterable[ExtractedLink]) -> list[ExtractedLink]:
    """Return copies of the links with confidence capped where corruption is evident."""
    return [dataclasses.replace(link, confidence=_corruption_cap(link)) for link in links]