"""Regular expressions used to find identifiers, sections and noise in text."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from hapiq.types import LinkType


@dataclass(frozen=True)
class ExtractionPattern:
    """A regular expression whose first group captures an identifier."""

    name: str
    regex: re.Pattern[str]
    type: LinkType
    confidence: float
    description: str
    examples: tuple[str, ...] = field(default_factory=tuple)


def _rx(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, re.ASCII)


_TAIL = r"(?:\s|$|[^a-zA-Z0-9._/-])"

_EXTRACTION_PATTERNS: tuple[ExtractionPattern, ...] = (
    ExtractionPattern(
        "DOI Pattern",
        _rx(r"(?i)(?:doi:?\s*|https?://(?:dx\.)?doi\.org/)(10\.\d{4,}/[^\s\]}>)]{1,100})"),
        LinkType.DOI, 0.95, "Digital Object Identifier (DOI) patterns",
        ("doi: 10.1234/example", "https://doi.org/10.1234/example"),
    ),
    ExtractionPattern(
        "DOI Simple",
        _rx(r"\b(10\.\d{4,}/[^\s\]}>)]{1,100})\b"),
        LinkType.DOI, 0.9, "Simple DOI pattern without prefix",
        ("10.1234/example.dataset.2024",),
    ),
    ExtractionPattern(
        "GEO Series", _rx(r"\b(GSE\d+)\b"), LinkType.GEO_ID, 0.9,
        "Gene Expression Omnibus Series identifiers", ("GSE123456", "GSE000001"),
    ),
    ExtractionPattern(
        "GEO Sample", _rx(r"\b(GSM\d+)\b"), LinkType.GEO_ID, 0.9,
        "Gene Expression Omnibus Sample identifiers", ("GSM1234567", "GSM000001"),
    ),
    ExtractionPattern(
        "GEO Platform", _rx(r"\b(GPL\d+)\b"), LinkType.GEO_ID, 0.9,
        "Gene Expression Omnibus Platform identifiers", ("GPL570", "GPL96"),
    ),
    ExtractionPattern(
        "GEO Dataset", _rx(r"\b(GDS\d+)\b"), LinkType.GEO_ID, 0.9,
        "Gene Expression Omnibus Dataset identifiers", ("GDS1234", "GDS5678"),
    ),
    ExtractionPattern(
        "Zenodo URLs",
        _rx(r"(https?://(?:www\.)?zenodo\.org/[a-zA-Z0-9/_.-]+)" + _TAIL),
        LinkType.ZENODO, 0.95, "Zenodo repository URLs",
        ("https://zenodo.org/record/123456", "https://www.zenodo.org/record/123456"),
    ),
    ExtractionPattern(
        "Zenodo DOI",
        _rx(r"(https?://doi\.org/10\.5281/zenodo\.\d+)" + _TAIL),
        LinkType.ZENODO, 0.98, "Zenodo DOI URLs",
        ("https://doi.org/10.5281/zenodo.123456",),
    ),
    ExtractionPattern(
        "Figshare URLs",
        _rx(r"(https?://(?:www\.)?figshare\.com/[a-zA-Z0-9/_.-]*)"),
        LinkType.FIGSHARE, 0.95,
        "Figshare repository URLs (post-processed for completeness)",
        (
            "https://figshare.com/s/865e694ad06d5857db4b",
            "https://figshare.com/articles/dataset/scPSM",
            "https://figshare.com/articles/dataset/example/12345678",
        ),
    ),
    ExtractionPattern(
        "GitHub Repository",
        _rx(
            r"(https?://github\.com/[a-zA-Z0-9_.-]+/[a-zA-Z0-9_.-]+(?:/[a-zA-Z0-9/_.-]*)?)"
            + _TAIL
        ),
        LinkType.URL, 0.7, "GitHub repository URLs (potential datasets)",
        ("https://github.com/user/dataset-repo",),
    ),
    ExtractionPattern(
        "Dataset Files",
        _rx(
            r"(https?://[a-zA-Z0-9._/-]+\.(?:csv|tsv|xlsx?|json|xml|h5|hdf5|parquet|feather"
            r"|arrow|zip|tar\.gz|tar\.bz2))" + _TAIL
        ),
        LinkType.URL, 0.85, "URLs pointing to dataset files",
        ("https://example.com/data.csv", "https://example.com/dataset.zip"),
    ),
    ExtractionPattern(
        "NCBI URLs",
        _rx(
            r"(https?://(?:www\.)?(?:ncbi\.nlm\.nih\.gov|ebi\.ac\.uk|embl\.de|ddbj\.nig\.ac\.jp)"
            r"/[a-zA-Z0-9/_.-]+)" + _TAIL
        ),
        LinkType.URL, 0.9, "Biological database URLs",
        ("https://www.ncbi.nlm.nih.gov/geo/query/acc.cgi?acc=GSE123",),
    ),
    ExtractionPattern(
        "Data Repositories",
        _rx(
            r"(https?://(?:www\.)?(?:kaggle\.com|data\.mendeley\.com|osf\.io|dataverse\.org"
            r"|dryad\.org|pangaea\.de)/[a-zA-Z0-9/_.-]+)" + _TAIL
        ),
        LinkType.URL, 0.88, "Data repository platform URLs",
        ("https://data.mendeley.com/datasets/abc123", "https://osf.io/xyz789/"),
    ),
    ExtractionPattern(
        "PubMed ID", _rx(r"(?i)(?:PMID:?\s*)(\d{7,8})"), LinkType.URL, 0.85,
        "PubMed identifiers", ("PMID: 12345678", "PMID:12345678"),
    ),
    ExtractionPattern(
        "arXiv ID", _rx(r"(?i)arXiv:(\d{4}\.\d{4,5}(?:v\d+)?)"), LinkType.URL, 0.9,
        "arXiv preprint identifiers", ("arXiv:2024.12345", "arXiv:2024.12345v1"),
    ),
    ExtractionPattern(
        "bioRxiv URLs",
        _rx(r"(https?://(?:www\.)?(?:biorxiv|medrxiv)\.org/[^\s\]}>)]{1,200})"),
        LinkType.URL, 0.9, "bioRxiv and medRxiv preprint URLs",
        ("https://www.biorxiv.org/content/10.1101/2024.01.01.123456v1",),
    ),
    ExtractionPattern(
        "FTP URLs", _rx(r"(ftp://[^\s\]}>)]{1,300})"), LinkType.URL, 0.75,
        "FTP URLs (potential datasets)",
        ("ftp://ftp.ncbi.nlm.nih.gov/geo/series/GSE123nnn/GSE123456/",),
    ),
    ExtractionPattern(
        "Generic URLs",
        _rx(r"(https?://[a-zA-Z0-9.-]+(?:\.[a-zA-Z]{2,})+(?:/[^\s\]}>)]{0,300})?)" + _TAIL),
        LinkType.URL, 0.3, "Generic HTTP/HTTPS URLs",
        ("https://example.com/data", "http://data.example.org/dataset"),
    ),
    ExtractionPattern(
        "SRA Accession", _rx(r"\b(SRR\d+|ERR\d+|DRR\d+)\b"), LinkType.URL, 0.9,
        "Sequence Read Archive accession numbers", ("SRR123456", "ERR123456", "DRR123456"),
    ),
    ExtractionPattern(
        "BioProject", _rx(r"\b(PRJNA\d+|PRJEB\d+|PRJDB\d+)\b"), LinkType.URL, 0.9,
        "BioProject identifiers", ("PRJNA123456", "PRJEB123456"),
    ),
    ExtractionPattern(
        "PDB ID", _rx(r"\b([1-9][A-Za-z][A-Za-z0-9]{2})\b"), LinkType.URL, 0.7,
        "Protein Data Bank identifiers (must have at least one letter)", ("1ABC", "2XYZ"),
    ),
    ExtractionPattern(
        "ChEMBL ID", _rx(r"\b(CHEMBL\d+)\b"), LinkType.URL, 0.85,
        "ChEMBL compound identifiers", ("CHEMBL123456",),
    ),
    ExtractionPattern(
        "PubChem CID", _rx(r"(?i)(?:CID:?\s*)(\d+)"), LinkType.URL, 0.85,
        "PubChem Compound identifiers", ("CID: 123456", "CID:123456"),
    ),
    ExtractionPattern(
        "UniProt ID",
        _rx(r"\b([A-NR-Z][0-9][A-Z][A-Z0-9]{2}[0-9]|[OPQ][0-9][A-Z0-9]{3}[0-9])\b"),
        LinkType.URL, 0.8, "UniProt protein identifiers", ("P01234", "O43657"),
    ),
    ExtractionPattern(
        "RefSeq ID", _rx(r"\b(N[CGMRWT]_\d+(?:\.\d+)?)\b"), LinkType.URL, 0.85,
        "RefSeq identifiers", ("NC_000001.11", "NM_000014.6"),
    ),
)

_SECTION_REGEXES: tuple[re.Pattern[str], ...] = tuple(
    _rx(pattern)
    for pattern in (
        r"(?i)^\s*(?:abstract|summary)\s*$",
        r"(?i)^\s*(?:introduction|background)\s*$",
        r"(?i)^\s*(?:methods?|methodology|materials?\s+and\s+methods?)\s*$",
        r"(?i)^\s*(?:results?|findings?)\s*$",
        r"(?i)^\s*(?:discussion|conclusions?)\s*$",
        r"(?i)^\s*(?:references?|bibliography|works?\s+cited)\s*$",
        r"(?i)^\s*(?:data\s+availability|data\s+statement|data\s+access)\s*$",
        r"(?i)^\s*(?:supplementary|supporting)\s+(?:materials?|information)\s*$",
    )
)

_CLEANERS: tuple[re.Pattern[str], ...] = tuple(
    _rx(pattern)
    for pattern in (
        r"\s+",
        r"[\r\n]+",
        r"\x00+",
        r"\s*\(\s*\)\s*",
        r"\s*\[\s*\]\s*",
        r"\s*\{\s*\}\s*",
        r"(?i)\b(?:see|cf|compare|refer\s+to)\s+",
    )
)


def extraction_patterns() -> list[ExtractionPattern]:
    """Return the identifier patterns, most specific first."""
    return list(_EXTRACTION_PATTERNS)


def section_regexes() -> list[re.Pattern[str]]:
    """Return the patterns that recognise section headings."""
    return list(_SECTION_REGEXES)


def default_cleaners() -> list[re.Pattern[str]]:
    """Return the patterns whose matches are replaced by a space when cleaning text."""
    return list(_CLEANERS)