"""Check whether a URL or identifier points at a reachable dataset."""

from __future__ import annotations

import json
import mimetypes
import re
import sys
import tarfile
import tempfile
import time
import urllib.parse
import zipfile
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

import requests

from hapiq.http_validator import content_type_category

DATASET_TYPE_DOI = "doi"
DATASET_TYPE_ZENODO = "zenodo"
DATASET_TYPE_FIGSHARE = "figshare"
DATASET_TYPE_DRYAD = "dryad"
DATASET_TYPE_GITHUB = "github"
DATASET_TYPE_GENERIC = "generic"

DOWNLOAD_THRESHOLD = 0.3
_CHUNK_SIZE = 64 * 1024

_DOI_TARGET = re.compile(r"10\.\d+/.+", re.ASCII)
_RECORD_ID = re.compile(r"\d+", re.ASCII)
_UNSAFE_NAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')

_HOST_TYPES = (
    ("zenodo.org", DATASET_TYPE_ZENODO),
    ("figshare.com", DATASET_TYPE_FIGSHARE),
    ("dryad.org", DATASET_TYPE_DRYAD),
    ("github.com", DATASET_TYPE_GITHUB),
    ("doi.org", DATASET_TYPE_DOI),
)

_METADATA_HEADERS = (
    ("server", "Server"),
    ("last-modified", "Last-Modified"),
    ("etag", "ETag"),
    ("content-encoding", "Content-Encoding"),
    ("content-language", "Content-Language"),
)

_REQUEST_ERRORS = (requests.RequestException, ValueError)


@dataclass
class CheckerConfig:
    """Settings for a checker."""

    output_format: str = "human"
    timeout_seconds: int = 30
    verbose: bool = False
    download: bool = False


@dataclass
class FileStructure:
    """Files found in a downloaded dataset."""

    file_types: dict[str, int] = field(default_factory=dict)
    extensions: dict[str, int] = field(default_factory=dict)
    archives: list[str] = field(default_factory=list)
    total_files: int = 0
    total_size: int = 0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "file_types": dict(self.file_types),
            "extensions": dict(self.extensions),
        }
        if self.archives:
            data["archives"] = list(self.archives)
        data["total_files"] = self.total_files
        data["total_size"] = self.total_size
        return data

    def record(self, name: str, size: int) -> None:
        """Count one file of the given name and size."""
        self.total_files += 1
        self.total_size += size
        extension = PurePosixPath(name).suffix.lower() or "(none)"
        self.extensions[extension] = self.extensions.get(extension, 0) + 1
        mime, _ = mimetypes.guess_type(name)
        category = content_type_category(mime) if mime else "unknown"
        self.file_types[category] = self.file_types.get(category, 0) + 1


@dataclass
class CheckResult:
    """Outcome of checking one dataset URL or identifier."""

    target: str
    metadata: dict[str, str] = field(default_factory=dict)
    file_structure: FileStructure | None = None
    content_type: str = ""
    dataset_type: str = ""
    error: str = ""
    http_status: int = 0
    content_length: int = 0
    response_time: float = 0.0
    likelihood_score: float = 0.0
    valid: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready mapping, leaving out empty optional fields."""
        data: dict[str, Any] = {}
        if self.metadata:
            data["metadata"] = dict(self.metadata)
        if self.file_structure is not None:
            data["file_structure"] = self.file_structure.to_dict()
        data["target"] = self.target
        for name in ("content_type", "dataset_type", "error"):
            value = getattr(self, name)
            if value:
                data[name] = value
        if self.http_status:
            data["http_status"] = self.http_status
        if self.content_length:
            data["content_length"] = self.content_length
        if self.response_time:
            data["response_time"] = int(round(self.response_time * 1_000_000_000))
        data["likelihood_score"] = self.likelihood_score
        data["valid"] = self.valid
        return data


def classify_url(target: str) -> tuple[str, str]:
    """Return the URL unchanged together with the repository type its host suggests."""
    try:
        parts = urllib.parse.urlsplit(target)
    except ValueError as exc:
        raise ValueError(f"invalid URL {target!r}: {exc}") from exc
    host = parts.netloc.rpartition("@")[2].lower()
    for marker, dataset_type in _HOST_TYPES:
        if marker in host:
            return target, dataset_type
    return target, DATASET_TYPE_GENERIC


def normalize_target(target: str) -> tuple[str, str]:
    """Turn a URL, DOI or Zenodo record number into (URL, dataset type)."""
    try:
        scheme = urllib.parse.urlsplit(target).scheme
    except ValueError:
        scheme = ""
    if scheme:
        return classify_url(target)
    if _DOI_TARGET.match(target):
        return "https://doi.org/" + target, DATASET_TYPE_DOI
    if _RECORD_ID.fullmatch(target):
        return f"https://zenodo.org/record/{target}", DATASET_TYPE_ZENODO
    raise ValueError(f"unrecognized target format: {target}")


def calculate_likelihood(result: CheckResult) -> float:
    """Estimate how likely the checked target is a dataset, between 0 and 1."""
    score = 0.0
    if result.valid:
        score += 0.3

    if result.dataset_type in (DATASET_TYPE_ZENODO, DATASET_TYPE_FIGSHARE, DATASET_TYPE_DRYAD):
        score += 0.4
    elif result.dataset_type == DATASET_TYPE_GITHUB:
        score += 0.2
    elif result.dataset_type == DATASET_TYPE_DOI:
        score += 0.3
    else:
        score += 0.1

    content_type = result.content_type.lower()
    if any(
        marker in content_type
        for marker in ("application/zip", "application/x-tar", "application/gzip")
    ):
        score += 0.2
    elif "text/html" in content_type:
        score += 0.1
    elif "application/json" in content_type:
        score += 0.15

    if result.content_length > 1024 * 1024:
        score += 0.1

    return min(score, 1.0)


def _download_name(url: str) -> str:
    path = urllib.parse.urlsplit(url).path
    name = _UNSAFE_NAME_CHARS.sub("_", PurePosixPath(path).name).strip(". ")
    return name or "download"


def _analyze_download(path: Path, structure: FileStructure) -> None:
    if zipfile.is_zipfile(path):
        structure.archives.append(path.name)
        with zipfile.ZipFile(path) as archive:
            for info in archive.infolist():
                if not info.is_dir():
                    structure.record(info.filename, info.file_size)
        return
    if tarfile.is_tarfile(path):
        structure.archives.append(path.name)
        with tarfile.open(path) as archive:
            for member in archive.getmembers():
                if member.isfile():
                    structure.record(member.name, member.size)
        return
    structure.record(path.name, path.stat().st_size)


class Checker:
    """Validates dataset URLs and identifiers over HTTP."""

    def __init__(self, config: CheckerConfig | None = None) -> None:
        self.config = config if config is not None else CheckerConfig()
        self._timeout = self.config.timeout_seconds or None
        self._session = requests.Session()

    def _log(self, message: str) -> None:
        print(message, file=sys.stderr)

    def _request(self, method: str, url: str) -> requests.Response:
        return self._session.request(
            method, url, timeout=self._timeout, allow_redirects=True, stream=True
        )

    def check(self, target: str) -> CheckResult:
        """Check a target; problems are reported in the result's error field."""
        result = CheckResult(target=target)

        try:
            url, dataset_type = normalize_target(target)
        except ValueError as exc:
            result.error = str(exc)
            return result

        if not result.dataset_type:
            result.dataset_type = dataset_type

        if self.config.verbose:
            self._log(f"Normalized URL: {url}")
            self._log(f"Dataset type: {dataset_type}")

        start = time.monotonic()
        try:
            response = self._request("HEAD", url)
        except _REQUEST_ERRORS:
            try:
                response = self._request("GET", url)
            except _REQUEST_ERRORS as exc:
                result.response_time = time.monotonic() - start
                result.error = f"HTTP request failed: {exc}"
                return result
        result.response_time = time.monotonic() - start

        with response:
            result.http_status = response.status_code
            result.content_type = response.headers.get("Content-Type", "")
            try:
                result.content_length = int(response.headers.get("Content-Length", ""))
            except ValueError:
                result.content_length = -1
            result.valid = 200 <= response.status_code < 300
            for key, header in _METADATA_HEADERS:
                value = response.headers.get(header, "")
                if value:
                    result.metadata[key] = value

        if result.likelihood_score == 0:
            result.likelihood_score = calculate_likelihood(result)

        if self.config.download and result.valid and result.likelihood_score > DOWNLOAD_THRESHOLD:
            self._attempt_download(url, result)

        return result

    def _attempt_download(self, url: str, result: CheckResult) -> None:
        structure = FileStructure()
        result.file_structure = structure
        with tempfile.TemporaryDirectory(prefix="hapiq-") as workdir:
            path = Path(workdir) / _download_name(url)
            try:
                with self._session.get(url, stream=True, timeout=self._timeout) as response:
                    response.raise_for_status()
                    with path.open("wb") as handle:
                        for chunk in response.iter_content(_CHUNK_SIZE):
                            handle.write(chunk)
                _analyze_download(path, structure)
            except (*_REQUEST_ERRORS, OSError, zipfile.BadZipFile, tarfile.TarError) as exc:
                if self.config.verbose:
                    self._log(f"Download failed for {url}: {exc}")

    def output_result(self, result: CheckResult) -> None:
        """Print the result in the configured output format."""
        fmt = self.config.output_format.lower()
        if fmt == "json":
            print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        elif fmt in ("human", ""):
            self._output_human(result)
        else:
            raise ValueError(f"unsupported output format: {self.config.output_format}")

    def _output_human(self, result: CheckResult) -> None:
        log = self._log
        log(f"Target: {result.target}")
        if result.error:
            log(f"❌ Error: {result.error}")
            return

        if result.valid:
            log(f"✅ Status: Valid (HTTP {result.http_status})")
        else:
            log(f"❌ Status: Invalid (HTTP {result.http_status})")
        log(f"📂 Dataset Type: {result.dataset_type}")
        log(f"🔗 Content Type: {result.content_type}")
        if result.content_length > 0:
            log(f"📏 Size: {result.content_length} bytes")
        log(f"⏱️  Response Time: {result.response_time:.3f}s")
        log(f"🧠 Dataset Likelihood: {result.likelihood_score:.2f}")

        if result.file_structure is not None:
            structure = result.file_structure
            log(f"📦 Files: {structure.total_files} ({structure.total_size} bytes)")

        if result.metadata and self.config.verbose:
            log("📋 Metadata:")
            for key, value in sorted(result.metadata.items()):
                log(f"   {key}: {value}")