# hapiq

hapiq finds references to research data in the text of scientific papers
and scores how likely each one is to point at a dataset.

It recognises DOIs, GEO accessions (GSE, GSM, GPL, GDS), SRA, BioProject
and BioSample identifiers, ArrayExpress accessions, PubMed and arXiv IDs,
PDB, UniProt, RefSeq, ChEMBL and PubChem identifiers, and URLs of data
repositories such as Zenodo, Figshare, Dryad, OSF, Mendeley Data, Kaggle,
NCBI/EBI and GitHub. Text taken out of PDFs is often broken: words run
into URLs, IDs are split from their URLs, journal footers are glued onto
DOIs. hapiq trims such debris, rebuilds truncated repository URLs from
the surrounding text, drops near-duplicates and gives every link a
confidence score.

## Installing

```
pip install .
pip install ".[test]"   # with pytest, to run the tests
```

## Extracting links

```python
from hapiq.types import default_extraction_options
from hapiq.extractor import PDFExtractor

options = default_extraction_options()
options.min_confidence = 0.7

extractor = PDFExtractor(options)
result = extractor.extract_from_text(
    "Raw reads are in GEO under GSE123456; processed data at "
    "https://zenodo.org/record/123456 (doi:10.5281/zenodo.123456).",
    "paper.txt",
)

for link in result.links:
    print(link.type.value, link.url, round(link.confidence, 2))
```

`extract_from_text` raises `ValueError` when the text is blank.
`PDFExtractor.extract_from_file` reads a file from disk and does the
same; it raises `OSError` if the file cannot be read. Files starting
with `%PDF` are read with a small built-in PDF text reader; anything
else is read as UTF-8 text.

The returned `ExtractionResult` (in `hapiq.types`) holds the links as
`ExtractedLink` objects, summary counts in `ExtractionStats`, and any
warnings. `ExtractionResult.to_dict()` gives a mapping ready for
`json.dumps`.

Options on `ExtractionOptions`:

- `min_confidence` – drop links scored below this value (default 0.5)
- `include_context` / `context_length` – keep the text around each match (default on, 100 characters)
- `use_accession_recognition` – also look for biological accessions (default on)
- `validate_links` – check every link over HTTP and adjust its confidence (default off)
- `keep_404s` – keep links that turned out to be unreachable after validation (default off)
- `filter_domains` – used by `PDFExtractor.filter_links` to keep only links on the given domains

Lower-level helpers are available on their own: `hapiq.textclean`
(`clean_url`, `is_valid_url`, `normalize_candidate`,
`reconstruct_figshare_url`, ...), `hapiq.dedup` (`deduplicate_links`,
`normalized_key`, `sort_links`, ...) and `hapiq.patterns`
(`extraction_patterns`, `section_regexes`, `default_cleaners`).

## Checking links over HTTP

```python
from hapiq.http_validator import HTTPValidator

validator = HTTPValidator(10)
result = validator.validate_url("https://zenodo.org/record/123456")
print(result.accessible, result.status_code, result.dataset_score, result.is_dataset)
```

The validator sends browser-like headers, tries a `HEAD` request first,
falls back to a ranged `GET` and finally a plain `GET`, and follows up to
ten redirects. Network failures do not raise; they are reported in the
result's `error` field. The response is scored by content type, size,
URL and host. `validate_batch(urls, max_concurrency)` checks many URLs
at once and returns the results keyed by URL.

## Checking a single identifier

```python
from hapiq.checker import Checker, CheckerConfig

checker = Checker(CheckerConfig(output_format="json", timeout_seconds=15))
result = checker.check("10.5281/zenodo.123456")
checker.output_result(result)
```

Bare DOIs become `https://doi.org/...` URLs and numeric IDs become Zenodo
record URLs; the repository type is taken from the host. The result
holds the HTTP status, content type, length, a few response headers and
a likelihood score. With `download=True`, a valid and promising target is
downloaded to a temporary directory and its files (including the members
of zip and tar archives) are counted by extension and type.
`output_result` prints JSON to standard output, or a human-readable
report (`output_format="human"`) to standard error.

## Processing many files

```python
from hapiq.types import default_extraction_options
from hapiq.worker_pool import ExtractionTask, WorkerPool

tasks = [
    ExtractionTask(id="a", filename="paper-a.pdf", options=default_extraction_options()),
    ExtractionTask(id="b", filename="paper-b.pdf", options=default_extraction_options()),
]

pool = WorkerPool(4)
pool.start()
pool.submit_batch(tasks)

outcomes = pool.results()
for _ in tasks:
    outcome = next(outcomes)
    print(outcome.task.id, outcome.error or outcome.result.summary.total_links)

pool.wait()
```

Results arrive in the order tasks finish. Read them while the pool is
running: the task and result queues are bounded, so submitting many tasks
without reading results will block. `pool.stats()` reports task counts,
and `ProgressTracker` collects the updates from `WorkerPool.progress()`,
prints a one-line summary and estimates the time left.

## What hapiq does not do

- There is no command-line program; everything is used from Python.
- Identifiers are recognised by pattern only. Nothing queries GEO, SRA,
  Zenodo or other repository APIs to confirm that an accession exists.
- The built-in PDF reader only handles plain and Flate-compressed text
  streams with simple string encodings. It does not detect pages, so
  every link is reported on page 1, and link positions are not measured.