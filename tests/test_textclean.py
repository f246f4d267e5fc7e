import pytest

from hapiq.patterns import default_cleaners
from hapiq.textclean import (
    clean_text,
    clean_url,
    clean_version_suffix,
    extract_context,
    improve_tokenization,
    is_incomplete_url,
    is_valid_url,
    normalize_candidate,
    reconstruct_figshare_url,
    reconstruct_url_from_context,
)
from hapiq.types import LinkType


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Normal text", "Normal text"),
        ("Text   with    multiple   spaces", "Text with multiple spaces"),
        ("Text\nwith\r\nline\nbreaks", "Text with line breaks"),
        ("Text with () empty [] brackets {}", "Text with empty brackets"),
        ("Text with null\x00bytes", "Text with null bytes"),
    ],
)
def test_clean_text(raw, expected):
    assert clean_text(raw) == expected
    assert clean_text(raw, default_cleaners()) == expected


def test_clean_text_with_no_cleaners_only_trims():
    assert clean_text("  a   b  ", []) == "a   b"


@pytest.mark.parametrize(
    ("text", "link_type", "expected"),
    [
        ("10.1234/example", LinkType.DOI, "https://doi.org/10.1234/example"),
        ("https://doi.org/10.1234/example", LinkType.DOI, "https://doi.org/10.1234/example"),
        ("https://example.com/data.csv;", LinkType.URL, "https://example.com/data.csv"),
        ("GSE123456", LinkType.GEO_ID, "GSE123456"),
        ("2401.12345", LinkType.URL, "https://arxiv.org/abs/2401.12345"),
    ],
)
def test_normalize_candidate(text, link_type, expected):
    assert normalize_candidate(text, link_type) == expected


def test_extract_context_contains_match():
    text = (
        "This is a long text with a DOI 10.1234/example.dataset in the middle "
        "of the sentence for testing context extraction."
    )
    match = "10.1234/example.dataset"
    context = extract_context(text, match, 40)
    assert match in context
    assert len(context) <= len(match) + 40


def test_extract_context_zero_length_is_match():
    assert extract_context("before X123 after", "X123", 0) == "X123"


def test_extract_context_missing_match():
    assert extract_context("nothing here", "absent", 40) == ""


def test_extract_context_collapses_newlines():
    assert extract_context("a\n\nb KEY c", "KEY", 100) == "a b KEY c"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("https://doi.org/10.1038/s41467-021-23778-6", "https://doi.org/10.1038/s41467-021-23778-6"),
        (
            "https://doi.org/10.1038/s41467-021-23778-6Correspondence",
            "https://doi.org/10.1038/s41467-021-23778-6",
        ),
        ("https://zenodo.org/record/123456Peerreviewinformation", "https://zenodo.org/record/123456"),
        ("https://example.com/data.csv;", "https://example.com/data.csv"),
        ("https://github.com/user/repo  ", "https://github.com/user/repo"),
        ("https://example.com/path/10.", "https://example.com/path"),
        ("https://doi.org/10.1234/exampleNaturecommunications", "https://doi.org/10.1234/example"),
    ],
)
def test_clean_url(raw, expected):
    assert clean_url(raw) == expected


def test_clean_url_keeps_arxiv_id():
    assert clean_url("2401.12345") == "2401.12345"


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://example.com", True),
        ("http://example.com/path", True),
        ("ftp://example.com/file", True),
        ("10.1234/example", True),
        (
            "https://example.com/CorrespondenceandrequestsformaterialsshouldbeaddressedtoC.J."
            "orE.E.PeerreviewinformationNatureCommunications",
            False,
        ),
        ("https://example.com" + "a" * 500, False),
        ("not-a-url", False),
        ("https://", False),
        ("https://example.compeerreviewinformation", False),
        ("https://example.com https://other.com", False),
        ("https://example.com/" + "path/" * 50, False),
        ("GSE123456", True),
        ("12345678", True),
        ("1ABC", True),
        ("P01234", True),
    ],
)
def test_is_valid_url(url, expected):
    assert is_valid_url(url) is expected


def test_reconstruct_figshare_spaced_id():
    partial = "https://figshare.com/articles/dataset/title"
    context = "Data at https://figshare.com/articles/dataset/title 123456 is here"
    assert reconstruct_figshare_url(partial, context) == (
        "https://figshare.com/articles/dataset/title/123456"
    )


def test_reconstruct_figshare_version_suffix():
    partial = "https://figshare.com/s/abc.2.3MouselungdatasetThis"
    assert reconstruct_figshare_url(partial, "") == "https://figshare.com/s/abc"


def test_reconstruct_url_delegates_figshare():
    partial = "https://figshare.com/articles/dataset/title"
    context = "see https://figshare.com/articles/dataset/title 7654321"
    assert reconstruct_url_from_context(partial, context) == (
        "https://figshare.com/articles/dataset/title/7654321"
    )


def test_reconstruct_url_repository_id():
    context = "available at https://dryad.org/ abcdef12 today"
    assert reconstruct_url_from_context("https://dryad.org/", context) == (
        "https://dryad.org/abcdef12"
    )


def test_reconstruct_url_without_repository_is_unchanged():
    partial = "https://example.com/data"
    assert reconstruct_url_from_context(partial, "no repository here") == partial


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://figshare.com/s/abc.v2", "https://figshare.com/s/abc"),
        ("https://figshare.com/s/abc.2.3MouselungdatasetThis", "https://figshare.com/s/abc"),
        ("https://figshare.com/s/abc", "https://figshare.com/s/abc"),
    ],
)
def test_clean_version_suffix(url, expected):
    assert clean_version_suffix(url) == expected


def test_improve_tokenization_splits_words_and_numbers():
    assert improve_tokenization("the method2024results") == "the method 2024 results"


def test_improve_tokenization_collapses_spaces():
    assert improve_tokenization("  text  with   spaces ") == "text with spaces"


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://figshare.com/", True),
        ("https://figshare.com", True),
        ("https://figshare.com/s/abc", False),
        ("https://x.org/dataset/", True),
        ("http://a.io", True),
        ("https://example.org/records/12345", False),
    ],
)
def test_is_incomplete_url(url, expected):
    assert is_incomplete_url(url) is expected