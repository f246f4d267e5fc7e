import pytest

from hapiq.dedup import (
    adjust_confidence_for_corruption,
    deduplicate_links,
    normalize_doi,
    normalize_figshare,
    normalize_generic_url,
    normalize_geo_id,
    normalize_url_for_sorting,
    normalize_zenodo,
    normalized_key,
    score_link_quality,
    select_best_candidate,
    sort_links,
)
from hapiq.types import ExtractedLink, LinkType


def test_deduplicate_links_keeps_first_occurrence():
    links = [
        ExtractedLink(url="https://example.com/1", type=LinkType.URL, confidence=0.8),
        ExtractedLink(url="https://example.com/2", type=LinkType.URL, confidence=0.9),
        ExtractedLink(url="https://example.com/1", type=LinkType.URL, confidence=0.7),
        ExtractedLink(url="https://example.com/3", type=LinkType.DOI, confidence=0.95),
    ]
    deduped = deduplicate_links(links)
    assert len(deduped) == 3
    first = [link for link in deduped if link.url == "https://example.com/1"]
    assert len(first) == 1
    assert first[0].confidence == 0.8


def test_deduplicate_merges_doi_variants():
    links = [
        ExtractedLink(url="https://doi.org/10.1234/abcd|article", type=LinkType.DOI, confidence=0.9),
        ExtractedLink(url="https://doi.org/10.1234/abcd", type=LinkType.DOI, confidence=0.9),
    ]
    deduped = deduplicate_links(links)
    assert [link.url for link in deduped] == ["https://doi.org/10.1234/abcd"]


def test_deduplicate_orders_by_key():
    links = [
        ExtractedLink(url="https://b.example.com", type=LinkType.URL, confidence=0.5),
        ExtractedLink(url="https://a.example.com", type=LinkType.URL, confidence=0.5),
    ]
    assert [link.url for link in deduplicate_links(links)] == [
        "https://a.example.com",
        "https://b.example.com",
    ]


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://doi.org/10.1234/ABC", "doi:10.1234/abc"),
        ("http://dx.doi.org/10.1234/abc", "doi:10.1234/abc"),
        ("doi:10.1234/abc", "doi:10.1234/abc"),
        ("https://doi.org/10.1234/abc|xyz", "doi:10.1234/abc"),
        ("https://doi.org/10.1234/abcArticle", "doi:10.1234/abc"),
        ("https://doi.org/10.1234/abcNatureComms", "doi:10.1234/abc"),
        ("https://doi.org/10.1234/abcSupplementary", "doi:10.1234/abc"),
        ("https://doi.org/10.1038/s41467-021-23778-62", "doi:10.1038/s41467-021-23778-6"),
        ("https://doi.org/10.1234/x-64", "doi:10.1234/x-"),
        ("https://doi.org/10.1234/x66", "doi:10.1234/x"),
        ("https://example.com/3", "doi:https://example.com/3"),
    ],
)
def test_normalize_doi(url, expected):
    assert normalize_doi(url) == expected


@pytest.mark.parametrize(
    "url, expected",
    [
        (
            "https://figshare.com/s/865e694ad06d5857db4b.2.3Mouselung",
            "figshare:s/865e694ad06d5857db4b",
        ),
        (
            "https://www.figshare.com/articles/dataset/title/789012/2",
            "figshare:articles/dataset/title/789012",
        ),
        ("https://figshare.com/articles/dataset", "figshare:articles/dataset"),
        ("https://example.com/x", "figshare:example.com/x"),
    ],
)
def test_normalize_figshare(url, expected):
    assert normalize_figshare(url) == expected


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://zenodo.org/record/123456?foo=1", "zenodo:record/123456"),
        ("https://www.zenodo.org/record/123456/files/a.zip", "zenodo:record/123456"),
        ("https://zenodo.org/records/1", "zenodo:zenodo.org/records/1"),
        ("https://example.com/a", "zenodo:example.com/a"),
    ],
)
def test_normalize_zenodo(url, expected):
    assert normalize_zenodo(url) == expected


@pytest.mark.parametrize(
    "url, expected",
    [
        ("GSE123456", "geo:gse123456"),
        ("https://www.ncbi.nlm.nih.gov/geo/query/acc.cgi?acc=GSE123", "geo:gse123"),
        ("gpl570", "geo:gpl570"),
        ("foo", "geo:foo"),
    ],
)
def test_normalize_geo_id(url, expected):
    assert normalize_geo_id(url) == expected


def test_normalize_generic_url_drops_scheme_query_fragment():
    assert normalize_generic_url("https://www.Example.com/a?b=1#c") == "url:example.com/a"
    assert normalize_generic_url("http://example.com/a#frag") == "url:example.com/a"


def test_normalized_key_dispatches_on_type():
    assert normalized_key("GSE1", LinkType.GEO_ID) == "geo:gse1"
    assert normalized_key("https://doi.org/10.1/x", LinkType.DOI) == "doi:10.1/x"
    assert normalized_key("https://zenodo.org/record/5", LinkType.ZENODO) == "zenodo:record/5"
    assert normalized_key("https://figshare.com/s/ab", LinkType.FIGSHARE) == "figshare:s/ab"
    assert normalized_key("https://example.com/a", LinkType.URL) == "url:example.com/a"


def test_normalize_url_for_sorting():
    assert normalize_url_for_sorting("HTTPS://www.Example.com/") == "example.com"
    assert normalize_url_for_sorting("https://figshare.com/s/ab cd") == "figshare.com/s/abcd"
    assert normalize_url_for_sorting("https://other.com/a b") == "other.com/a b"


def test_sort_links_orders_by_url_type_page_confidence():
    links = [
        ExtractedLink(url="https://b.com", type=LinkType.URL, page=1, confidence=0.5),
        ExtractedLink(url="http://www.a.com", type=LinkType.URL, page=1, confidence=0.5),
        ExtractedLink(url="https://a.com", type=LinkType.DOI, page=1, confidence=0.5),
        ExtractedLink(url="https://c.com", type=LinkType.URL, page=2, confidence=0.9),
        ExtractedLink(url="https://c.com", type=LinkType.URL, page=1, confidence=0.4),
        ExtractedLink(url="https://c.com", type=LinkType.URL, page=1, confidence=0.8),
    ]
    ordered = sort_links(links)
    assert [(link.url, link.type, link.page, link.confidence) for link in ordered] == [
        ("https://a.com", LinkType.DOI, 1, 0.5),
        ("http://www.a.com", LinkType.URL, 1, 0.5),
        ("https://b.com", LinkType.URL, 1, 0.5),
        ("https://c.com", LinkType.URL, 1, 0.8),
        ("https://c.com", LinkType.URL, 1, 0.4),
        ("https://c.com", LinkType.URL, 2, 0.9),
    ]


def test_score_link_quality_arxiv_bonus():
    link = ExtractedLink(url="https://arxiv.org/abs/1802.03426", type=LinkType.URL, confidence=0.5)
    assert score_link_quality(link) == pytest.approx(0.8)


def test_score_link_quality_valid_doi():
    link = ExtractedLink(url="https://doi.org/10.1234/abcd", type=LinkType.DOI, confidence=0.9)
    assert score_link_quality(link) == pytest.approx(1.2)


def test_score_link_quality_pipe_penalty():
    link = ExtractedLink(url="https://doi.org/10.1234/ab|cd", type=LinkType.DOI, confidence=0.9)
    assert score_link_quality(link) == pytest.approx(0.7)


def test_score_link_quality_long_url_penalty():
    url = "http://example.com/" + "a" * 381
    link = ExtractedLink(url=url, type=LinkType.URL, confidence=0.5)
    assert len(url) == 400
    assert score_link_quality(link) == pytest.approx(0.4)


def test_select_best_candidate_prefers_higher_score_and_first_on_tie():
    low = ExtractedLink(url="http://example.com/a", type=LinkType.URL, confidence=0.5)
    high = ExtractedLink(url="https://example.com/a", type=LinkType.URL, confidence=0.5)
    assert select_best_candidate([low, high]) is high
    twin = ExtractedLink(url="https://example.com/a", type=LinkType.URL, confidence=0.5)
    assert select_best_candidate([high, twin]) is high


def test_select_best_candidate_empty_raises():
    with pytest.raises(ValueError):
        select_best_candidate([])


@pytest.mark.parametrize(
    "url, link_type, expected",
    [
        ("https://example.com/a|b", LinkType.URL, 0.1),
        ("https://doi.org/10.1234/abcarticle", LinkType.DOI, 0.15),
        ("https://example.com/article", LinkType.URL, 0.9),
        ("https://doi.org/10.1234/abcnature", LinkType.DOI, 0.15),
        ("https://www.nature.com/articles/x", LinkType.URL, 0.9),
        ("https://example.com/supplementary", LinkType.URL, 0.2),
        ("https://doi.org/10.1038/s41467-021-23778-62", LinkType.DOI, 0.1),
        ("https://example.com/x-62", LinkType.URL, 0.9),
        ("https://doi.org/10.1234/abcd", LinkType.DOI, 0.9),
    ],
)
def test_adjust_confidence_for_corruption(url, link_type, expected):
    link = ExtractedLink(url=url, type=link_type, confidence=0.9)
    adjusted = adjust_confidence_for_corruption([link])
    assert len(adjusted) == 1
    assert adjusted[0].confidence == pytest.approx(expected)
    assert adjusted[0].url == url


def test_adjust_confidence_never_raises_confidence():
    link = ExtractedLink(url="https://example.com/a|b", type=LinkType.URL, confidence=0.05)
    assert adjust_confidence_for_corruption([link])[0].confidence == 0.05