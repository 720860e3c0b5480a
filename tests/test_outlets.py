import pytest

from realityaudit.outlets import (
    OUTLET_NAMES,
    ORIGINAL_SOURCE,
    build_sources,
    dedupe_urls,
    outlet_name,
    registrable_domain,
)


@pytest.mark.parametrize(
    "hostname, expected",
    [
        ("nytimes.com", "nytimes.com"),
        ("reuters.com", "reuters.com"),
        ("news.yahoo.com", "yahoo.com"),
        ("edition.cnn.com", "cnn.com"),
        ("www.Reuters.com", "reuters.com"),
        ("bbc.co.uk", "bbc.co.uk"),
        ("www.bbc.co.uk", "bbc.co.uk"),
        ("something.gov.uk", "something.gov.uk"),
        ("news.com.au", "news.com.au"),
        ("www.smh.com.au", "smh.com.au"),
        ("localhost", "localhost"),
        ("", ""),
    ],
)
def test_registrable_domain(hostname, expected):
    assert registrable_domain(hostname) == expected


def test_every_curated_outlet_resolves_to_its_name():
    for domain, name in OUTLET_NAMES.items():
        assert outlet_name(domain) == name


def test_outlet_name_known_and_subdomains():
    assert outlet_name("nytimes.com") == "New York Times"
    assert outlet_name("bbc.co.uk") == "BBC News"
    assert outlet_name("news.yahoo.com") == "Yahoo"
    assert outlet_name("abcnews.go.com") == "ABC News"
    assert outlet_name("www.reuters.com") == "Reuters"
    assert outlet_name("uk.reuters.com") == "Reuters"


def test_outlet_name_derived_labels():
    assert outlet_name("techcrunch.com") == "Techcrunch"
    assert outlet_name("my-weird-blog.net") == "My Weird Blog"
    assert outlet_name("smh.com.au") == "Smh"
    assert outlet_name("blog.example-site.co.uk") == "Example Site"


def test_outlet_name_special_cases():
    assert outlet_name("markets.wsj.com") == "Wall Street Journal"
    assert outlet_name("FT.com") == "Financial Times"


def test_outlet_name_never_empty():
    assert outlet_name("localhost") == "Localhost"
    assert outlet_name("") == ""


def test_build_sources_dedupes_by_registrable_domain():
    sources = build_sources(
        [
            "https://www.reuters.com/a",
            "https://reuters.com/b",
            "https://www.nytimes.com/c",
        ]
    )
    assert [source.url for source in sources] == [
        "https://www.reuters.com/a",
        "https://www.nytimes.com/c",
    ]
    assert [source.outlet for source in sources] == ["Reuters", "New York Times"]


def test_build_sources_maps_known_outlets():
    sources = build_sources(
        [
            "https://www.reuters.com/world/europe/sample-article",
            "https://reuters.com/another/page",
            "https://www.nytimes.com/2025/08/30/world/sample.html",
            "https://www.bbc.co.uk/news/world-sample",
        ]
    )
    assert len(sources) == 3
    assert sorted(source.outlet for source in sources) == ["BBC News", "New York Times", "Reuters"]


def test_build_sources_uses_submitted_url_when_no_citations():
    sources = build_sources([], "https://example.com/original-article")
    assert len(sources) == 1
    assert sources[0].outlet == ORIGINAL_SOURCE
    assert sources[0].url == "https://example.com/original-article"


def test_build_sources_labels_submitted_url_in_citation_list():
    submitted = "https://example.com/original"
    sources = build_sources(["https://cnn.com/story", submitted, "https://example.com/other"], submitted)
    assert [source.outlet for source in sources] == ["CNN", ORIGINAL_SOURCE]


def test_build_sources_skips_malformed_urls():
    sources = build_sources(["not a url", "https://cnn.com/world/2025/sample", "http://[::1"])
    assert len(sources) == 1
    assert sources[0].url == "https://cnn.com/world/2025/sample"
    assert sources[0].outlet == "CNN"


def test_build_sources_handles_missing_input():
    assert build_sources(None) == []
    assert build_sources([]) == []


def test_dedupe_urls_preserves_order_and_caps():
    urls = ["https://a.com/1", "https://b.com/2", "https://a.com/1", "", "https://c.com/3"]
    assert dedupe_urls(urls) == ["https://a.com/1", "https://b.com/2", "https://c.com/3"]
    assert dedupe_urls(urls, limit=2) == ["https://a.com/1", "https://b.com/2"]
