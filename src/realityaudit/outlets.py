from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from urllib.parse import urlparse

from .models import Source

ORIGINAL_SOURCE = "Original Source"

# Public suffixes where the registrable domain keeps one more label.
TWO_LEVEL_TLDS = frozenset(
    {
        "co.uk",
        "org.uk",
        "ac.uk",
        "gov.uk",
        "co.jp",
        "com.au",
        "net.au",
        "com.br",
        "com.ar",
        "com.mx",
        "com.tr",
        "com.cn",
        "com.sg",
        "com.hk",
    }
)

OUTLET_NAMES: dict[str, str] = {
    "nytimes.com": "New York Times",
    "wsj.com": "Wall Street Journal",
    "bbc.co.uk": "BBC News",
    "bbc.com": "BBC News",
    "theguardian.com": "The Guardian",
    "apnews.com": "Associated Press",
    "associatedpress.com": "Associated Press",
    "reuters.com": "Reuters",
    "bloomberg.com": "Bloomberg",
    "ft.com": "Financial Times",
    "forbes.com": "Forbes",
    "cnbc.com": "CNBC",
    "cnn.com": "CNN",
    "foxnews.com": "Fox News",
    "nbcnews.com": "NBC News",
    "cbsnews.com": "CBS News",
    "abcnews.go.com": "ABC News",
    "washingtonpost.com": "The Washington Post",
    "usatoday.com": "USA Today",
    "latimes.com": "Los Angeles Times",
    "time.com": "TIME",
    "economist.com": "The Economist",
    "newsweek.com": "Newsweek",
    "npr.org": "NPR",
    "axios.com": "Axios",
    "politico.com": "Politico",
    "pbs.org": "PBS News",
    "huffpost.com": "HuffPost",
    "vox.com": "Vox",
    "vice.com": "Vice",
    "yahoo.com": "Yahoo",
    "news.yahoo.com": "Yahoo",
    "lemonde.fr": "Le Monde",
    "spiegel.de": "Der Spiegel",
    "elpais.com": "El País",
    "lefigaro.fr": "Le Figaro",
    "elmundo.es": "El Mundo",
    "sueddeutsche.de": "Süddeutsche Zeitung",
    "corriere.it": "Corriere della Sera",
    "thehindu.com": "The Hindu",
    "timesofindia.indiatimes.com": "Times of India",
    "asahi.com": "Asahi Shimbun",
    "nikkei.com": "Nikkei",
    "thetimes.co.uk": "The Times",
    "telegraph.co.uk": "The Telegraph",
    "theverge.com": "The Verge",
    # techcrunch.com stays unmapped; the derived label is "Techcrunch".
}

_SPECIAL_LABELS = {
    "wsj": "Wall Street Journal",
    "ft": "Financial Times",
}

_WWW_PREFIX = re.compile(r"^www\.", re.IGNORECASE)
_LABEL_SPLIT = re.compile(r"[-.]")


def registrable_domain(hostname: str) -> str:
    """Reduce a hostname to the part one organisation registers.

    ``news.yahoo.com`` becomes ``yahoo.com`` while ``bbc.co.uk`` keeps its
    compound suffix. Hostnames with two labels or fewer come back as-is.
    """
    clean = _WWW_PREFIX.sub("", hostname).lower()
    parts = clean.split(".")
    if len(parts) <= 2:
        return clean
    pair = ".".join(parts[-2:])
    if pair in TWO_LEVEL_TLDS:
        return ".".join(parts[-3:])
    return pair


def outlet_name(host_or_domain: str) -> str:
    key = host_or_domain.lower()
    if key in OUTLET_NAMES:
        return OUTLET_NAMES[key]
    registrable = registrable_domain(key)
    if registrable in OUTLET_NAMES:
        return OUTLET_NAMES[registrable]

    parts = registrable.split(".")
    if len(parts) >= 3 and ".".join(parts[-2:]) in TWO_LEVEL_TLDS:
        name_part = ".".join(parts[:-2])
    else:
        name_part = ".".join(parts[:-1])
    base = name_part or re.sub(r"\.[^.]+$", "", registrable)
    if base in _SPECIAL_LABELS:
        return _SPECIAL_LABELS[base]
    tokens = [token for token in _LABEL_SPLIT.split(base) if token]
    label = " ".join(token[:1].upper() + token[1:] for token in tokens)
    return label or registrable


def _hostname(url: str) -> str | None:
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError:
        return None
    if not parsed.scheme or not hostname:
        return None
    return hostname


def build_sources(urls: Sequence[str] | None, submitted_url: str | None = None) -> list[Source]:
    """Turn citation URLs into one display source per registrable domain."""
    candidates = list(urls or [])
    if not candidates and submitted_url:
        candidates = [submitted_url]
    seen: set[str] = set()
    sources: list[Source] = []
    for url in candidates:
        if not isinstance(url, str):
            continue
        hostname = _hostname(url.strip())
        if hostname is None:
            continue
        domain = registrable_domain(hostname)
        if domain in seen:
            continue
        seen.add(domain)
        outlet = ORIGINAL_SOURCE if submitted_url and url == submitted_url else outlet_name(hostname)
        sources.append(Source(url=url, outlet=outlet))
    return sources


def dedupe_urls(urls: Iterable[str], limit: int | None = None) -> list[str]:
    seen: set[str] = set()
    unique: list[str] = []
    for url in urls:
        if not url or url in seen:
            continue
        seen.add(url)
        unique.append(url)
        if limit is not None and len(unique) >= limit:
            break
    return unique
