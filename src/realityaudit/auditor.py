from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

import httpx

from .cache import ResultCache, cache_key
from .claims import process_fact_check_results
from .config import Settings, get_settings
from .models import ArticleMetadata, AuditRecord, AuditRequest, AuditResponse, RawAnalysis
from .outlets import build_sources, dedupe_urls
from .providers import AuditAnalyzer, AuditProviderError, CitationSearcher, fallback_analysis
from .scoring import score_audit

logger = logging.getLogger(__name__)

ArticleFetcher = Callable[[str], Awaitable[str | None]]

SHORT_CONTENT_WARNING = (
    "Partial content detected. Truth Score may be distorted. "
    "Provide full article or URL for best accuracy."
)
FETCH_FAILED_WARNING = "Failed to fetch full article. Analysis based on provided snippet only."
SEARCH_UNAVAILABLE_WARNING = (
    "Citation search unavailable. Analysis may have limited external verification."
)
QUERY_SLICE = 500


class AuditInputError(ValueError):
    """Raised when a request carries no article text to audit."""


class ArticleFetchError(RuntimeError):
    """Raised by article fetchers that cannot retrieve a URL."""


def search_queries(content: str, metadata: ArticleMetadata | None) -> list[str]:
    title = metadata.title if metadata else None
    queries = [title, content[:QUERY_SLICE], content[-QUERY_SLICE:]]
    return list(dict.fromkeys(query for query in queries if query and query.strip()))


def build_audit_record(analysis: RawAnalysis, citations: list[str], warnings: list[str]) -> AuditRecord:
    summary = process_fact_check_results(analysis.fact_check_results, citations)
    record = AuditRecord(
        truth_score_raw=analysis.truth_score,
        summary=analysis.summary,
        bias_patterns=analysis.bias_patterns,
        missing_angles=analysis.missing_angles,
        manipulation_tactics=analysis.manipulation_tactics,
        citations=citations,
        fact_check_results=summary.claims,
        warnings=list(warnings),
    )
    return score_audit(record)


@dataclass
class RealityAuditor:
    analyzer: AuditAnalyzer
    cache: ResultCache
    searcher: CitationSearcher | None = None
    article_fetcher: ArticleFetcher | None = None
    settings: Settings = field(default_factory=get_settings)

    async def audit(self, request: AuditRequest) -> AuditResponse:
        start = time.perf_counter()
        warnings: list[str] = []

        article_text = await self._resolve_text(request, warnings)
        if not article_text or not article_text.strip():
            raise AuditInputError("No article text available")
        if len(article_text) < self.settings.short_content_threshold:
            logger.info("Short content warning: only %d characters", len(article_text))
            warnings.append(SHORT_CONTENT_WARNING)

        key = cache_key(article_text)
        lookup = await self.cache.get(key)
        if lookup.value is not None:
            cached = lookup.value
            sources = cached.sources or build_sources(cached.citations, request.url)
            elapsed = self._elapsed_ms(start)
            logger.info("Cache served %s from %s in %dms", key[:20], lookup.source, elapsed)
            return AuditResponse(
                **cached.model_dump(exclude={"sources", "warnings"}),
                sources=sources,
                warnings=list(dict.fromkeys([*cached.warnings, *warnings])),
                cache_status="hit",
                cache_source=lookup.source,
                processing_time_ms=elapsed,
            )

        logger.info("Starting new reality audit (%d characters)", len(article_text))
        citations = await self._search_citations(article_text, request.metadata, warnings)
        try:
            analysis = await self.analyzer.analyze(article_text, request.metadata, citations)
        except AuditProviderError as exc:
            logger.error("Analysis failed, using fallback analysis: %s", exc)
            analysis = fallback_analysis(citations)

        record = build_audit_record(analysis, citations or analysis.citations, warnings)
        record = record.model_copy(update={"sources": build_sources(record.citations, request.url)})
        await self.cache.set(key, record)

        elapsed = self._elapsed_ms(start)
        logger.info(
            "Audit completed: truth=%.1f adjusted=%.1f citations=%d warnings=%d in %dms",
            record.truth_score_raw,
            record.truth_score_adjusted or 0.0,
            len(record.citations),
            len(record.warnings),
            elapsed,
        )
        return AuditResponse(
            **record.model_dump(),
            cache_status="miss",
            cache_source="none",
            processing_time_ms=elapsed,
        )

    async def _resolve_text(self, request: AuditRequest, warnings: list[str]) -> str | None:
        if not request.url or self.article_fetcher is None:
            return request.content
        try:
            fetched = await self.article_fetcher(request.url)
        except (ArticleFetchError, httpx.HTTPError) as exc:
            logger.warning("Failed to fetch full article from %s: %s", request.url, exc)
            warnings.append(FETCH_FAILED_WARNING)
            return request.content
        if fetched:
            logger.info("Fetched full article (%d characters)", len(fetched))
            return fetched
        return request.content

    async def _search_citations(
        self,
        content: str,
        metadata: ArticleMetadata | None,
        warnings: list[str],
    ) -> list[str]:
        if self.searcher is None:
            warnings.append(SEARCH_UNAVAILABLE_WARNING)
            return []
        queries = search_queries(content, metadata)
        try:
            results = await asyncio.gather(*(self.searcher.search(query) for query in queries))
        except AuditProviderError as exc:
            logger.warning("Citation search failed, continuing without citations: %s", exc)
            warnings.append(SEARCH_UNAVAILABLE_WARNING)
            return []
        citations = dedupe_urls((url for batch in results for url in batch), self.settings.max_citations)
        logger.info("Found %d unique citations from %d queries", len(citations), len(queries))
        return citations

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return int((time.perf_counter() - start) * 1000)
