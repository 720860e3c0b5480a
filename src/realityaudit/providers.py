"""
HTTP clients for the analysis model and the citation search service.

Both are treated as opaque text-in/JSON-out collaborators. Any transport,
status or decoding problem surfaces as ``AuditProviderError`` so the caller
can fall back to a degraded analysis.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Sequence
from typing import Protocol

import httpx
from pydantic import ValidationError

from .models import ArticleMetadata, RawAnalysis

logger = logging.getLogger(__name__)

TAVILY_SEARCH_URL = "https://api.tavily.com/search"

_CODE_FENCE = re.compile(r"```(?:json)?")

SYSTEM_PROMPT = """You are Reality Auditor, an advanced AI system for analyzing media content. \
Analyze the provided content for truth, bias, omissions, manipulation tactics and fact verification.

Return a JSON object matching this schema exactly:
{
  "truth_score": number (0-10),
  "bias_patterns": string[],
  "missing_angles": string[],
  "citations": string[],
  "summary": string,
  "confidence_level": number (0-1),
  "manipulation_tactics": string[],
  "fact_check_results": [{
    "claim": string,
    "verdict": "true" | "false" | "misleading" | "unverified",
    "evidence": string
  }]
}

Guidelines:
- Truth score: rate 0-10 on factual accuracy, evidence quality and source credibility
- Bias patterns: name specific types (confirmation bias, loaded language, cherry-picking, ...)
- Missing angles: perspectives, counterarguments or context that are absent
- Manipulation tactics: emotional appeals, logical fallacies, misleading statistics, ...
- Fact checks: verify key claims with specific evidence, citing URLs where possible
- Return ONLY valid JSON, no additional text"""


class AuditProviderError(RuntimeError):
    """Raised when the analysis model or the search service cannot be used."""


class AuditAnalyzer(Protocol):
    async def analyze(
        self,
        content: str,
        metadata: ArticleMetadata | None,
        citations: Sequence[str],
    ) -> RawAnalysis: ...


class CitationSearcher(Protocol):
    async def search(self, query: str) -> list[str]: ...


def parse_analysis(text: str | None) -> RawAnalysis:
    if not text:
        raise AuditProviderError("Empty response from analysis model")
    cleaned = _CODE_FENCE.sub("", text).strip()
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise AuditProviderError("Invalid JSON response from analysis model") from exc
    if not isinstance(payload, dict):
        raise AuditProviderError("Analysis model returned a non-object JSON payload")
    try:
        return RawAnalysis.model_validate(payload)
    except (ValidationError, TypeError, ValueError) as exc:
        raise AuditProviderError(f"Analysis payload failed validation: {exc}") from exc


def fallback_analysis(citations: Sequence[str]) -> RawAnalysis:
    return RawAnalysis(
        truth_score=5.0,
        bias_patterns=["Analysis unavailable - service error"],
        missing_angles=["Full analysis could not be completed"],
        citations=list(citations),
        summary=(
            "Unable to complete comprehensive analysis due to service limitations. "
            "The content requires manual review."
        ),
        confidence_level=0.1,
    )


def build_user_prompt(content: str, metadata: ArticleMetadata | None, citations: Sequence[str]) -> str:
    metadata = metadata or ArticleMetadata()
    references = (
        "\n".join(f"{index}. {url}" for index, url in enumerate(citations, start=1))
        if citations
        else "No external sources found"
    )
    return (
        "Please analyze this article content:\n\n"
        "**Metadata:**\n"
        f"- Title: {metadata.title or 'Unknown'}\n"
        f"- Author: {metadata.author or 'Unknown'}\n"
        f"- Outlet: {metadata.outlet or 'Unknown'}\n"
        f"- Date: {metadata.date or 'Unknown'}\n\n"
        f"**Content:**\n{content}\n\n"
        f"**Available Reference Sources:**\n{references}\n\n"
        "Provide your comprehensive analysis as valid JSON only."
    )


class OpenAIAuditAnalyzer:
    def __init__(
        self,
        api_key: str,
        *,
        model: str = "gpt-4o",
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 60.0,
        temperature: float = 0.3,
        max_tokens: int = 4000,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._endpoint = f"{base_url.rstrip('/')}/chat/completions"
        self._timeout = timeout
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._transport = transport

    async def analyze(
        self,
        content: str,
        metadata: ArticleMetadata | None,
        citations: Sequence[str],
    ) -> RawAnalysis:
        body = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_user_prompt(content, metadata, citations)},
            ],
            "response_format": {"type": "json_object"},
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.post(self._endpoint, json=body, headers=headers)
                response.raise_for_status()
                payload = response.json()
            except httpx.TimeoutException as exc:
                raise AuditProviderError(f"Analysis model timeout: {exc}") from exc
            except httpx.HTTPError as exc:
                raise AuditProviderError(f"Analysis model API error: {exc}") from exc
            except json.JSONDecodeError as exc:
                raise AuditProviderError("Analysis model API returned malformed JSON") from exc

        try:
            text = payload["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise AuditProviderError("Empty response from analysis model") from exc
        logger.debug("Raw analysis response length: %d", len(text or ""))
        return parse_analysis(text)


class TavilySearchClient:
    def __init__(
        self,
        api_key: str,
        *,
        max_results: int = 5,
        search_depth: str = "basic",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._max_results = max_results
        self._search_depth = search_depth
        self._timeout = timeout
        self._transport = transport

    async def search(self, query: str) -> list[str]:
        body = {
            "query": query,
            "max_results": self._max_results,
            "search_depth": self._search_depth,
            "include_answer": False,
            "include_images": False,
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = await client.post(TAVILY_SEARCH_URL, json=body, headers=headers)
                response.raise_for_status()
                payload = response.json()
            except httpx.HTTPError as exc:
                raise AuditProviderError(f"Citation search API error: {exc}") from exc
            except json.JSONDecodeError as exc:
                raise AuditProviderError("Citation search returned malformed JSON") from exc
        if not isinstance(payload, dict):
            return []
        results = payload.get("results") or []
        return [item["url"] for item in results if isinstance(item, dict) and item.get("url")]
