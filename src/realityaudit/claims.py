"""
Claim verdict aggregation.

Verdict weights for the truth score:
    true = 1.0, unverified = 0.5, misleading = 0.25, false = 0.0

Two confidence formulas are kept apart on purpose. ``calculate_confidence``
measures how much of the claim surface was checked (0-100).
``calculate_dynamic_confidence`` measures verification depth per claim and
maps it onto 40-95; it is the figure shown to readers.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from .models import ClaimResult, FactCheckResult, Verdict, VerificationStatus

KNOWN_VERDICTS: frozenset[str] = frozenset({"true", "false", "misleading"})

VERDICT_WEIGHTS: dict[str, float] = {
    "true": 1.0,
    "unverified": 0.5,
    "misleading": 0.25,
    "false": 0.0,
}

STATUS_WEIGHTS: dict[str, float] = {
    "verified": 1.0,
    "partial": 0.5,
    "unverified": 0.0,
}

NEUTRAL_TRUTH_SCORE = 5.0
NEUTRAL_CONFIDENCE = 50
MIN_DYNAMIC_CONFIDENCE = 40
DYNAMIC_CONFIDENCE_SPAN = 55

_VERDICT_LABELS = {
    "true": "TRUE",
    "false": "FALSE",
    "misleading": "MISLEADING",
    "unverified": "UNVERIFIED",
}
_VERDICT_ICONS = {
    "true": "✅",
    "false": "❌",
    "misleading": "⚠️",
    "unverified": "❓",
}


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def normalize_verdict(value: Any) -> Verdict:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in KNOWN_VERDICTS:
            return lowered  # type: ignore[return-value]
    return "unverified"


def has_external_source(evidence: str | None) -> bool:
    if not evidence:
        return False
    return "http" in evidence or "www" in evidence


def verification_status(verdict: str, evidence: str | None) -> VerificationStatus:
    external = has_external_source(evidence)
    if external and verdict in ("true", "false"):
        return "verified"
    if verdict == "misleading" or (external and verdict == "unverified"):
        return "partial"
    return "unverified"


def calculate_truth_score(verdicts: Iterable[str]) -> float:
    """Balanced 0-10 score from the verdict distribution; neutral 5.0 when empty."""
    normalized = [normalize_verdict(verdict) for verdict in verdicts]
    if not normalized:
        return NEUTRAL_TRUTH_SCORE
    average = sum(VERDICT_WEIGHTS[verdict] for verdict in normalized) / len(normalized)
    return round_half_up(average * 10, 1)


def calculate_confidence(total: int, verified: int, cited: int) -> int:
    if total == 0:
        return NEUTRAL_CONFIDENCE
    coverage = verified / total
    citation_strength = cited / total
    confidence = (coverage * 0.7 + citation_strength * 0.3) * 100
    return int(max(0.0, min(100.0, round_half_up(confidence))))


def calculate_dynamic_confidence(claims: Sequence[ClaimResult]) -> int:
    if not claims:
        return NEUTRAL_CONFIDENCE
    weight = sum(STATUS_WEIGHTS[claim.verification_status] for claim in claims)
    ratio = weight / len(claims)
    return int(round_half_up(MIN_DYNAMIC_CONFIDENCE + ratio * DYNAMIC_CONFIDENCE_SPAN))


@dataclass
class ClaimSummary:
    claims: list[ClaimResult] = field(default_factory=list)
    truth_score: float = NEUTRAL_TRUTH_SCORE
    confidence: int = NEUTRAL_CONFIDENCE
    coverage: int = NEUTRAL_CONFIDENCE


def to_claim_result(result: FactCheckResult, citation: str | None = None, index: int = 0) -> ClaimResult:
    verdict = normalize_verdict(result.verdict)
    return ClaimResult(
        claim=result.claim,
        verdict=verdict,
        evidence=result.evidence,
        citation=citation,
        verification_status=verification_status(verdict, result.evidence),
        footnote=index + 1 if citation else None,
    )


def process_fact_check_results(
    results: Sequence[FactCheckResult],
    citations: Sequence[str] | None = None,
) -> ClaimSummary:
    """Normalize raw fact checks, pair them with citations and score them."""
    citations = list(citations or [])
    claims = [
        to_claim_result(result, citations[index] if index < len(citations) else None, index)
        for index, result in enumerate(results)
    ]
    total = len(claims)
    verified = sum(1 for claim in claims if claim.verdict != "unverified")
    cited = sum(1 for claim in claims if claim.citation)
    return ClaimSummary(
        claims=claims,
        truth_score=calculate_truth_score(claim.verdict for claim in claims),
        confidence=calculate_dynamic_confidence(claims),
        coverage=calculate_confidence(total, verified, cited),
    )


def unique_citations(claims: Iterable[ClaimResult]) -> list[str]:
    return list(dict.fromkeys(claim.citation for claim in claims if claim.citation))


def verdict_label(verdict: str) -> str:
    return _VERDICT_LABELS[normalize_verdict(verdict)]


def verdict_icon(verdict: str) -> str:
    return _VERDICT_ICONS[normalize_verdict(verdict)]


def confidence_band(confidence: float) -> str:
    if confidence >= 80:
        return "high"
    if confidence >= 60:
        return "medium"
    return "low"


def confidence_badge(confidence: float) -> str:
    band = confidence_band(confidence)
    icon = {"high": "🟢", "medium": "🟡", "low": "🔴"}[band]
    return f"{icon} {band.capitalize()}"
