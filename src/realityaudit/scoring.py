from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field

from .advisories import dynamic_warnings
from .claims import calculate_dynamic_confidence, calculate_truth_score, round_half_up
from .models import AuditRecord, TrustBadge

CLICKBAIT_TACTICS = ("clickbait", "misleading headline", "sensationalism")
CLICKBAIT_CAP = 7.0
MAX_MISSING_ANGLE_PENALTY = 2
MAX_BIAS_PENALTY = 3
SUMMARY_LIMIT = 500

_SENTENCE = re.compile(r"[^.!?]+[.!?]+")


@dataclass(frozen=True)
class ScoreBreakdown:
    base: float
    adjusted: float
    penalties: list[str] = field(default_factory=list)


def _fixed(value: float) -> str:
    """One-decimal display; ties round away from zero."""
    magnitude = f"{round_half_up(abs(value), 1):.1f}"
    return f"-{magnitude}" if value < 0 else magnitude


def _has_clickbait(tactics: list[str]) -> bool:
    return any(marker in tactic.lower() for tactic in tactics for marker in CLICKBAIT_TACTICS)


def score_breakdown(audit: AuditRecord) -> ScoreBreakdown:
    """Recompute the adjusted truth score and record every step that moved it."""
    score = audit.truth_score_raw
    penalties: list[str] = []

    if _has_clickbait(audit.manipulation_tactics):
        score = min(score, CLICKBAIT_CAP)
        penalties.append(f"Clickbait detected (capped at {CLICKBAIT_CAP:.0f})")

    missing = len(audit.missing_angles)
    if missing:
        penalty = min(MAX_MISSING_ANGLE_PENALTY, missing)
        score -= penalty
        penalties.append(f"Missing {missing} key angles (-{penalty})")

    biases = len(audit.bias_patterns)
    if biases:
        penalty = min(MAX_BIAS_PENALTY, biases)
        score -= penalty
        penalties.append(f"{biases} bias patterns (-{penalty})")

    citations = len(audit.citations)
    if citations == 0:
        score -= 2
        penalties.append("No verifiable sources (-2)")
    elif citations < 3:
        score -= 1
        penalties.append("Limited sources (-1)")

    if audit.fact_check_results:
        verdicts = [claim.verdict for claim in audit.fact_check_results]
        blended = (score + calculate_truth_score(verdicts)) / 2
        adjustment = blended - score
        counts = Counter(verdicts)
        sign = "+" if adjustment > 0 else ""
        penalties.append(
            f"Fact checks: {counts['true']} TRUE, {counts['unverified']} UNVERIFIED, "
            f"{counts['misleading']} MISLEADING, {counts['false']} FALSE ({sign}{_fixed(adjustment)})"
        )
        score = blended

    adjusted = max(0.0, min(10.0, score))
    return ScoreBreakdown(base=audit.truth_score_raw, adjusted=adjusted, penalties=penalties)


def adjust_truth_score(audit: AuditRecord) -> float:
    return score_breakdown(audit).adjusted


def get_trust_badge(audit: AuditRecord) -> TrustBadge:
    adjusted = adjust_truth_score(audit)
    source_count = len(audit.citations)
    failed_checks = sum(
        1 for claim in audit.fact_check_results if claim.verdict in ("false", "misleading")
    )

    if audit.manipulation_tactics and (adjusted < 4 or failed_checks > 2):
        return TrustBadge(
            level="manipulated",
            icon="🚨",
            label="Manipulated",
            description="Contains deliberate manipulation or misinformation",
        )
    if source_count == 0 or adjusted < 5:
        return TrustBadge(
            level="limited",
            icon="⚠️",
            label="Limited Verification",
            description="Insufficient sources or evidence for verification",
        )
    if source_count < 3 or adjusted < 7 or len(audit.missing_angles) > 2:
        return TrustBadge(
            level="partial",
            icon="🔍",
            label="Partially Verified",
            description="Some claims verified but gaps remain",
        )
    return TrustBadge(
        level="verified",
        icon="✅",
        label="Well Sourced",
        description=f"Verified with {source_count}+ credible sources",
    )


def build_transparency_report(audit: AuditRecord) -> list[str]:
    breakdown = score_breakdown(audit)
    report = [f"Started with base accuracy: {_fixed(breakdown.base)}/10"]
    report.extend(f"• {penalty}" for penalty in breakdown.penalties)
    report.append(f"Final truth score: {_fixed(breakdown.adjusted)}/10")
    return report


def build_refined_summary(audit: AuditRecord) -> str:
    parts: list[str] = []

    if audit.summary:
        sentences = _SENTENCE.findall(audit.summary)
        lead = " ".join(sentence.strip() for sentence in sentences[:2]) if sentences else audit.summary
        if lead.strip():
            parts.append(lead.strip())

    warnings: list[str] = []
    if audit.manipulation_tactics:
        warnings.append(f"⚠️ Manipulation detected: {', '.join(audit.manipulation_tactics[:3])}")
    if audit.bias_patterns:
        warnings.append(f"📊 Shows bias: {', '.join(audit.bias_patterns[:2])}")
    if audit.missing_angles:
        warnings.append(f"❓ Missing: {', '.join(audit.missing_angles[:2])}")
    if not audit.citations:
        warnings.append("🚨 No verifiable sources provided")
    if warnings:
        parts.append(". ".join(warnings))

    adjusted = adjust_truth_score(audit)
    if adjusted < 4:
        parts.append("⛔ Exercise extreme caution with this content.")
    elif adjusted < 7:
        parts.append("⚡ Verify key claims independently.")

    return " ".join(parts)[:SUMMARY_LIMIT]


def calculate_confidence_level(audit: AuditRecord) -> float:
    return calculate_dynamic_confidence(audit.fact_check_results) / 100


def score_audit(audit: AuditRecord) -> AuditRecord:
    """Return a copy of the record with every derived field filled in."""
    breakdown = score_breakdown(audit)
    confidence = calculate_dynamic_confidence(audit.fact_check_results)
    return audit.model_copy(
        update={
            "truth_score_adjusted": breakdown.adjusted,
            "confidence_level": confidence / 100,
            "trust_badge": get_trust_badge(audit),
            "transparency": build_transparency_report(audit),
            "refined_summary": build_refined_summary(audit),
            "advisories": dynamic_warnings(
                confidence,
                verdicts=[claim.verdict for claim in audit.fact_check_results],
                citations=audit.citations,
                missing_angles=audit.missing_angles,
            ),
        }
    )
