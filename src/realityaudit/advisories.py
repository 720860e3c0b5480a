from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class WarningLevel:
    level: str
    icon: str
    text: str


def warning_level(confidence: float) -> WarningLevel:
    if confidence >= 90:
        return WarningLevel(
            "high", "✅", "High external verification. Analysis supported by multiple sources."
        )
    if confidence >= 60:
        return WarningLevel(
            "medium", "⚠️", "Partial external verification. Some claims remain unverified."
        )
    if confidence >= 30:
        return WarningLevel(
            "low", "❓", "Low verification. Many claims unverified or weakly supported."
        )
    return WarningLevel(
        "critical",
        "🚨",
        "Very low confidence. No verifiable sources found, treat with extreme caution.",
    )


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count != 1 else ''}"


def dynamic_warnings(
    confidence: float,
    *,
    verdicts: Sequence[str] = (),
    citations: Sequence[str] = (),
    missing_angles: Sequence[str] = (),
) -> list[str]:
    warnings = [warning_level(confidence).text]

    if not citations:
        warnings.append("No external sources available for verification.")
    elif len(citations) < 3:
        warnings.append(f"Limited to {_plural(len(citations), 'source')} for verification.")

    lowered = [verdict.lower() for verdict in verdicts]
    false_count = lowered.count("false")
    misleading_count = lowered.count("misleading")
    if false_count:
        warnings.append(f"{_plural(false_count, 'claim')} verified as false.")
    if misleading_count:
        warnings.append(f"{_plural(misleading_count, 'claim')} identified as misleading.")

    if len(missing_angles) > 3:
        warnings.append("Multiple critical perspectives missing from analysis.")
    return warnings
