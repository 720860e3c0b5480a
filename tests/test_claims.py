import pytest

from realityaudit.claims import (
    calculate_confidence,
    calculate_dynamic_confidence,
    calculate_truth_score,
    confidence_badge,
    confidence_band,
    normalize_verdict,
    process_fact_check_results,
    unique_citations,
    verdict_icon,
    verdict_label,
    verification_status,
)
from realityaudit.models import ClaimResult, FactCheckResult


def _claim(status, verdict="true", citation=None):
    return ClaimResult(
        claim="Claim",
        verdict=verdict,
        evidence="",
        citation=citation,
        verification_status=status,
    )


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("true", "true"),
        ("TRUE", "true"),
        (" False ", "false"),
        ("Misleading", "misleading"),
        ("unverified", "unverified"),
        ("partly true", "unverified"),
        ("", "unverified"),
        (None, "unverified"),
        (1, "unverified"),
    ],
)
def test_normalize_verdict(raw, expected):
    assert normalize_verdict(raw) == expected


def test_truth_score_fixed_points():
    assert calculate_truth_score([]) == 5.0
    assert calculate_truth_score(["true"]) == 10.0
    assert calculate_truth_score(["false"]) == 0.0
    assert calculate_truth_score(["true", "false"]) == 5.0
    assert calculate_truth_score(["misleading"]) == 2.5
    assert calculate_truth_score(["unverified"]) == 5.0


def test_truth_score_rounds_to_one_decimal():
    # (1 + 0.5 + 0.25) / 3 * 10 = 5.833...
    assert calculate_truth_score(["true", "unverified", "misleading"]) == 5.8
    # (1 + 1 + 0.25) / 3 * 10 = 7.5
    assert calculate_truth_score(["true", "true", "misleading"]) == 7.5


def test_truth_score_normalizes_unknown_verdicts():
    assert calculate_truth_score(["mostly true"]) == 5.0
    assert calculate_truth_score(["TRUE", "bogus"]) == 7.5


def test_truth_score_stays_in_bounds():
    verdict_sets = [
        ["true"] * 7,
        ["false"] * 4,
        ["misleading", "false", "unverified", "true", "true"],
    ]
    for verdicts in verdict_sets:
        assert 0.0 <= calculate_truth_score(verdicts) <= 10.0


def test_simple_confidence():
    assert calculate_confidence(0, 0, 0) == 50
    assert calculate_confidence(4, 4, 4) == 100
    assert calculate_confidence(4, 0, 0) == 0
    assert calculate_confidence(3, 2, 3) == 77


def test_dynamic_confidence_fixed_points():
    assert calculate_dynamic_confidence([]) == 50
    assert calculate_dynamic_confidence([_claim("verified"), _claim("verified")]) == 95
    assert calculate_dynamic_confidence([_claim("unverified"), _claim("unverified")]) == 40


def test_dynamic_confidence_half_ratio_rounds_half_up():
    # 40 + 0.5 * 55 = 67.5
    claims = [_claim("verified"), _claim("unverified")]
    assert calculate_dynamic_confidence(claims) == 68


def test_dynamic_confidence_mixed_statuses():
    claims = [
        _claim("verified"),
        _claim("verified", verdict="false"),
        _claim("partial", verdict="misleading"),
        _claim("unverified", verdict="unverified"),
    ]
    # ratio = (2 + 0.5) / 4 = 0.625 -> 74.375
    assert calculate_dynamic_confidence(claims) == 74


def test_confidence_formulas_differ_for_same_input():
    claims = [_claim("verified"), _claim("unverified", verdict="unverified")]
    dynamic = calculate_dynamic_confidence(claims)
    simple = calculate_confidence(2, 1, 0)
    assert dynamic == 68
    assert simple == 35


@pytest.mark.parametrize(
    "verdict, evidence, expected",
    [
        ("true", "See https://reuters.com/fact", "verified"),
        ("false", "Reported at www.bbc.co.uk", "verified"),
        ("true", "No source given", "unverified"),
        ("misleading", "", "partial"),
        ("unverified", "https://example.com", "partial"),
        ("unverified", "", "unverified"),
    ],
)
def test_verification_status(verdict, evidence, expected):
    assert verification_status(verdict, evidence) == expected


def test_process_fact_check_results_normalizes_and_pairs_citations():
    results = [
        FactCheckResult(claim="A", verdict="TRUE", evidence="https://apnews.com/a"),
        FactCheckResult(claim="B", verdict="Half-true", evidence="nothing"),
        FactCheckResult(claim="C", verdict="misleading", evidence=""),
    ]
    summary = process_fact_check_results(results, ["https://apnews.com/a", "https://npr.org/b"])

    assert [claim.verdict for claim in summary.claims] == ["true", "unverified", "misleading"]
    assert [claim.citation for claim in summary.claims] == ["https://apnews.com/a", "https://npr.org/b", None]
    assert [claim.footnote for claim in summary.claims] == [1, 2, None]
    assert [claim.verification_status for claim in summary.claims] == ["verified", "unverified", "partial"]
    # (1 + 0.5 + 0.25) / 3 * 10
    assert summary.truth_score == 5.8
    # (1 + 0 + 0.5) / 3 -> 40 + 0.5 * 55
    assert summary.confidence == 68
    # verified = 2 (not unverified), cited = 2 -> (2/3*0.7 + 2/3*0.3) * 100
    assert summary.coverage == 67


def test_process_fact_check_results_empty():
    summary = process_fact_check_results([], ["https://a.com"])
    assert summary.claims == []
    assert summary.truth_score == 5.0
    assert summary.confidence == 50
    assert summary.coverage == 50


def test_unique_citations():
    claims = [
        _claim("verified", citation="https://a.com"),
        _claim("verified", citation="https://b.com"),
        _claim("verified", citation="https://a.com"),
        _claim("unverified"),
    ]
    assert unique_citations(claims) == ["https://a.com", "https://b.com"]


def test_display_helpers():
    assert verdict_label("false") == "FALSE"
    assert verdict_label("whatever") == "UNVERIFIED"
    assert verdict_icon("true") == "✅"
    assert confidence_band(85) == "high"
    assert confidence_band(65) == "medium"
    assert confidence_band(45) == "low"
    assert confidence_badge(85) == "🟢 High"
    assert confidence_badge(65) == "🟡 Medium"
    assert confidence_badge(45) == "🔴 Low"
