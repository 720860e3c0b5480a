import math
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

Verdict = Literal["true", "false", "misleading", "unverified"]
VerificationStatus = Literal["verified", "partial", "unverified"]
BadgeLevel = Literal["verified", "partial", "limited", "manipulated"]
CacheStatus = Literal["hit", "miss"]
CacheSource = Literal["primary", "fallback", "none"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FactCheckResult(CamelModel):
    """Fact-check entry as emitted by the model; the verdict is not trusted."""

    claim: str = ""
    verdict: str = "unverified"
    evidence: str = ""

    @field_validator("verdict", mode="before")
    @classmethod
    def _stringify_verdict(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("claim", "evidence", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class ClaimResult(CamelModel):
    claim: str
    verdict: Verdict
    evidence: str = ""
    citation: str | None = None
    verification_status: VerificationStatus = "unverified"
    footnote: int | None = None


class TrustBadge(CamelModel):
    level: BadgeLevel
    icon: str
    label: str
    description: str


class Source(CamelModel):
    url: str
    outlet: str


class ArticleMetadata(CamelModel):
    title: str | None = None
    author: str | None = None
    outlet: str | None = None
    date: str | None = None


class RawAnalysis(BaseModel):
    """Parsed provider response, keyed the way the model is prompted to answer."""

    truth_score: float = 5.0
    bias_patterns: list[str] = Field(default_factory=list)
    missing_angles: list[str] = Field(default_factory=list)
    manipulation_tactics: list[str] = Field(default_factory=list)
    citations: list[str] = Field(default_factory=list)
    summary: str = ""
    confidence_level: float = 0.75
    fact_check_results: list[FactCheckResult] = Field(default_factory=list)

    @field_validator(
        "bias_patterns",
        "missing_angles",
        "manipulation_tactics",
        "citations",
        "fact_check_results",
        mode="before",
    )
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("truth_score", mode="before")
    @classmethod
    def _clamp_score(cls, value: Any) -> float:
        if value is None or value == "":
            return 5.0
        score = float(value)
        # NaN and infinities are not scores; treat them like a missing value
        if not math.isfinite(score):
            return 5.0
        return max(0.0, min(10.0, score))

    @field_validator("confidence_level", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: Any) -> float:
        if not value:
            return 0.75
        confidence = float(value)
        if not math.isfinite(confidence):
            return 0.75
        return max(0.0, min(1.0, confidence))

    @field_validator("summary", mode="before")
    @classmethod
    def _summary_text(cls, value: Any) -> str:
        return "" if value is None else str(value)


class AuditRecord(CamelModel):
    truth_score_raw: float = Field(..., ge=0.0, le=10.0)
    truth_score_adjusted: float | None = Field(default=None, ge=0.0, le=10.0)
    summary: str = ""
    refined_summary: str | None = None
    bias_patterns: list[str] = Field(default_factory=list)
    missing_angles: list[str] = Field(default_factory=list)
    manipulation_tactics: list[str] = Field(default_factory=list)
    citations: list[str] = Field(default_factory=list)
    fact_check_results: list[ClaimResult] = Field(default_factory=list)
    confidence_level: float = Field(0.5, ge=0.0, le=1.0)
    trust_badge: TrustBadge | None = None
    transparency: list[str] = Field(default_factory=list)
    advisories: list[str] = Field(default_factory=list)
    sources: list[Source] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class AuditResponse(AuditRecord):
    cache_status: CacheStatus
    cache_source: CacheSource
    processing_time_ms: int = 0


class AuditRequest(CamelModel):
    content: str | None = None
    url: str | None = None
    metadata: ArticleMetadata | None = None

    @model_validator(mode="after")
    def _ensure_input(self) -> "AuditRequest":
        if not self.content and not self.url:
            raise ValueError("Either URL or content must be provided")
        return self
