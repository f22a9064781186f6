"""
Tier recommendation engine.

Turns a prospective customer's self-reported intake (budget, timeline,
project type, existing assets) into a service tier 1-4, a confidence level,
and a manual-review flag.

    1. Classify each factor independently → (suggested tier, weight 1-3).
    2. tier = round-half-up(Σ tier·weight / Σ weight), clamped to [1, 4].
    3. Confidence: any weight-3 factor ≥2 tiers away from the result → low.
       Otherwise by exact agreement: ≥75% high, ≥50% medium, else low.
    4. Escalate to manual review on tier 4, low confidence, unsure budget,
       ASAP timeline at tier ≥3, complex/commercial/multi-property work, or a
       strong factor in sharp conflict with the result.
    5. Reason = descriptions of the (up to three) heaviest factors within one
       tier of the result; never empty.

Pure and deterministic: no I/O, no clock, no randomness. Safe to call from
any number of request threads.
"""
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from portal.config import MIN_TIER, MAX_TIER
from portal.routing.factors import (
    BudgetRange,
    Timeline,
    ProjectType,
    RecommendationFactor,
    COMPLEX_PROJECT_TYPES,
    FASTEST_TIMELINE,
    classify_budget,
    classify_timeline,
    classify_project_type,
    classify_assets,
)

logger = logging.getLogger('routing.engine')

STRONG_WEIGHT = 3
SHARP_CONFLICT = 2
HIGH_AGREEMENT = 0.75
MEDIUM_AGREEMENT = 0.50
MAX_REASON_FACTORS = 3


class Confidence(str, Enum):
    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'


_TRUTHY = {'true', '1', 'yes', 'y', 'on'}


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return bool(value)


@dataclass(frozen=True)
class Intake:
    """The routing-relevant slice of a lead submission."""
    budget_range: BudgetRange = BudgetRange.UNKNOWN
    timeline: Timeline = Timeline.UNKNOWN
    project_type: ProjectType = ProjectType.UNKNOWN
    has_survey: bool = False
    has_drawings: bool = False

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'Intake':
        """Build from wizard/API payloads; accepts snake_case or camelCase keys."""
        if not isinstance(data, Mapping):
            data = {}

        def pick(*keys):
            for key in keys:
                if key in data:
                    return data[key]
            return None

        return cls(
            budget_range=BudgetRange.parse(pick('budget_range', 'budgetRange')),
            timeline=Timeline.parse(pick('timeline')),
            project_type=ProjectType.parse(pick('project_type', 'projectType')),
            has_survey=_as_bool(pick('has_survey', 'hasSurvey')),
            has_drawings=_as_bool(pick('has_drawings', 'hasDrawings')),
        )

    @classmethod
    def from_lead(cls, lead) -> 'Intake':
        return cls(
            budget_range=BudgetRange.parse(lead.budget_range),
            timeline=Timeline.parse(lead.timeline),
            project_type=ProjectType.parse(lead.project_type),
            has_survey=bool(lead.has_survey),
            has_drawings=bool(lead.has_drawings),
        )


@dataclass(frozen=True)
class TierRecommendation:
    tier: int
    confidence: Confidence
    needs_manual_review: bool
    reason: str
    factors: List[RecommendationFactor]
    alternative_tiers: List[int] = field(default_factory=list)
    review_reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tier': self.tier,
            'confidence': self.confidence.value,
            'needs_manual_review': self.needs_manual_review,
            'reason': self.reason,
            'factors': [f.to_dict() for f in self.factors],
            'alternative_tiers': list(self.alternative_tiers),
            'review_reasons': list(self.review_reasons),
        }


def round_half_up(value: float) -> int:
    """round() is banker's rounding; tier boundaries need 2.5 → 3."""
    return int(math.floor(value + 0.5))


def weighted_tier(factors: List[RecommendationFactor]) -> int:
    """Weighted mean of the suggested tiers, rounded and clamped to [1, 4]."""
    total_weight = sum(f.weight for f in factors)
    if total_weight <= 0:
        return 2
    mean = sum(f.suggested_tier * f.weight for f in factors) / total_weight
    return max(MIN_TIER, min(MAX_TIER, round_half_up(mean)))


def _strong_conflicts(factors: List[RecommendationFactor], tier: int) -> List[RecommendationFactor]:
    return [
        f for f in factors
        if f.weight >= STRONG_WEIGHT and abs(f.suggested_tier - tier) >= SHARP_CONFLICT
    ]


def determine_confidence(factors: List[RecommendationFactor], tier: int) -> Confidence:
    if not factors or _strong_conflicts(factors, tier):
        return Confidence.LOW

    agreement = sum(1 for f in factors if f.suggested_tier == tier) / len(factors)
    if agreement >= HIGH_AGREEMENT:
        return Confidence.HIGH
    if agreement >= MEDIUM_AGREEMENT:
        return Confidence.MEDIUM
    return Confidence.LOW


def review_triggers(intake: Intake, factors: List[RecommendationFactor],
                    tier: int, confidence: Confidence) -> List[str]:
    """Every reason this recommendation needs a human; empty means auto-route."""
    triggers = []
    if tier == MAX_TIER:
        triggers.append('Tier 4 engagements are always reviewed')
    if confidence == Confidence.LOW:
        triggers.append('Low confidence in automated tier')
    if intake.budget_range == BudgetRange.NOT_SURE:
        triggers.append('Customer is unsure of budget')
    if intake.timeline == FASTEST_TIMELINE and tier >= 3:
        triggers.append('ASAP timeline unrealistic for a Tier 3+ project')
    if intake.project_type in COMPLEX_PROJECT_TYPES:
        triggers.append(f'Project type "{intake.project_type.value}" requires review')
    for f in _strong_conflicts(factors, tier):
        triggers.append(f'Strong {f.factor.value} signal (Tier {f.suggested_tier}) conflicts with Tier {tier}')
    return triggers


def build_reason(factors: List[RecommendationFactor], tier: int) -> str:
    # sorted() is stable, so equal weights keep classification order
    heaviest = sorted(factors, key=lambda f: f.weight, reverse=True)[:MAX_REASON_FACTORS]
    supporting = [f.description for f in heaviest if abs(f.suggested_tier - tier) <= 1]
    if not supporting:
        return f'Tier {tier} recommended based on weighted analysis of project factors'
    return '; '.join(supporting)


def alternative_tiers(factors: List[RecommendationFactor], tier: int) -> List[int]:
    """Other tiers the factors argued for, strongest total weight first."""
    support = {}
    for f in factors:
        if f.suggested_tier != tier:
            support[f.suggested_tier] = support.get(f.suggested_tier, 0) + f.weight
    return sorted(support, key=lambda t: (-support[t], t))


def recommend(intake) -> TierRecommendation:
    """
    Recommend a service tier for an intake.

    Accepts an Intake or a plain mapping of intake fields. Total: unknown or
    missing categories fall back to the mid-tier at weight 1, never raise.
    """
    if not isinstance(intake, Intake):
        intake = Intake.from_dict(intake)

    factors = [
        classify_budget(intake.budget_range),
        classify_timeline(intake.timeline),
        classify_project_type(intake.project_type),
        classify_assets(intake.has_survey, intake.has_drawings),
    ]

    tier = weighted_tier(factors)
    confidence = determine_confidence(factors, tier)
    triggers = review_triggers(intake, factors, tier, confidence)

    recommendation = TierRecommendation(
        tier=tier,
        confidence=confidence,
        needs_manual_review=bool(triggers),
        reason=build_reason(factors, tier),
        factors=factors,
        alternative_tiers=alternative_tiers(factors, tier),
        review_reasons=triggers,
    )
    logger.debug(
        "Recommended tier %d (confidence=%s, review=%s) for %s/%s/%s",
        tier, confidence.value, recommendation.needs_manual_review,
        intake.budget_range.value, intake.timeline.value, intake.project_type.value,
    )
    return recommendation
