"""
Intake factor vocabularies and per-factor classification.

Each intake category is a closed Enum with an explicit UNKNOWN member, so an
unrecognized value from the wizard lands on a checked branch (mid-tier, weight
1) instead of falling through. The classifiers return a RecommendationFactor:
the tier that factor alone would suggest, how much to trust it (1-3), and the
sentence shown to the admin.
"""
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Optional


MID_TIER = 2
WEAK_WEIGHT = 1


class IntakeCategory(str, Enum):
    """Base for the intake enums — parse() never raises."""

    @classmethod
    def parse(cls, value: Optional[Any]) -> 'IntakeCategory':
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.UNKNOWN
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.UNKNOWN


class BudgetRange(IntakeCategory):
    UNDER_500 = 'under_500'
    FROM_500_TO_2000 = '500_2000'
    FROM_2000_TO_5000 = '2000_5000'
    FROM_5000_TO_15000 = '5000_15000'
    FROM_15000_TO_50000 = '15000_50000'
    OVER_50000 = 'over_50000'
    PERCENTAGE = 'percentage'
    NOT_SURE = 'not_sure'
    UNKNOWN = 'unknown'


class Timeline(IntakeCategory):
    ASAP = 'asap'
    TWO_TO_FOUR_WEEKS = '2_4_weeks'
    ONE_TO_TWO_MONTHS = '1_2_months'
    TWO_TO_FOUR_MONTHS = '2_4_months'
    FOUR_PLUS_MONTHS = '4_plus_months'
    FLEXIBLE = 'flexible'
    UNKNOWN = 'unknown'


class ProjectType(IntakeCategory):
    SIMPLE_CONSULTATION = 'simple_consultation'
    SMALL_RENOVATION = 'small_renovation'
    STANDARD_RENOVATION = 'standard_renovation'
    ADDITION = 'addition'
    NEW_BUILD = 'new_build'
    COMMERCIAL = 'commercial'
    MULTIPLE_PROPERTIES = 'multiple_properties'
    COMPLEX = 'complex'
    UNKNOWN = 'unknown'


# Project types that always go in front of a human
COMPLEX_PROJECT_TYPES = frozenset({
    ProjectType.COMPLEX,
    ProjectType.COMMERCIAL,
    ProjectType.MULTIPLE_PROPERTIES,
})

FASTEST_TIMELINE = Timeline.ASAP


class FactorName(str, Enum):
    BUDGET = 'budget'
    TIMELINE = 'timeline'
    PROJECT_TYPE = 'project_type'
    ASSETS = 'assets'


@dataclass(frozen=True)
class RecommendationFactor:
    factor: FactorName
    suggested_tier: int
    weight: int
    description: str

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['factor'] = self.factor.value
        return data


# ── Lookup tables: category → (suggested tier, weight, description) ─────────

_BUDGET_TABLE = {
    BudgetRange.UNDER_500: (1, 3, 'Budget range aligns with Tier 1 (The Concept)'),
    BudgetRange.FROM_500_TO_2000: (1, 3, 'Budget range suitable for Tier 1-2 services'),
    BudgetRange.FROM_2000_TO_5000: (2, 3, 'Budget range aligns with Tier 2 (The Builder)'),
    BudgetRange.FROM_5000_TO_15000: (2, 2, 'Mid-range budget suitable for Tier 2-3'),
    BudgetRange.FROM_15000_TO_50000: (3, 3, 'Budget range aligns with Tier 3 (The Concierge)'),
    BudgetRange.OVER_50000: (4, 3, 'Premium budget may qualify for Tier 4 (KAA White Glove)'),
    BudgetRange.PERCENTAGE: (4, 3, 'Percentage-based pricing indicates Tier 4 project'),
    BudgetRange.NOT_SURE: (MID_TIER, WEAK_WEIGHT, 'Budget unclear - defaulting to mid-tier, needs review'),
}

_TIMELINE_TABLE = {
    Timeline.ASAP: (1, 3, 'Fast turnaround requires automated Tier 1-2 process'),
    Timeline.TWO_TO_FOUR_WEEKS: (1, 2, 'Short timeline aligns with Tier 1 delivery'),
    Timeline.ONE_TO_TWO_MONTHS: (2, 2, 'Standard timeline suitable for Tier 2'),
    Timeline.TWO_TO_FOUR_MONTHS: (3, 2, 'Extended timeline allows for Tier 3 site visits'),
    Timeline.FOUR_PLUS_MONTHS: (3, 2, 'Long timeline suitable for complex Tier 3-4 projects'),
    Timeline.FLEXIBLE: (MID_TIER, WEAK_WEIGHT, 'Flexible timeline - tier based on other factors'),
}

_PROJECT_TYPE_TABLE = {
    ProjectType.SIMPLE_CONSULTATION: (1, 3, 'Simple consultation fits Tier 1 automated guidance'),
    ProjectType.SMALL_RENOVATION: (1, 3, 'Small renovation suitable for Tier 1-2'),
    ProjectType.STANDARD_RENOVATION: (2, 3, 'Standard renovation aligns with Tier 2 package'),
    ProjectType.ADDITION: (2, 2, 'Addition project may need Tier 2-3 depending on scope'),
    ProjectType.NEW_BUILD: (3, 3, 'New build requires Tier 3+ site visits and planning'),
    ProjectType.COMMERCIAL: (4, 3, 'Commercial projects require Tier 4 white-glove service'),
    ProjectType.MULTIPLE_PROPERTIES: (4, 3, 'Multiple properties require Tier 4 coordination'),
    ProjectType.COMPLEX: (4, 3, 'Complex project requires Tier 4 custom approach'),
}

_UNKNOWN_DESCRIPTIONS = {
    FactorName.BUDGET: 'Unknown budget range - defaulting to mid-tier',
    FactorName.TIMELINE: 'Unknown timeline - defaulting to standard',
    FactorName.PROJECT_TYPE: 'Unknown project type - defaulting to mid-tier',
}


def _classify(name: FactorName, table: Dict, category: IntakeCategory) -> RecommendationFactor:
    entry = table.get(category)
    if entry is None:
        # UNKNOWN, or a member added to the enum without a table row
        return RecommendationFactor(name, MID_TIER, WEAK_WEIGHT, _UNKNOWN_DESCRIPTIONS[name])
    tier, weight, description = entry
    return RecommendationFactor(name, tier, weight, description)


def classify_budget(budget: BudgetRange) -> RecommendationFactor:
    return _classify(FactorName.BUDGET, _BUDGET_TABLE, budget)


def classify_timeline(timeline: Timeline) -> RecommendationFactor:
    return _classify(FactorName.TIMELINE, _TIMELINE_TABLE, timeline)


def classify_project_type(project_type: ProjectType) -> RecommendationFactor:
    return _classify(FactorName.PROJECT_TYPE, _PROJECT_TYPE_TABLE, project_type)


def classify_assets(has_survey: bool, has_drawings: bool) -> RecommendationFactor:
    """
    Existing design inputs decide how much legwork precedes design.

    Both survey and drawings → fast-track Tier 1 (strong signal).
    Exactly one → Tier 2, some preparation needed.
    Neither → Tier 3, a site visit is unavoidable whatever the budget (strong signal).
    """
    if has_survey and has_drawings:
        return RecommendationFactor(
            FactorName.ASSETS, 1, 3, 'Has survey and drawings - ready for Tier 1-2 fast track',
        )
    if has_survey or has_drawings:
        return RecommendationFactor(
            FactorName.ASSETS, 2, 2, 'Partial assets - some preparation needed (Tier 2)',
        )
    return RecommendationFactor(
        FactorName.ASSETS, 3, 3, 'No existing assets - site visit required (Tier 3+)',
    )
