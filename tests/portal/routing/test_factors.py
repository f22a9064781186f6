"""Tests for portal.routing.factors — category parsing and per-factor classification."""
import pytest

from portal.routing.factors import (
    BudgetRange, Timeline, ProjectType, FactorName, RecommendationFactor,
    classify_budget, classify_timeline, classify_project_type, classify_assets,
)


class TestParse:

    def test_known_value(self):
        assert BudgetRange.parse('under_500') is BudgetRange.UNDER_500

    def test_case_and_whitespace_insensitive(self):
        assert Timeline.parse('  ASAP ') is Timeline.ASAP

    def test_unknown_value_maps_to_unknown(self):
        assert ProjectType.parse('treehouse') is ProjectType.UNKNOWN

    def test_none_maps_to_unknown(self):
        assert BudgetRange.parse(None) is BudgetRange.UNKNOWN

    def test_member_passes_through(self):
        assert ProjectType.parse(ProjectType.COMMERCIAL) is ProjectType.COMMERCIAL


class TestClassifyBudget:

    @pytest.mark.parametrize('budget,tier,weight', [
        (BudgetRange.UNDER_500, 1, 3),
        (BudgetRange.FROM_500_TO_2000, 1, 3),
        (BudgetRange.FROM_2000_TO_5000, 2, 3),
        (BudgetRange.FROM_5000_TO_15000, 2, 2),
        (BudgetRange.FROM_15000_TO_50000, 3, 3),
        (BudgetRange.OVER_50000, 4, 3),
        (BudgetRange.PERCENTAGE, 4, 3),
        (BudgetRange.NOT_SURE, 2, 1),
    ])
    def test_table(self, budget, tier, weight):
        factor = classify_budget(budget)
        assert factor.factor is FactorName.BUDGET
        assert (factor.suggested_tier, factor.weight) == (tier, weight)

    def test_unknown_defaults_to_mid_tier_weak(self):
        factor = classify_budget(BudgetRange.UNKNOWN)
        assert (factor.suggested_tier, factor.weight) == (2, 1)
        assert 'Unknown budget' in factor.description


class TestClassifyTimeline:

    def test_asap_is_strong_tier_1(self):
        factor = classify_timeline(Timeline.ASAP)
        assert (factor.suggested_tier, factor.weight) == (1, 3)

    def test_flexible_is_weak(self):
        factor = classify_timeline(Timeline.FLEXIBLE)
        assert (factor.suggested_tier, factor.weight) == (2, 1)

    def test_long_timeline_suggests_tier_3(self):
        assert classify_timeline(Timeline.FOUR_PLUS_MONTHS).suggested_tier == 3

    def test_unknown(self):
        factor = classify_timeline(Timeline.UNKNOWN)
        assert (factor.suggested_tier, factor.weight) == (2, 1)


class TestClassifyProjectType:

    @pytest.mark.parametrize('project_type', [
        ProjectType.COMMERCIAL, ProjectType.MULTIPLE_PROPERTIES, ProjectType.COMPLEX,
    ])
    def test_complex_types_suggest_tier_4(self, project_type):
        factor = classify_project_type(project_type)
        assert (factor.suggested_tier, factor.weight) == (4, 3)

    def test_addition_is_medium_weight(self):
        factor = classify_project_type(ProjectType.ADDITION)
        assert (factor.suggested_tier, factor.weight) == (2, 2)


class TestClassifyAssets:

    def test_both_assets_fast_track(self):
        factor = classify_assets(True, True)
        assert (factor.suggested_tier, factor.weight) == (1, 3)

    @pytest.mark.parametrize('survey,drawings', [(True, False), (False, True)])
    def test_one_asset(self, survey, drawings):
        factor = classify_assets(survey, drawings)
        assert (factor.suggested_tier, factor.weight) == (2, 2)

    def test_no_assets_needs_site_visit(self):
        factor = classify_assets(False, False)
        assert (factor.suggested_tier, factor.weight) == (3, 3)


class TestRecommendationFactor:

    def test_to_dict_flattens_factor_name(self):
        factor = RecommendationFactor(FactorName.ASSETS, 3, 3, 'No assets')
        assert factor.to_dict() == {
            'factor': 'assets', 'suggested_tier': 3, 'weight': 3, 'description': 'No assets',
        }
