"""Tests for bri_engine.scoring.calculator — Core Score, category scores, BRI."""
from decimal import Decimal
from types import SimpleNamespace

import pytest

from bri_engine.scoring.calculator import (
    ScoredAnswer,
    compute_bri_score,
    compute_category_scores,
    compute_core_score,
    compute_scores,
    core_factors_of,
)


def _answer(category, points, score, question_id=1, is_active=True):
    return ScoredAnswer(
        question_id=question_id,
        bri_category=category,
        max_impact_points=Decimal(str(points)),
        score_value=Decimal(str(score)),
        is_active=is_active,
    )


def _company(**factors):
    fields = dict(
        revenue_size_category=None, revenue_model=None, gross_margin_proxy=None,
        labor_intensity=None, asset_intensity=None, owner_involvement=None,
    )
    fields.update(factors)
    return SimpleNamespace(**fields)


class TestCoreScore:

    def test_mixed_profile(self, scoring_config):
        factors = dict(
            revenue_size_category='FROM_1M_TO_3M',   # .6 × .10
            revenue_model='RECURRING_CONTRACTS',     # .75 × .20
            gross_margin_proxy='GOOD',               # .75 × .20
            labor_intensity='MODERATE',              # .75 × .15
            asset_intensity='MODERATE',              # .67 × .15
            owner_involvement='MODERATE',            # .5 × .20
        )
        assert compute_core_score(factors, scoring_config) == Decimal('67.30')

    def test_best_profile_scores_100(self, scoring_config):
        factors = dict(
            revenue_size_category='OVER_25M', revenue_model='SUBSCRIPTION_SAAS',
            gross_margin_proxy='EXCELLENT', labor_intensity='LOW',
            asset_intensity='ASSET_LIGHT', owner_involvement='MINIMAL',
        )
        assert compute_core_score(factors, scoring_config) == Decimal('100.00')

    def test_no_factors_scores_50(self, scoring_config):
        assert compute_core_score({}, scoring_config) == Decimal('50.00')

    def test_unknown_level_uses_default(self, scoring_config):
        known = compute_core_score({'revenue_model': 'TRANSACTIONAL'}, scoring_config)
        unknown = compute_core_score({'revenue_model': 'SOMETHING_NEW'}, scoring_config)
        assert known == unknown == Decimal('50.00')

    def test_revenue_bucket_derived_from_annual_revenue(self, scoring_config):
        factors = core_factors_of(_company(), scoring_config, annual_revenue=Decimal('30000000'))
        assert factors['revenue_size_category'] == 'OVER_25M'

    def test_explicit_revenue_bucket_wins(self, scoring_config):
        factors = core_factors_of(
            _company(revenue_size_category='UNDER_500K'), scoring_config, annual_revenue=30_000_000,
        )
        assert factors['revenue_size_category'] == 'UNDER_500K'


class TestCategoryScores:

    def test_points_weighted_average(self):
        scores = compute_category_scores([
            _answer('FINANCIAL', 30, '1.0', question_id=1),
            _answer('FINANCIAL', 10, '0.2', question_id=2),
        ])
        # (1.0×30 + 0.2×10) / 40 = 0.8
        assert scores['FINANCIAL'] == Decimal('0.8000')

    def test_unanswered_category_is_not_assessed(self):
        scores = compute_category_scores([_answer('FINANCIAL', 10, '0.5')])
        assert scores['MARKET'] is None
        assert scores['FINANCIAL'] == Decimal('0.5000')

    def test_real_zero_is_distinct_from_not_assessed(self):
        scores = compute_category_scores([_answer('LEGAL_TAX', 10, '0')])
        assert scores['LEGAL_TAX'] == Decimal('0')
        assert scores['LEGAL_TAX'] is not None

    def test_inactive_questions_ignored(self):
        scores = compute_category_scores([
            _answer('OPERATIONAL', 10, '1.0', question_id=1),
            _answer('OPERATIONAL', 50, '0.0', question_id=2, is_active=False),
        ])
        assert scores['OPERATIONAL'] == Decimal('1.0000')

    def test_score_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            compute_category_scores([_answer('MARKET', 10, '1.5')])


class TestBriScore:

    def test_weighted_sum_when_all_assessed(self, scoring_config):
        categories = {
            'FINANCIAL': Decimal('0.5'), 'TRANSFERABILITY': Decimal('0.8'),
            'OPERATIONAL': Decimal('0.9'), 'MARKET': Decimal('0.7'),
            'LEGAL_TAX': Decimal('0.6'), 'PERSONAL': Decimal('1.0'),
        }
        # .125 + .16 + .18 + .105 + .06 + .10
        assert compute_bri_score(categories, scoring_config) == Decimal('0.7300')

    def test_unassessed_categories_renormalized(self, scoring_config):
        categories = {'FINANCIAL': Decimal('0.8'), 'MARKET': Decimal('0.4')}
        for c in ('TRANSFERABILITY', 'OPERATIONAL', 'LEGAL_TAX', 'PERSONAL'):
            categories[c] = None
        # (.8×.25 + .4×.15) / .40 = 0.65
        assert compute_bri_score(categories, scoring_config) == Decimal('0.6500')

    def test_nothing_assessed_is_none(self, scoring_config):
        assert compute_bri_score({}, scoring_config) is None


class TestComputeScores:

    def test_end_to_end(self, scoring_config):
        result = compute_scores(
            _company(revenue_model='SUBSCRIPTION_SAAS'),
            [_answer(c, 10, '0.5', question_id=i) for i, c in enumerate(
                ['FINANCIAL', 'TRANSFERABILITY', 'OPERATIONAL', 'MARKET', 'LEGAL_TAX', 'PERSONAL'])],
            scoring_config,
        )
        assert result.bri_score == Decimal('0.5000')
        assert result.bri_score_100 == Decimal('50.0000')
        assert result.core_score == Decimal('60.00')
        assert len(result.assessed_categories) == 6

    def test_deterministic(self, scoring_config):
        answers = [_answer('FINANCIAL', 7, '0.33'), _answer('MARKET', 3, '0.9', question_id=2)]
        first = compute_scores(_company(), answers, scoring_config)
        second = compute_scores(_company(), answers, scoring_config)
        assert first == second
