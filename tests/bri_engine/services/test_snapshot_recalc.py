"""Tests for bri_engine.services.snapshots — single-company recalculation."""
from decimal import Decimal
from unittest.mock import patch

import pytest

from bri_engine.models.valuation_snapshot import ValuationSnapshot
from bri_engine.scoring.config import _default_config, build_scoring_config
from bri_engine.services.snapshots import (
    get_latest_snapshot,
    get_snapshot,
    list_snapshots,
    recalc_snapshot_for_company,
)

pytestmark = pytest.mark.usefixtures('patch_get_session')

NUMERIC_FIELDS = [
    'adjusted_ebitda', 'industry_multiple_low', 'industry_multiple_high', 'core_score',
    'bri_score', 'financial_score', 'transferability_score', 'operational_score',
    'market_score', 'legal_tax_score', 'personal_score', 'alpha_constant',
    'discount_fraction', 'base_multiple', 'final_multiple', 'current_value',
    'potential_value', 'value_gap',
]


class TestRecalcSnapshotForCompany:

    def test_creates_snapshot(self, seed_company, scoring_config):
        company = seed_company(option_index=2)

        result = recalc_snapshot_for_company(company.id, 'Assessment completed', 'user-1', config=scoring_config)

        assert result.success is True
        assert result.cause is None
        snap = result.snapshot
        assert snap.company_id == company.id
        assert snap.snapshot_reason == 'Assessment completed'
        assert snap.created_by_user_id == 'user-1'
        assert snap.bri_score == Decimal('0.5000')
        assert snap.core_score == Decimal('50.00')
        assert snap.base_multiple == Decimal('4.5000')
        assert snap.industry_multiple_low <= snap.final_multiple <= snap.base_multiple
        assert snap.value_gap == snap.potential_value - snap.current_value
        assert snap.multiple_match_level == 'sub_sector'
        assert snap.ebitda_is_estimated is False

    def test_repeated_calls_append_identical_snapshots(self, seed_company, scoring_config, db_session):
        company = seed_company(option_index=3)

        first = recalc_snapshot_for_company(company.id, 'first', config=scoring_config)
        second = recalc_snapshot_for_company(company.id, 'second', config=scoring_config)

        assert first.snapshot.id != second.snapshot.id
        rows = db_session.query(ValuationSnapshot).filter_by(company_id=company.id).order_by(ValuationSnapshot.id).all()
        assert len(rows) == 2
        for field in NUMERIC_FIELDS:
            assert getattr(rows[0], field) == getattr(rows[1], field), field

    def test_no_multiple(self, seed_company, scoring_config, db_session):
        company = seed_company(with_multiple=False)
        result = recalc_snapshot_for_company(company.id, 'x', config=scoring_config)
        assert result.success is False
        assert result.cause == 'NO_MULTIPLE'
        assert db_session.query(ValuationSnapshot).count() == 0

    def test_no_financials(self, seed_company, scoring_config):
        company = seed_company(with_financials=False)
        result = recalc_snapshot_for_company(company.id, 'x', config=scoring_config)
        assert result.cause == 'NO_FINANCIALS'

    def test_estimated_ebitda_only_when_allowed(self, seed_company, make_financials, scoring_config):
        company = seed_company(with_financials=False)
        make_financials(company, adjusted_ebitda=None, free_cash_flow='700000')

        refused = recalc_snapshot_for_company(company.id, 'x', config=scoring_config)
        allowed = recalc_snapshot_for_company(company.id, 'x', allow_estimated_ebitda=True, config=scoring_config)

        assert refused.cause == 'NO_FINANCIALS'
        assert allowed.success is True
        assert allowed.snapshot.adjusted_ebitda == Decimal('1000000.00')
        assert allowed.snapshot.ebitda_is_estimated is True

    def test_no_assessment(self, seed_company, scoring_config):
        company = seed_company(answers=False)
        result = recalc_snapshot_for_company(company.id, 'x', config=scoring_config)
        assert result.cause == 'NO_ASSESSMENT'

    def test_unknown_company(self, scoring_config):
        result = recalc_snapshot_for_company(999, 'x', config=scoring_config)
        assert result.success is False
        assert result.cause == 'NOT_FOUND'

    def test_unexpected_error_is_caught_and_logged(self, seed_company, scoring_config, caplog):
        company = seed_company()
        with patch('bri_engine.services.snapshots.derive_multiple', side_effect=RuntimeError("boom")):
            result = recalc_snapshot_for_company(company.id, 'Nightly', config=scoring_config)
        assert result.success is False
        assert result.cause == 'UNEXPECTED'
        assert 'boom' in result.error
        assert any(str(company.id) in r.getMessage() and 'Nightly' in r.getMessage() for r in caplog.records)

    def test_holds_company_lock(self, seed_company, scoring_config, mock_redis):
        company = seed_company()
        recalc_snapshot_for_company(company.id, 'x', config=scoring_config)
        mock_redis.lock.assert_called_once()
        assert mock_redis.lock.call_args[0][0] == f'recalc:{company.id}'
        mock_redis.lock.return_value.release.assert_called_once()

    def test_lock_timeout_reported_as_unexpected(self, seed_company, scoring_config, mock_redis):
        company = seed_company()
        mock_redis.lock.return_value.acquire.return_value = False
        result = recalc_snapshot_for_company(company.id, 'x', config=scoring_config)
        assert result.cause == 'UNEXPECTED'

    def test_stored_alpha_matches_config(self, seed_company, db_session):
        raw = _default_config()
        raw['alpha'] = 1.375
        config = build_scoring_config(raw)
        company = seed_company()

        result = recalc_snapshot_for_company(company.id, 'x', config=config)

        db_session.expire_all()
        stored = db_session.get(ValuationSnapshot, result.snapshot.id)
        assert stored.alpha_constant == config.alpha
        assert stored.discount_fraction == result.snapshot.discount_fraction

    def test_uses_cached_config_by_default(self, seed_company):
        company = seed_company()
        result = recalc_snapshot_for_company(company.id, 'x')
        assert result.success is True
        assert result.snapshot.alpha_constant == Decimal('1.4')


class TestSnapshotReaders:

    def test_latest_and_by_id(self, seed_company, scoring_config):
        company = seed_company()
        other = seed_company(name='Other Co')
        first = recalc_snapshot_for_company(company.id, 'a', config=scoring_config).snapshot
        second = recalc_snapshot_for_company(company.id, 'b', config=scoring_config).snapshot
        foreign = recalc_snapshot_for_company(other.id, 'c', config=scoring_config).snapshot

        assert get_latest_snapshot(company.id).id == second.id
        assert get_snapshot(company.id, first.id).snapshot_reason == 'a'
        assert get_snapshot(company.id, foreign.id) is None
        assert [s.id for s in list_snapshots(company.id)] == [second.id, first.id]

    def test_no_snapshots(self, make_company):
        assert get_latest_snapshot(make_company().id) is None
