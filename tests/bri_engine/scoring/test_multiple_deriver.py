"""Tests for bri_engine.scoring.multiples — multiple and value derivation."""
import itertools
from decimal import Decimal

import pytest

from bri_engine.scoring.multiples import derive_multiple


class TestDeriveMultiple:
    """derive_multiple() turns scores + industry range into values."""

    def test_reference_scenario(self):
        result = derive_multiple('3.0', '6.0', 60, 71, '1.4', 1_000_000)
        assert result.base_multiple == Decimal('4.8000')
        # 0.29 ** 1.4 ≈ 0.17675
        assert Decimal('0.1767') < result.discount_fraction < Decimal('0.1768')
        assert Decimal('4.4815') < result.final_multiple < Decimal('4.4822')
        assert result.potential_value == Decimal('4800000.00')
        assert Decimal('4481500') < result.current_value < Decimal('4482200')
        assert result.value_gap == result.potential_value - result.current_value

    def test_perfect_bri_has_no_gap(self):
        result = derive_multiple(3, 6, 60, 100, '1.4', 1_000_000)
        assert result.discount_fraction == 0
        assert result.final_multiple == result.base_multiple
        assert result.value_gap == Decimal('0.00')

    def test_zero_bri_collapses_to_low(self):
        result = derive_multiple(3, 6, 60, 0, '1.4', 1_000_000)
        assert result.discount_fraction == Decimal('1.000000')
        assert result.final_multiple == Decimal('3.0000')
        assert result.current_value == Decimal('3000000.00')

    def test_core_score_positions_base_in_range(self):
        assert derive_multiple(3, 6, 0, 50, '1.4', 1).base_multiple == Decimal('3.0000')
        assert derive_multiple(3, 6, 100, 50, '1.4', 1).base_multiple == Decimal('6.0000')

    def test_money_rounded_to_cents(self):
        result = derive_multiple('2.5', '7.25', '63.7', '58.3', '1.45', '123456.78')
        for value in (result.current_value, result.potential_value, result.value_gap):
            assert value == value.quantize(Decimal('0.01'))

    def test_degenerate_range(self):
        result = derive_multiple(5, 5, 40, 40, '1.5', 200_000)
        assert result.base_multiple == result.final_multiple == Decimal('5.0000')
        assert result.value_gap == 0

    def test_accepts_floats_without_binary_artifacts(self):
        as_float = derive_multiple(3.0, 6.0, 60.0, 71.0, 1.4, 1000000.0)
        as_str = derive_multiple('3.0', '6.0', '60', '71', '1.4', '1000000')
        assert as_float == as_str

    @pytest.mark.parametrize('kwargs', [
        dict(low=6, high=3),
        dict(core_score=-1),
        dict(core_score=101),
        dict(bri_score=-0.1),
        dict(bri_score=100.5),
        dict(alpha='1.2'),
        dict(alpha='1.7'),
    ])
    def test_invalid_inputs_raise(self, kwargs):
        args = dict(low=3, high=6, core_score=50, bri_score=50, alpha='1.4', ebitda=1_000_000)
        args.update(kwargs)
        with pytest.raises(ValueError):
            derive_multiple(**args)


class TestMultipleBounds:
    """L ≤ final ≤ base ≤ H across the input space, monotonic in BRI and Core."""

    RANGES = [('0', '0'), ('1.5', '4'), ('3', '6'), ('4.25', '11.9')]
    SCORES = ['0', '0.5', '17', '50', '71', '99.99', '100']
    ALPHAS = ['1.3', '1.4', '1.6']

    def test_bounds_hold(self):
        for (low, high), core, bri, alpha in itertools.product(
                self.RANGES, self.SCORES, self.SCORES, self.ALPHAS):
            r = derive_multiple(low, high, core, bri, alpha, 1_000_000)
            assert Decimal(low) <= r.final_multiple <= r.base_multiple <= Decimal(high), \
                (low, high, core, bri, alpha)

    def test_monotonic_in_bri(self):
        for alpha in self.ALPHAS:
            values = [derive_multiple(3, 6, 60, bri, alpha, 1_000_000).current_value
                      for bri in self.SCORES]
            assert values == sorted(values)

    def test_monotonic_in_core_score(self):
        values = [derive_multiple(3, 6, core, 71, '1.4', 1_000_000).current_value
                  for core in self.SCORES]
        assert values == sorted(values)
