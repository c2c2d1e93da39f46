"""
Tests for the pricing engine.
"""

from decimal import Decimal

import pytest
from hypothesis import given, settings, strategies as st

from nutribite_api.services.domain.pricing import line_total, price, round_money


class TestPrice:
    def test_standard_rate(self):
        """Should price 100 at 18% as 118."""
        result = price(Decimal("100"), 18)
        assert result.net == Decimal("100.00")
        assert result.tax == Decimal("18.00")
        assert result.gross == Decimal("118.00")
        assert result.tax_rate == Decimal("18")

    def test_rounds_half_up(self):
        """Should round half a cent up."""
        # 0.05 * 10% = 0.005 -> 0.01
        assert price("0.05", 10).tax == Decimal("0.01")
        assert price("0.05", 10).gross == Decimal("0.06")

    def test_default_rate_from_settings(self):
        """Should fall back to the configured tax rate."""
        from nutribite_shared.config.settings import settings as app_settings

        expected = round_money(Decimal("10.00") * Decimal(str(app_settings.tax_rate_percent)) / 100)
        assert price("10.00").tax == expected

    def test_zero_rate(self):
        """Should leave gross equal to net at a zero rate."""
        result = price("12.34", 0)
        assert result.tax == Decimal("0.00")
        assert result.gross == Decimal("12.34")

    def test_float_input_goes_through_str(self):
        """Should not carry binary float noise into the net price."""
        assert price(19.99, 18).net == Decimal("19.99")

    @pytest.mark.parametrize("net", ["-1", "NaN", "Infinity"])
    def test_rejects_invalid_net(self, net):
        """Should reject negative and non-finite net prices."""
        with pytest.raises(ValueError):
            price(net, 18)

    def test_rejects_negative_rate(self):
        """Should reject a negative tax rate."""
        with pytest.raises(ValueError):
            price("10", -5)

    def test_rejects_garbage(self):
        """Should reject a non-numeric net price."""
        with pytest.raises(ValueError):
            price("ten", 18)


class TestLineTotal:
    def test_gross_times_quantity(self):
        """Should multiply the gross price by the quantity."""
        assert line_total(Decimal("118.00"), 2) == Decimal("236.00")

    def test_zero_quantity(self):
        """Should total zero for zero units."""
        assert line_total(Decimal("5.55"), 0) == Decimal("0.00")


class TestPricingProperties:
    @given(
        cents=st.integers(min_value=0, max_value=10_000_000),
        rate=st.decimals(min_value=0, max_value=100, places=2),
    )
    @settings(max_examples=200)
    def test_gross_is_net_plus_tax(self, cents, rate):
        """Should keep gross == net + tax, both rounded to cents."""
        net = Decimal(cents) / 100
        result = price(net, rate)
        assert result.gross == result.net + result.tax
        assert result.tax == round_money(result.net * rate / 100)
        assert result.gross.as_tuple().exponent == -2
        assert result.tax >= 0

    @given(
        cents=st.integers(min_value=0, max_value=1_000_000),
        quantity=st.integers(min_value=1, max_value=999),
    )
    @settings(max_examples=100)
    def test_line_total_is_exact(self, cents, quantity):
        """Should multiply without rounding away cents."""
        gross = Decimal(cents) / 100
        assert line_total(gross, quantity) == gross * quantity


class TestRatePrecision:
    def test_rate_rounded_to_cents_before_pricing(self):
        """Should price with the two-decimal rate that lines store."""
        result = price("1000.00", "7.125")
        assert result.tax_rate == Decimal("7.13")
        assert result.tax == Decimal("71.30")
        assert result.gross == Decimal("1071.30")

    @given(
        cents=st.integers(min_value=0, max_value=10_000_000),
        rate=st.decimals(min_value=0, max_value=100, places=4),
    )
    @settings(max_examples=200)
    def test_gross_recomputable_from_returned_rate(self, cents, rate):
        """Should keep gross == round(net * (1 + rate/100)) for the returned rate."""
        net = Decimal(cents) / 100
        result = price(net, rate)
        assert result.tax_rate.as_tuple().exponent == -2
        assert result.gross == round_money(result.net * (1 + result.tax_rate / 100))
