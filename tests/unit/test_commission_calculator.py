"""
Unit tests for commission arithmetic.

Tests cover:
- Rounding to cents (half away from zero)
- Internal vs external referral commission
- Per-row summing of referral commissions
- Commissions derived from sales amount
"""

from decimal import Decimal

import pytest

from commission_engine.services.commission import (
    CommissionRates,
    ReferralLine,
    percentage_of,
    referral_commission,
    round_money,
    sum_referral_commissions,
)


def line(id: int, price: str | None, external: bool) -> ReferralLine:
    return ReferralLine(
        referral_id=id,
        subject_type="property",
        subject_id=1,
        price=Decimal(price) if price is not None else None,
        external=external,
    )


class TestRoundMoney:
    """Test rounding of monetary values."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (Decimal("10.005"), Decimal("10.01")),
            (Decimal("10.004"), Decimal("10.00")),
            (Decimal("-10.005"), Decimal("-10.01")),
            (Decimal("0.125"), Decimal("0.13")),
            (Decimal("7500"), Decimal("7500.00")),
        ],
    )
    def test_half_away_from_zero(self, value, expected):
        assert round_money(value) == expected

    def test_none_is_zero(self):
        assert round_money(None) == Decimal("0.00")

    def test_float_goes_through_str(self):
        # 1.005 as a float is 1.00499999...; str() keeps the written value
        assert round_money(1.005) == Decimal("1.01")

    def test_result_has_two_decimal_places(self):
        result = round_money(Decimal("123.456789"))
        assert result.as_tuple().exponent == -2


class TestReferralCommission:
    """Test commission of a single referral."""

    def test_internal_rate(self, rates):
        # 300000 * 0.5 / 100
        assert referral_commission(Decimal("300000"), False, rates) == Decimal("1500.00")

    def test_external_rate(self, rates):
        # 300000 * 2 / 100
        assert referral_commission(Decimal("300000"), True, rates) == Decimal("6000.00")

    def test_missing_price_earns_nothing(self, rates):
        assert referral_commission(None, True, rates) == Decimal("0.00")

    def test_rounded_to_cents(self, rates):
        # 1234.57 * 0.5 / 100 = 6.17285
        assert referral_commission(Decimal("1234.57"), False, rates) == Decimal("6.17")

    def test_custom_rates(self):
        rates = CommissionRates(referral_internal=Decimal("1"), referral_external=Decimal("3"))
        assert referral_commission(Decimal("1000"), False, rates) == Decimal("10.00")
        assert referral_commission(Decimal("1000"), True, rates) == Decimal("30.00")


class TestSumReferralCommissions:
    """Test summing of referral rows."""

    def test_one_internal_one_external_same_sale(self, rates):
        summary = sum_referral_commissions(
            [line(1, "300000", False), line(2, "300000", True)], rates
        )
        assert summary.count == 2
        assert summary.commission == Decimal("7500.00")

    def test_every_row_counts(self, rates):
        # Two internal and one external referral on one subject: no cap
        summary = sum_referral_commissions(
            [
                line(1, "100000", False),
                line(2, "100000", False),
                line(3, "100000", True),
            ],
            rates,
        )
        assert summary.count == 3
        assert summary.commission == Decimal("500") + Decimal("500") + Decimal("2000")

    def test_each_row_rounded_before_summing(self, rates):
        # 0.5% of 1.01 = 0.00505 -> 0.01 per row
        summary = sum_referral_commissions(
            [line(1, "1.01", False), line(2, "1.01", False)], rates
        )
        assert summary.commission == Decimal("0.02")

    def test_empty(self, rates):
        summary = sum_referral_commissions([], rates)
        assert summary.count == 0
        assert summary.commission == Decimal("0.00")

    def test_calculator_delegates(self, calculator):
        summary = calculator.sum_referral_commissions([line(1, "300000", True)])
        assert summary.commission == Decimal("6000.00")


class TestSalesCommissions:
    """Test commissions derived from sales amount."""

    def test_default_rates(self, calculator):
        sales = calculator.sales_commissions(Decimal("300000"))
        assert sales.agent == Decimal("6000.00")
        assert sales.finders == Decimal("3000.00")
        assert sales.team_leader == Decimal("3000.00")
        assert sales.administration == Decimal("12000.00")

    def test_zero_sales(self, calculator):
        sales = calculator.sales_commissions(Decimal("0"))
        assert sales.agent == Decimal("0.00")
        assert sales.administration == Decimal("0.00")

    def test_percentage_of_rounds(self):
        assert percentage_of(Decimal("333.33"), Decimal("1")) == Decimal("3.33")

    def test_total_is_rounded_sum(self, calculator):
        total = calculator.total([Decimal("1.10"), Decimal("2.20"), Decimal("3.30")])
        assert total == Decimal("6.60")
