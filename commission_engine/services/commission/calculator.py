"""
Commission calculator.

Pure money arithmetic. All amounts are Decimal and every result is rounded
to cents, half away from zero.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from commission_engine.config.business_constants import MONEY_QUANT
from commission_engine.services.commission.rates import CommissionRates


ZERO = Decimal("0")


def round_money(value: Decimal | int | float | str | None) -> Decimal:
    """
    Round a monetary value to 2 decimal places.

    Example:
        >>> round_money(Decimal("10.005"))
        Decimal('10.01')
        >>> round_money(Decimal("-10.005"))
        Decimal('-10.01')
    """
    if value is None:
        return ZERO.quantize(MONEY_QUANT)
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def percentage_of(amount: Decimal | None, rate: Decimal) -> Decimal:
    """Rounded `amount * rate / 100`."""
    return round_money((amount or ZERO) * rate / 100)


def referral_commission(
    price: Decimal | None, external: bool, rates: CommissionRates
) -> Decimal:
    """
    Commission earned by one referral.

    Formula: price * (external ? referral_external : referral_internal) / 100

    Args:
        price: Sale price of the referred subject
        external: Whether the referral is external (lapsed)
        rates: Commission rates

    Returns:
        Commission rounded to cents
    """
    rate = rates.referral_external if external else rates.referral_internal
    return percentage_of(price, rate)


@dataclass(frozen=True)
class ReferralLine:
    """One referral row joined with the price of its closed sale."""

    referral_id: int
    subject_type: str
    subject_id: int
    price: Decimal | None
    external: bool


@dataclass(frozen=True)
class ReferralCommissionSummary:
    """Count and commission of a set of referral rows."""

    count: int
    commission: Decimal


@dataclass(frozen=True)
class SalesCommissions:
    """Commissions derived from the agent's total sales amount."""

    agent: Decimal
    finders: Decimal
    team_leader: Decimal
    administration: Decimal


def sum_referral_commissions(
    lines: Iterable[ReferralLine], rates: CommissionRates
) -> ReferralCommissionSummary:
    """
    Sum per-row referral commissions.

    Each row is rounded on its own before summing, so a subject with N
    referrals contributes N commission terms.

    Args:
        lines: Referral rows with sale prices
        rates: Commission rates

    Returns:
        Row count and rounded commission total
    """
    count = 0
    total = ZERO
    for line in lines:
        count += 1
        total += referral_commission(line.price, line.external, rates)
    return ReferralCommissionSummary(
        count=count, commission=round_money(total)
    )


class CommissionCalculator:
    """
    Commission calculator bound to one set of rates.

    Referral rows are summed independently: a subject with N referrals
    contributes N commission terms, one per row.
    """

    def __init__(self, rates: CommissionRates) -> None:
        self.rates = rates

    def referral_commission(
        self, price: Decimal | None, external: bool
    ) -> Decimal:
        return referral_commission(price, external, self.rates)

    def sum_referral_commissions(
        self, lines: Iterable[ReferralLine]
    ) -> ReferralCommissionSummary:
        return sum_referral_commissions(lines, self.rates)

    def sales_commissions(self, sales_amount: Decimal) -> SalesCommissions:
        return SalesCommissions(
            agent=percentage_of(sales_amount, self.rates.agent),
            finders=percentage_of(sales_amount, self.rates.finders),
            team_leader=percentage_of(sales_amount, self.rates.team_leader),
            administration=percentage_of(
                sales_amount, self.rates.administration
            ),
        )

    @staticmethod
    def total(components: Iterable[Decimal]) -> Decimal:
        """Rounded sum of commission components."""
        return round_money(sum(components, ZERO))
