"""
Commission services package.

- rates: CommissionRates and rate providers (settings, static, cached)
- calculator: rounding and per-referral / per-sale commission arithmetic
"""

from commission_engine.services.commission.calculator import (
    CommissionCalculator,
    ReferralCommissionSummary,
    ReferralLine,
    SalesCommissions,
    percentage_of,
    referral_commission,
    round_money,
    sum_referral_commissions,
)
from commission_engine.services.commission.rates import (
    CachedRateProvider,
    CommissionRates,
    RateProvider,
    SettingsRateProvider,
    StaticRateProvider,
    build_rate_provider,
)


__all__ = [
    # Calculator
    "CommissionCalculator",
    "ReferralCommissionSummary",
    "ReferralLine",
    "SalesCommissions",
    "percentage_of",
    "referral_commission",
    "round_money",
    "sum_referral_commissions",
    # Rates
    "CachedRateProvider",
    "CommissionRates",
    "RateProvider",
    "SettingsRateProvider",
    "StaticRateProvider",
    "build_rate_provider",
]
