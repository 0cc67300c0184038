"""
Business logic constants for the commission engine.

Central location for business rules used across the engine.
Does not import settings, so it is safe to import from models and pure helpers.
"""

from decimal import Decimal


# A referral older than this (relative to the newest referral on the same
# subject) is external and earns the external rate
EXTERNAL_REFERRAL_AFTER_DAYS = 30

# Reports cannot start before this year (DB check constraint mirrors it)
MIN_REPORT_YEAR = 2000

# Sale statuses that count as a closed deal (matched on code or name)
FINALIZED_SALE_STATUSES = ("sold", "rented", "closed")

# Money precision for every persisted monetary field
MONEY_QUANT = Decimal("0.01")

# Allowed difference between total_commission and the sum of its parts
TOTAL_COMMISSION_TOLERANCE = Decimal("0.01")

# Lead source label for leads without a reference source
UNKNOWN_LEAD_SOURCE = "Unknown"

# Display name used when a hand-off references a missing employee
UNKNOWN_EMPLOYEE_NAME = "Unknown Employee"

# Commission rates (percentages) used when a setting is missing
DEFAULT_COMMISSION_RATES = {
    "agent": Decimal("2"),
    "finders": Decimal("1"),
    "referral_internal": Decimal("0.5"),
    "referral_external": Decimal("2"),
    "team_leader": Decimal("1"),
    "administration": Decimal("4"),
}

# system_settings keys holding the rates above
COMMISSION_SETTING_PREFIX = "commission_"
COMMISSION_SETTING_SUFFIX = "_percentage"
COMMISSION_SETTING_KEYS = {
    name: f"{COMMISSION_SETTING_PREFIX}{name}{COMMISSION_SETTING_SUFFIX}"
    for name in DEFAULT_COMMISSION_RATES
}

# Report fields an admin may edit by hand; everything else is computed
MANUAL_REPORT_FIELDS = frozenset({"boosts"})
