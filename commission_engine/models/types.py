"""
Standard type definitions for database models.

Provides consistent types for monetary and JSON fields across all models.
"""

from sqlalchemy import DECIMAL, JSON
from sqlalchemy.dialects.postgresql import JSONB

# Standard money type for prices, commissions and boosts
# Precision: 14 digits total, 2 after decimal point
# Range: up to 999,999,999,999.99
MoneyType = DECIMAL(14, 2)

# JSON document type, JSONB on PostgreSQL
JSONType = JSON().with_variant(JSONB(), "postgresql")
