"""
Commission engine.

Referral attribution (30-day internal/external rule), commission
calculation and per-agent report aggregation on SQLAlchemy asyncio.
"""

__version__ = "1.0.0"
