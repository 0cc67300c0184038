"""
Shared fixtures for unit tests.

This module provides common fixtures used across multiple test modules:
- Default commission rates and calculator
- Referral row factory for the classifier
"""

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace

import pytest

from commission_engine.services.commission import (
    CommissionCalculator,
    CommissionRates,
)


BASE_DATE = datetime(2025, 1, 1, 9, 0, tzinfo=UTC)


@pytest.fixture
def rates():
    """
    Default commission rates.

    Default values:
    - agent: 2%
    - finders: 1%
    - referral_internal: 0.5%
    - referral_external: 2%
    - team_leader: 1%
    - administration: 4%
    """
    return CommissionRates()


@pytest.fixture
def calculator(rates):
    """CommissionCalculator with default rates."""
    return CommissionCalculator(rates)


@pytest.fixture
def make_referral():
    """
    Build referral-like rows placed N days after a fixed base date.

    Returns:
        Callable(id, day, external=False) -> SimpleNamespace
    """
    def factory(id: int, day: float, external: bool = False):
        return SimpleNamespace(
            id=id,
            date=BASE_DATE + timedelta(days=day),
            external=external,
        )

    return factory
