"""
Commission rate settings.

Rates are percentages read from system_settings at aggregation time through
an injected provider. Missing or invalid values fall back to the documented
defaults; reading rates never fails because a key is absent.
"""

import asyncio
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields
from decimal import Decimal, InvalidOperation
from typing import Protocol

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from commission_engine.config.business_constants import (
    COMMISSION_SETTING_KEYS,
    DEFAULT_COMMISSION_RATES,
)
from commission_engine.config.settings import settings
from commission_engine.repositories.system_setting_repository import (
    SystemSettingRepository,
)


@dataclass(frozen=True)
class CommissionRates:
    """Commission percentages (2 means 2%)."""

    agent: Decimal = DEFAULT_COMMISSION_RATES["agent"]
    finders: Decimal = DEFAULT_COMMISSION_RATES["finders"]
    referral_internal: Decimal = DEFAULT_COMMISSION_RATES["referral_internal"]
    referral_external: Decimal = DEFAULT_COMMISSION_RATES["referral_external"]
    team_leader: Decimal = DEFAULT_COMMISSION_RATES["team_leader"]
    administration: Decimal = DEFAULT_COMMISSION_RATES["administration"]

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, Decimal):
                object.__setattr__(self, f.name, Decimal(str(value)))
            if getattr(self, f.name) < 0:
                raise ValueError(f"Commission rate {f.name} cannot be negative")

    @classmethod
    def from_settings(
        cls, raw: Mapping[str, str | None]
    ) -> "CommissionRates":
        """
        Build rates from raw system_settings values.

        Args:
            raw: Mapping of setting key (commission_<name>_percentage) to text

        Returns:
            Rates with defaults for missing, unparseable or negative values
        """
        values: dict[str, Decimal] = {}
        for name, key in COMMISSION_SETTING_KEYS.items():
            default = DEFAULT_COMMISSION_RATES[name]
            text = raw.get(key)
            if text is None or str(text).strip() == "":
                values[name] = default
                continue
            try:
                parsed = Decimal(str(text).strip())
            except InvalidOperation:
                logger.warning(
                    f"Invalid commission setting {key}={text!r}, "
                    f"using default {default}"
                )
                values[name] = default
                continue
            if not parsed.is_finite() or parsed < 0:
                logger.warning(
                    f"Out of range commission setting {key}={text!r}, "
                    f"using default {default}"
                )
                values[name] = default
                continue
            values[name] = parsed
        return cls(**values)


class RateProvider(Protocol):
    """Read-only source of commission rates."""

    async def get_rates(self) -> CommissionRates:
        ...


class StaticRateProvider:
    """Provider returning fixed rates."""

    def __init__(self, rates: CommissionRates | None = None) -> None:
        self.rates = rates or CommissionRates()

    async def get_rates(self) -> CommissionRates:
        return self.rates


class SettingsRateProvider:
    """Provider reading rates from the system_settings table."""

    def __init__(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """
        Initialize provider.

        Args:
            session_factory: Factory for short read-only sessions
        """
        self.session_factory = session_factory

    async def get_rates(self) -> CommissionRates:
        """Read all commission settings in one query."""
        async with self.session_factory() as session:
            repo = SystemSettingRepository(session)
            raw = await repo.get_values(COMMISSION_SETTING_KEYS.values())
        rates = CommissionRates.from_settings(raw)
        logger.debug(f"Loaded commission rates: {rates}")
        return rates


class CachedRateProvider:
    """
    Time-bounded cache in front of another provider.

    Concurrent callers share one refresh.
    """

    def __init__(
        self,
        inner: RateProvider,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.inner = inner
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._rates: CommissionRates | None = None
        self._loaded_at = 0.0
        self._lock = asyncio.Lock()

    def _fresh(self) -> bool:
        return (
            self._rates is not None
            and self._clock() - self._loaded_at < self.ttl_seconds
        )

    async def get_rates(self) -> CommissionRates:
        if self._fresh():
            return self._rates
        async with self._lock:
            if not self._fresh():
                self._rates = await self.inner.get_rates()
                self._loaded_at = self._clock()
        return self._rates

    def invalidate(self) -> None:
        """Drop the cached rates; the next read goes to the inner provider."""
        self._rates = None


def build_rate_provider(
    session_factory: async_sessionmaker[AsyncSession],
    ttl_seconds: float | None = None,
) -> RateProvider:
    """
    Settings-backed provider, cached when the TTL is positive.

    Args:
        session_factory: Factory for the settings reads
        ttl_seconds: Cache lifetime (RATE_CACHE_TTL_SECONDS when omitted)
    """
    ttl = settings.rate_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
    provider: RateProvider = SettingsRateProvider(session_factory)
    if ttl > 0:
        provider = CachedRateProvider(provider, ttl_seconds=ttl)
    return provider
