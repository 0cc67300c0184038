"""
System setting repository.

Data access layer for key/value configuration rows.
"""

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.models.system_setting import SystemSetting
from commission_engine.repositories.base import BaseRepository


class SystemSettingRepository(BaseRepository[SystemSetting]):
    """System setting repository with key-based access."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize system setting repository."""
        super().__init__(SystemSetting, session)

    async def get_values(self, keys: Iterable[str]) -> dict[str, str | None]:
        """
        Read several settings in one query.

        Args:
            keys: Setting keys

        Returns:
            Mapping of key to raw value for the keys that exist
        """
        stmt = select(
            SystemSetting.setting_key, SystemSetting.setting_value
        ).where(SystemSetting.setting_key.in_(list(keys)))
        result = await self.session.execute(stmt)
        return {row.setting_key: row.setting_value for row in result.all()}

    async def set_value(
        self, key: str, value: str, description: str | None = None
    ) -> SystemSetting:
        """
        Insert or update a setting.

        Args:
            key: Setting key
            value: Raw value
            description: Optional human description

        Returns:
            The stored setting
        """
        setting = await self.get_by(setting_key=key)
        if setting is None:
            return await self.create(
                setting_key=key, setting_value=value, description=description
            )
        setting.setting_value = value
        if description is not None:
            setting.description = description
        await self.session.flush()
        return setting
