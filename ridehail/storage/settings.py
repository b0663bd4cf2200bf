"""Single-row system settings store."""

from typing import Any

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ridehail.models.common import utcnow
from ridehail.models.settings import SystemSettings
from ridehail.storage.tables import system_settings

SETTINGS_ROW_ID = 1


class SystemSettingsStore:
    """Reads and upserts the settings row."""

    def __init__(self, defaults: SystemSettings | None = None):
        self.defaults = defaults or SystemSettings()

    async def get(self, session: AsyncSession) -> SystemSettings:
        """Stored settings, or the defaults when nothing is stored yet."""
        result = await session.execute(
            select(system_settings).where(system_settings.c.id == SETTINGS_ROW_ID)
        )
        row = result.mappings().first()
        if row is None:
            return self.defaults.model_copy()
        return SystemSettings.model_validate(dict(row))

    async def upsert(self, session: AsyncSession, values: dict[str, Any]) -> SystemSettings:
        """Update the settings row, creating it from defaults if missing."""
        now = utcnow()
        existing = await session.execute(
            select(system_settings.c.id)
            .where(system_settings.c.id == SETTINGS_ROW_ID)
            .with_for_update()
        )
        if existing.first() is None:
            row_values = self.defaults.model_dump(
                exclude={"id", "created_at", "updated_at"}
            )
            row_values.update(values)
            stmt = insert(system_settings).values(
                id=SETTINGS_ROW_ID, created_at=now, updated_at=now, **row_values
            )
        else:
            stmt = (
                update(system_settings)
                .where(system_settings.c.id == SETTINGS_ROW_ID)
                .values(updated_at=now, **values)
            )

        result = await session.execute(stmt.returning(*system_settings.c))
        return SystemSettings.model_validate(dict(result.mappings().one()))
