"""
Algorithm settings persistence.
"""
from typing import Optional
from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from coffee_pairing.models.algorithm_settings import AlgorithmSetting


class AlgorithmSettingsRepository:
    """Queries and upserts for the algorithm_settings table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, organization_id: int) -> Optional[AlgorithmSetting]:
        result = await self.db.execute(
            select(AlgorithmSetting).where(AlgorithmSetting.organization_id == organization_id)
        )
        return result.scalar_one_or_none()

    async def insert_if_absent(
        self,
        organization_id: int,
        period_length_days: int,
        random_seed: int,
    ) -> AlgorithmSetting:
        """
        Insert default settings unless a row already exists, then return the stored row.

        Uses INSERT ... ON CONFLICT DO NOTHING so two concurrent first reads
        end up with the same row instead of an integrity error.
        """
        dialect = self.db.get_bind().dialect.name
        insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
        stmt = (
            insert(AlgorithmSetting)
            .values(
                organization_id=organization_id,
                period_length_days=period_length_days,
                random_seed=random_seed,
            )
            .on_conflict_do_nothing(index_elements=["organization_id"])
        )
        await self.db.execute(stmt)

        setting = await self.get(organization_id)
        if setting is None:
            raise LookupError(f"Settings row for organization {organization_id} missing after upsert")
        return setting

    async def list_organization_ids(self) -> list[int]:
        result = await self.db.execute(
            select(AlgorithmSetting.organization_id).order_by(AlgorithmSetting.organization_id)
        )
        return list(result.scalars().all())
