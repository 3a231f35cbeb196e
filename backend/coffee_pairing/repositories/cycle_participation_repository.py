"""
Cycle participation rows.
"""
from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from coffee_pairing.models.cycle_participation import CycleParticipation


class CycleParticipationRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: int, organization_id: int) -> Optional[CycleParticipation]:
        result = await self.db.execute(
            select(CycleParticipation)
            .where(CycleParticipation.user_id == user_id)
            .where(CycleParticipation.organization_id == organization_id)
        )
        return result.scalar_one_or_none()

    async def add(self, participation: CycleParticipation) -> CycleParticipation:
        self.db.add(participation)
        await self.db.flush()
        return participation
