"""
Pairing rows and pairing history.
"""
from typing import Iterable, Optional
from sqlalchemy import select, union
from sqlalchemy.ext.asyncio import AsyncSession

from coffee_pairing.models.pairing import Pairing, PairingStatus
from coffee_pairing.repositories.period_repository import PairingPeriodRepository


class PairingRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_batch(
        self,
        period_id: int,
        organization_id: int,
        pairs: Iterable[tuple[int, int]],
    ) -> list[Pairing]:
        """Add all pairs to the session and flush once. Nothing is committed here."""
        pairings = [
            Pairing(
                period_id=period_id,
                organization_id=organization_id,
                user_a_id=user_a_id,
                user_b_id=user_b_id,
                status=PairingStatus.PLANNED,
            )
            for user_a_id, user_b_id in pairs
        ]
        if pairings:
            self.db.add_all(pairings)
            await self.db.flush()
        return pairings

    async def get_user_ids_paired_in_period(self, period_id: int) -> set[int]:
        query = union(
            select(Pairing.user_a_id).where(Pairing.period_id == period_id),
            select(Pairing.user_b_id).where(Pairing.period_id == period_id),
        )
        result = await self.db.execute(query)
        return set(result.scalars().all())

    async def get_user_ids_with_history(self, organization_id: int) -> set[int]:
        """Every user that has appeared in any pairing of the organization."""
        query = union(
            select(Pairing.user_a_id).where(Pairing.organization_id == organization_id),
            select(Pairing.user_b_id).where(Pairing.organization_id == organization_id),
        )
        result = await self.db.execute(query)
        return set(result.scalars().all())

    async def get_recent_pairing_history(
        self,
        organization_id: int,
        lookback_periods: int,
        exclude_period_id: Optional[int] = None,
    ) -> dict[int, dict[int, int]]:
        """
        Map each user to {partner: periods_ago} over the latest periods.

        The newest period considered counts as 1 period ago. When a pair met in
        several of those periods the smallest distance is kept.
        """
        if lookback_periods <= 0:
            return {}

        period_ids = await PairingPeriodRepository(self.db).get_recent_ids(
            organization_id, lookback_periods, exclude_period_id=exclude_period_id
        )
        if not period_ids:
            return {}

        distance = {period_id: index + 1 for index, period_id in enumerate(period_ids)}
        result = await self.db.execute(
            select(Pairing.period_id, Pairing.user_a_id, Pairing.user_b_id)
            .where(Pairing.period_id.in_(period_ids))
        )

        history: dict[int, dict[int, int]] = {}
        for row in result.all():
            periods_ago = distance[row.period_id]
            for user_id, partner_id in ((row.user_a_id, row.user_b_id), (row.user_b_id, row.user_a_id)):
                partners = history.setdefault(user_id, {})
                known = partners.get(partner_id)
                if known is None or periods_ago < known:
                    partners[partner_id] = periods_ago
        return history
