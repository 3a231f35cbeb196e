"""
Consecutive-cycle participation tracking.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from coffee_pairing.models.cycle_participation import CycleParticipation
from coffee_pairing.repositories.cycle_participation_repository import CycleParticipationRepository
from coffee_pairing.repositories.period_repository import PairingPeriodRepository

logger = logging.getLogger(__name__)


class CycleParticipationTracker:
    """
    Counts uninterrupted periods a user has been paired in.

    A missed cycle is detected when the user next participates; the streak
    then restarts at 1. Rows of users who skip a cycle are not touched.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repository = CycleParticipationRepository(db)

    async def current_cycle_number(self, organization_id: int) -> int:
        """Closed periods plus one when a period is active. Derived from stored rows only."""
        periods = PairingPeriodRepository(self.db)
        closed = await periods.count_closed(organization_id)
        active = await periods.get_active(organization_id)
        return closed + (1 if active is not None else 0)

    async def increment_or_reset(
        self,
        user_id: int,
        organization_id: int,
        current_cycle_number: int,
    ) -> CycleParticipation:
        record = await self.repository.get(user_id, organization_id)

        if record is None:
            return await self.repository.add(
                CycleParticipation(
                    user_id=user_id,
                    organization_id=organization_id,
                    consecutive_count=1,
                    last_participation_cycle=current_cycle_number,
                )
            )

        if record.last_participation_cycle == current_cycle_number:
            # Already counted for this cycle
            return record

        if record.last_participation_cycle == current_cycle_number - 1:
            record.consecutive_count += 1
        else:
            logger.debug(
                f"User {user_id} missed cycles {record.last_participation_cycle + 1}"
                f"..{current_cycle_number - 1}, resetting streak"
            )
            record.consecutive_count = 1
        record.last_participation_cycle = current_cycle_number

        await self.db.flush()
        return record

    async def get_consecutive_count(self, user_id: int, organization_id: int) -> int:
        record = await self.repository.get(user_id, organization_id)
        return record.consecutive_count if record else 0
