"""
User block graph lookups.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from coffee_pairing.models.user_block import UserBlock


class UserBlockRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_blocks_for_organization(self, organization_id: int) -> list[tuple[int, int]]:
        """Return every (blocker_id, blocked_id) edge in the organization."""
        result = await self.db.execute(
            select(UserBlock.blocker_id, UserBlock.blocked_id)
            .where(UserBlock.organization_id == organization_id)
            .order_by(UserBlock.id)
        )
        return [(row.blocker_id, row.blocked_id) for row in result.all()]
