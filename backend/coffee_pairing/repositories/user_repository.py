"""
User directory queries used by the pairing algorithm.
"""
from datetime import datetime
from typing import Iterable, Optional
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from coffee_pairing.models.organization import Organization
from coffee_pairing.models.pairing import Pairing
from coffee_pairing.models.user import User


class UserRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_organization(self, organization_id: int) -> Optional[Organization]:
        result = await self.db.execute(
            select(Organization).where(Organization.id == organization_id)
        )
        return result.scalar_one_or_none()

    async def find_eligible_users(
        self,
        organization_id: int,
        period_id: int,
        now: datetime,
    ) -> list[User]:
        """
        Active, unsuspended members not yet paired in the given period.

        Ordered by creation time then id so the seeded shuffle sees the same
        input order on every run.
        """
        paired_as_a = select(Pairing.user_a_id).where(Pairing.period_id == period_id)
        paired_as_b = select(Pairing.user_b_id).where(Pairing.period_id == period_id)

        result = await self.db.execute(
            select(User)
            .where(User.organization_id == organization_id)
            .where(User.is_active == True)  # noqa: E712
            .where(or_(User.suspended_until.is_(None), User.suspended_until < now))
            .where(User.id.not_in(paired_as_a))
            .where(User.id.not_in(paired_as_b))
            .order_by(User.created_at, User.id)
        )
        return list(result.scalars().all())

    async def filter_created_before(self, user_ids: Iterable[int], cutoff: datetime) -> set[int]:
        ids = list(user_ids)
        if not ids:
            return set()
        result = await self.db.execute(
            select(User.id).where(User.id.in_(ids)).where(User.created_at <= cutoff)
        )
        return set(result.scalars().all())
