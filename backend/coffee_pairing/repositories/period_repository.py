"""
Pairing period persistence and lifecycle transitions.
"""
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from coffee_pairing.core.timeutils import as_utc
from coffee_pairing.models.pairing import PairingPeriod, PairingPeriodStatus


class PairingPeriodRepository:
    """Reads and writes pairing_periods rows for one session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_active(self, organization_id: int, with_pairings: bool = False) -> Optional[PairingPeriod]:
        query = (
            select(PairingPeriod)
            .where(PairingPeriod.organization_id == organization_id)
            .where(PairingPeriod.status == PairingPeriodStatus.ACTIVE)
        )
        if with_pairings:
            query = query.options(selectinload(PairingPeriod.pairings))
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def open_period(
        self,
        organization_id: int,
        start: datetime,
        period_length_days: int,
    ) -> PairingPeriod:
        period = PairingPeriod(
            organization_id=organization_id,
            start_date=start,
            end_date=start + timedelta(days=period_length_days),
            status=PairingPeriodStatus.ACTIVE,
        )
        self.db.add(period)
        await self.db.flush()
        return period

    async def close_period(self, period: PairingPeriod, closed_at: datetime) -> PairingPeriod:
        """Mark the period closed; end_date becomes closed_at unless it already passed."""
        period.status = PairingPeriodStatus.CLOSED
        end_date = as_utc(period.end_date)
        if end_date is None or end_date > closed_at:
            period.end_date = closed_at
        await self.db.flush()
        return period

    async def count_closed(self, organization_id: int) -> int:
        result = await self.db.execute(
            select(func.count(PairingPeriod.id))
            .where(PairingPeriod.organization_id == organization_id)
            .where(PairingPeriod.status == PairingPeriodStatus.CLOSED)
        )
        return result.scalar_one()

    async def get_previous(self, organization_id: int, current_period_id: int) -> Optional[PairingPeriod]:
        """Most recently started period other than the current one."""
        result = await self.db.execute(
            select(PairingPeriod)
            .where(PairingPeriod.organization_id == organization_id)
            .where(PairingPeriod.id != current_period_id)
            .order_by(PairingPeriod.start_date.desc(), PairingPeriod.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_recent_ids(
        self,
        organization_id: int,
        limit: int,
        exclude_period_id: Optional[int] = None,
    ) -> list[int]:
        """IDs of the latest periods by start date, newest first."""
        query = (
            select(PairingPeriod.id)
            .where(PairingPeriod.organization_id == organization_id)
            .order_by(PairingPeriod.start_date.desc(), PairingPeriod.id.desc())
            .limit(limit)
        )
        if exclude_period_id is not None:
            query = query.where(PairingPeriod.id != exclude_period_id)
        result = await self.db.execute(query)
        return list(result.scalars().all())


def period_has_ended(period: PairingPeriod, now: datetime) -> bool:
    end_date = as_utc(period.end_date)
    return end_date is not None and end_date <= now
