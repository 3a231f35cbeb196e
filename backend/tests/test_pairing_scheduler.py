"""
Test the scheduled pairing run
"""
import logging
from datetime import timedelta

import pytest
from sqlalchemy import select

from coffee_pairing.core.timeutils import utcnow
from coffee_pairing.models.algorithm_settings import AlgorithmSetting
from coffee_pairing.models.pairing import PairingPeriod, PairingPeriodStatus
from coffee_pairing.models.scheduler_control import SchedulerControl
from coffee_pairing.services.pairing_scheduler import PairingScheduler
from coffee_pairing.services.pairing_service import PairingExecutionResult


async def configure(session, organization_id, seed=777):
    session.add(AlgorithmSetting(organization_id=organization_id, period_length_days=21, random_seed=seed))
    await session.commit()


async def add_period(session, organization_id, days_ago, length_days=21):
    start = utcnow() - timedelta(days=days_ago)
    period = PairingPeriod(
        organization_id=organization_id,
        start_date=start,
        end_date=start + timedelta(days=length_days),
        status=PairingPeriodStatus.ACTIVE,
    )
    session.add(period)
    await session.commit()
    return period


class TestPairingScheduler:
    """Which organizations the scheduler runs and how it reports."""

    @pytest.mark.asyncio
    async def test_no_organizations(self, session_maker, pairing_service, caplog):
        scheduler = PairingScheduler(session_maker, pairing_service)

        with caplog.at_level(logging.DEBUG):
            summary = await scheduler.process_due_organizations()

        assert summary.processed == 0
        assert "Scheduled pairing found no organizations" in caplog.text

    @pytest.mark.asyncio
    async def test_runs_ended_and_new_organizations(
        self, db_session, session_maker, pairing_service, dispatcher, make_organization, make_users, caplog
    ):
        ended = await make_organization("ENDED")
        fresh = await make_organization("FRESH")
        running = await make_organization("RUNNING")
        unconfigured = await make_organization("NOCONF")
        for org in (ended, fresh, running, unconfigured):
            await make_users(org, 4, prefix=org.code.lower())
            if org is not unconfigured:
                await configure(db_session, org.id)
        await add_period(db_session, ended.id, days_ago=30)
        await add_period(db_session, running.id, days_ago=2)

        scheduler = PairingScheduler(session_maker, pairing_service)
        with caplog.at_level(logging.INFO):
            summary = await scheduler.process_due_organizations()
        await dispatcher.drain()

        assert summary.processed == 2
        assert summary.successes == 2
        assert summary.skipped == 1
        assert summary.failures == []
        assert summary.pairs_created == 4
        assert "processed=2 successes=2 skipped=1 failures=0 pairsCreated=4" in caplog.text

        async with session_maker() as session:
            periods = (await session.execute(
                select(PairingPeriod).where(PairingPeriod.organization_id == ended.id).order_by(PairingPeriod.id)
            )).scalars().all()
            untouched = (await session.execute(
                select(PairingPeriod).where(PairingPeriod.organization_id == unconfigured.id)
            )).scalars().all()

        assert [p.status for p in periods] == [PairingPeriodStatus.CLOSED, PairingPeriodStatus.ACTIVE]
        assert untouched == []

    @pytest.mark.asyncio
    async def test_paused_organization_skipped(
        self, db_session, session_maker, pairing_service, make_organization, make_users
    ):
        org = await make_organization()
        await make_users(org, 2)
        await configure(db_session, org.id)
        db_session.add(SchedulerControl(organization_id=org.id, pause_pairing=True, paused_reason="office closed"))
        await db_session.commit()

        summary = await PairingScheduler(session_maker, pairing_service).process_due_organizations()

        assert summary.processed == 0
        assert summary.skipped == 1

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_other_organizations(
        self, db_session, session_maker, make_organization, caplog
    ):
        first = await make_organization("FIRST")
        second = await make_organization("SECOND")
        third = await make_organization("THIRD")
        for org in (first, second, third):
            await configure(db_session, org.id)

        calls = []

        class FlakyPairingService:
            async def execute_pairing(self, organization_id, actor=None):
                calls.append(organization_id)
                if organization_id == first.id:
                    raise RuntimeError("boom")
                if organization_id == second.id:
                    return PairingExecutionResult(success=False, message="database error")
                return PairingExecutionResult(success=True, message="ok", pairings_created=3)

        scheduler = PairingScheduler(session_maker, FlakyPairingService())
        with caplog.at_level(logging.WARNING):
            summary = await scheduler.process_due_organizations()

        assert calls == [first.id, second.id, third.id]
        assert summary.processed == 3
        assert summary.successes == 1
        assert summary.pairs_created == 3
        assert summary.failures == [(first.id, "boom"), (second.id, "database error")]
        assert f"{first.id}: boom" in caplog.text
        assert f"{second.id}: database error" in caplog.text
