"""
Pairing Scheduler - Background service that starts new pairing periods when due.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from coffee_pairing.core.config import Settings, get_settings
from coffee_pairing.core.timeutils import utcnow
from coffee_pairing.models.scheduler_control import SchedulerControl
from coffee_pairing.repositories.period_repository import PairingPeriodRepository, period_has_ended
from coffee_pairing.repositories.settings_repository import AlgorithmSettingsRepository
from coffee_pairing.services.pairing_service import PairingService

logger = logging.getLogger(__name__)


@dataclass
class ScheduledPairingSummary:
    processed: int = 0
    successes: int = 0
    skipped: int = 0
    failures: List[tuple[int, str]] = field(default_factory=list)
    pairs_created: int = 0


class PairingScheduler:
    """
    Runs pairing for every configured organization whose period has ended
    or that has no period yet.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        pairing_service: Optional[PairingService] = None,
    ):
        self.session_maker = session_maker
        self.pairing_service = pairing_service or PairingService(session_maker)
        self._controls_cache: dict[int, SchedulerControl] = {}

    async def _load_controls(self, db: AsyncSession) -> None:
        result = await db.execute(select(SchedulerControl))
        self._controls_cache = {row.organization_id: row for row in result.scalars().all()}

    async def _due_organizations(self, summary: ScheduledPairingSummary) -> List[int]:
        due = []
        async with self.session_maker() as db:
            await self._load_controls(db)
            organization_ids = await AlgorithmSettingsRepository(db).list_organization_ids()
            periods = PairingPeriodRepository(db)
            now = utcnow()

            for organization_id in organization_ids:
                control = self._controls_cache.get(organization_id)
                if control and control.pause_pairing:
                    logger.debug(
                        f"Pairing paused for organization {organization_id}: "
                        f"{control.paused_reason or 'no reason given'}"
                    )
                    summary.skipped += 1
                    continue

                active = await periods.get_active(organization_id)
                if active is not None and not period_has_ended(active, now):
                    summary.skipped += 1
                    continue

                due.append(organization_id)

        return due

    async def process_due_organizations(self) -> ScheduledPairingSummary:
        """
        Execute pairing for each due organization.
        A failure in one organization is recorded and the loop moves on.
        """
        summary = ScheduledPairingSummary()
        due = await self._due_organizations(summary)

        if not due and not summary.skipped:
            logger.debug("Scheduled pairing found no organizations")
            return summary

        for organization_id in due:
            summary.processed += 1
            try:
                result = await self.pairing_service.execute_pairing(organization_id)
            except Exception as e:
                logger.error(f"Scheduled pairing error for organization {organization_id}: {e}", exc_info=True)
                summary.failures.append((organization_id, str(e)))
                continue

            if result.success:
                summary.successes += 1
                summary.pairs_created += result.pairings_created
            else:
                summary.failures.append((organization_id, result.message))

        logger.info(
            f"Scheduled pairing completed: processed={summary.processed} "
            f"successes={summary.successes} skipped={summary.skipped} "
            f"failures={len(summary.failures)} pairsCreated={summary.pairs_created}"
        )
        if summary.failures:
            details = "; ".join(f"{org_id}: {message}" for org_id, message in summary.failures)
            logger.warning(f"Scheduled pairing failures: {details}")

        return summary


async def run_pairing_scheduler(
    session_maker: async_sessionmaker[AsyncSession],
    pairing_service: Optional[PairingService] = None,
    config: Optional[Settings] = None,
):
    """
    Background task to run the pairing scheduler periodically.
    """
    config = config or get_settings()
    scheduler = PairingScheduler(session_maker, pairing_service)

    while True:
        try:
            logger.info("Running pairing scheduler...")
            await scheduler.process_due_organizations()
        except Exception as e:
            logger.error(f"Pairing scheduler error: {e}")

        await asyncio.sleep(config.PAIRING_SCHEDULER_INTERVAL_SECONDS)
