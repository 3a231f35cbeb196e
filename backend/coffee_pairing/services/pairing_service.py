"""
Pairing execution for one organization.

A run resolves settings and the active period, computes eligible users,
matches them under the exclusion rules and persists pairs together with
cycle participation in a single transaction. Achievement and email follow-ups
are dispatched only after that transaction commits.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from coffee_pairing.core.config import Settings, get_settings
from coffee_pairing.core.exceptions import OrganizationNotFound, PersistenceFailure
from coffee_pairing.core.security import CallerIdentity
from coffee_pairing.core.timeutils import utcnow
from coffee_pairing.models.pairing import PairingPeriod, PairingPeriodStatus
from coffee_pairing.repositories.block_repository import UserBlockRepository
from coffee_pairing.repositories.pairing_repository import PairingRepository
from coffee_pairing.repositories.period_repository import PairingPeriodRepository, period_has_ended
from coffee_pairing.repositories.user_repository import UserRepository
from coffee_pairing.services.algorithm_settings_service import AlgorithmSettingsService
from coffee_pairing.services.audit_service import log_audit, log_status_change
from coffee_pairing.services.cycle_participation import CycleParticipationTracker
from coffee_pairing.services.exclusion import ExclusionIndex
from coffee_pairing.services.matching import match_users
from coffee_pairing.services.pairing_hooks import PairedUser, PairingHooks

logger = logging.getLogger(__name__)


@dataclass
class PairingExecutionResult:
    success: bool
    message: str
    pairings_created: int = 0
    unpaired_users: int = 0
    period_id: Optional[int] = None


@dataclass
class _PairingRun:
    result: PairingExecutionResult
    pairs: list[tuple[PairedUser, PairedUser]] = field(default_factory=list)
    consecutive_counts: dict[int, int] = field(default_factory=dict)
    period_end: Optional[datetime] = None


class OrganizationLocks:
    """
    One asyncio lock per organization so runs for the same organization never overlap.

    Locks are kept for the life of the process, one per organization seen.
    """

    def __init__(self) -> None:
        self._locks: dict[int, asyncio.Lock] = {}

    def get(self, organization_id: int) -> asyncio.Lock:
        lock = self._locks.get(organization_id)
        if lock is None:
            lock = self._locks[organization_id] = asyncio.Lock()
        return lock


organization_locks = OrganizationLocks()


class PairingService:
    """Runs the pairing algorithm; safe to share between the API and the scheduler."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        hooks: Optional[PairingHooks] = None,
        locks: Optional[OrganizationLocks] = None,
        config: Optional[Settings] = None,
    ):
        self.session_maker = session_maker
        self.config = config or get_settings()
        self.hooks = hooks or PairingHooks(session_maker, config=self.config)
        self.locks = locks or organization_locks

    async def execute_pairing(
        self,
        organization_id: int,
        actor: Optional[CallerIdentity] = None,
    ) -> PairingExecutionResult:
        """
        Pair the organization's eligible users for the active period.

        Never raises; any failure inside the run comes back as success=False
        with nothing committed.
        """
        async with self.locks.get(organization_id):
            try:
                run = await self._run(organization_id, actor)
            except OrganizationNotFound as e:
                logger.warning(f"Pairing skipped: {e.message}")
                return PairingExecutionResult(success=False, message=e.message)
            except PersistenceFailure as e:
                logger.error(f"{e.message}: {e.__cause__}", exc_info=e.__cause__)
                return PairingExecutionResult(success=False, message=e.message)
            except Exception as e:
                message = f"Pairing failed for organization {organization_id}: {e}"
                logger.error(message, exc_info=True)
                return PairingExecutionResult(success=False, message=message)

        if run.pairs:
            self.hooks.after_pairings_committed(
                organization_id,
                run.pairs,
                run.consecutive_counts,
                period_end=run.period_end,
            )
        return run.result

    async def _run(self, organization_id: int, actor: Optional[CallerIdentity]) -> _PairingRun:
        async with self.session_maker() as db:
            try:
                run = await self._match_and_persist(db, organization_id, actor)
                await db.commit()
            except SQLAlchemyError as e:
                await db.rollback()
                raise PersistenceFailure(
                    f"Pairing failed for organization {organization_id}: "
                    f"database error, no pairings were saved"
                ) from e
            except Exception:
                await db.rollback()
                raise
        return run

    async def _match_and_persist(
        self,
        db: AsyncSession,
        organization_id: int,
        actor: Optional[CallerIdentity],
    ) -> _PairingRun:
        users = UserRepository(db)
        if await users.get_organization(organization_id) is None:
            raise OrganizationNotFound(organization_id)

        # Snapshot settings; later updates only affect later runs
        setting = await AlgorithmSettingsService(db, self.config).get_or_create(organization_id)
        period_length_days = setting.period_length_days
        seed = setting.random_seed

        now = utcnow()
        period = await self._resolve_active_period(db, organization_id, now, period_length_days, actor)

        eligible = await users.find_eligible_users(organization_id, period.id, now)
        if len(eligible) < 2:
            message = (
                f"Insufficient eligible users for pairing "
                f"({len(eligible)} available, at least 2 required)"
            )
            logger.info(f"Organization {organization_id}: {message}")
            return _PairingRun(
                result=PairingExecutionResult(
                    success=True,
                    message=message,
                    pairings_created=0,
                    unpaired_users=len(eligible),
                    period_id=period.id,
                )
            )

        eligible_ids = [user.id for user in eligible]
        lookback = self.config.PAIRING_HISTORY_LOOKBACK_PERIODS
        pairings = PairingRepository(db)

        block_edges = await UserBlockRepository(db).find_blocks_for_organization(organization_id)
        history = await pairings.get_recent_pairing_history(
            organization_id, lookback, exclude_period_id=period.id
        )
        exclusions = ExclusionIndex.build(
            block_edges,
            history,
            total_eligible_count=len(eligible_ids),
            window=lookback,
            small_population=self.config.PAIRING_SMALL_POPULATION_OVERRIDE,
        )
        guaranteed = await self._guaranteed_users(db, organization_id, period, eligible_ids)

        outcome = match_users(eligible_ids, exclusions.can_pair, seed, guaranteed)
        if not outcome.pairs:
            logger.warning("No pairs were created during this run")

        await pairings.create_batch(period.id, organization_id, outcome.pairs)

        tracker = CycleParticipationTracker(db)
        cycle_number = await tracker.current_cycle_number(organization_id)
        consecutive_counts: dict[int, int] = {}
        for user_a_id, user_b_id in outcome.pairs:
            for user_id in (user_a_id, user_b_id):
                record = await tracker.increment_or_reset(user_id, organization_id, cycle_number)
                consecutive_counts[user_id] = record.consecutive_count

        created = len(outcome.pairs)
        unpaired = len(outcome.unpaired)
        message = f"Created {created} pairings"
        if unpaired:
            message += f"; {unpaired} user(s) left unpaired"

        if actor is not None:
            await log_audit(
                db,
                entity_type="PairingPeriod",
                entity_id=period.id,
                action="EXECUTE",
                organization_id=organization_id,
                actor=actor,
                description=f"Manual pairing run: {message}",
            )

        logger.info(
            f"Pairing run for organization {organization_id} period {period.id}: "
            f"{created} pairs, {unpaired} unpaired, cycle {cycle_number}"
        )

        by_id = {user.id: PairedUser.from_user(user) for user in eligible}
        return _PairingRun(
            result=PairingExecutionResult(
                success=True,
                message=message,
                pairings_created=created,
                unpaired_users=unpaired,
                period_id=period.id,
            ),
            pairs=[(by_id[a], by_id[b]) for a, b in outcome.pairs],
            consecutive_counts=consecutive_counts,
            period_end=period.end_date,
        )

    async def _resolve_active_period(
        self,
        db: AsyncSession,
        organization_id: int,
        now: datetime,
        period_length_days: int,
        actor: Optional[CallerIdentity],
    ) -> PairingPeriod:
        """Return the running period, closing an expired one and opening a new one as needed."""
        periods = PairingPeriodRepository(db)
        period = await periods.get_active(organization_id)

        if period is not None and period_has_ended(period, now):
            await periods.close_period(period, now)
            await log_status_change(
                db,
                period,
                "PairingPeriod",
                PairingPeriodStatus.ACTIVE,
                PairingPeriodStatus.CLOSED,
                organization_id=organization_id,
                actor=actor,
                description="Closed expired pairing period",
            )
            logger.info(f"Closed pairing period {period.id} for organization {organization_id}")
            period = None

        if period is None:
            period = await periods.open_period(organization_id, now, period_length_days)
            logger.info(
                f"Opened pairing period {period.id} for organization {organization_id} "
                f"({period_length_days} days)"
            )

        return period

    async def _guaranteed_users(
        self,
        db: AsyncSession,
        organization_id: int,
        period: PairingPeriod,
        eligible_ids: list[int],
    ) -> set[int]:
        """
        Users matched first: those never paired in the organization, and
        members who were left out of the previous period.
        """
        pairings = PairingRepository(db)
        with_history = await pairings.get_user_ids_with_history(organization_id)
        guaranteed = {user_id for user_id in eligible_ids if user_id not in with_history}

        previous = await PairingPeriodRepository(db).get_previous(organization_id, period.id)
        if previous is not None:
            paired_previously = await pairings.get_user_ids_paired_in_period(previous.id)
            missed = [
                user_id for user_id in eligible_ids
                if user_id in with_history and user_id not in paired_previously
            ]
            cutoff = previous.end_date or previous.start_date
            guaranteed |= await UserRepository(db).filter_created_before(missed, cutoff)

        return guaranteed
