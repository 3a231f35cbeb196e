"""
Side effects dispatched after a pairing run commits: achievements and emails.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from coffee_pairing.core.config import Settings, get_settings
from coffee_pairing.models.user import User
from coffee_pairing.services.achievement_service import AchievementService
from coffee_pairing.services.background import TaskDispatcher, dispatcher as default_dispatcher
from coffee_pairing.services.mailer import Mailer, build_mailer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PairedUser:
    """Plain copy of the user fields the hooks need, safe to use after the session closes."""
    id: int
    email: str
    first_name: str
    full_name: str

    @classmethod
    def from_user(cls, user: User) -> "PairedUser":
        return cls(id=user.id, email=user.email, first_name=user.first_name, full_name=user.full_name)


class PairingHooks:
    """
    Submits best-effort follow-ups for a committed pairing run.

    Nothing here is awaited by the pairing run; failures are logged by the
    dispatcher or by the task itself.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        dispatcher: Optional[TaskDispatcher] = None,
        mailer: Optional[Mailer] = None,
        config: Optional[Settings] = None,
    ):
        self.config = config or get_settings()
        self.dispatcher = dispatcher or default_dispatcher
        self.mailer = mailer or build_mailer(self.config)
        self.achievements = AchievementService(session_maker)

    def after_pairings_committed(
        self,
        organization_id: int,
        pairs: Sequence[tuple[PairedUser, PairedUser]],
        consecutive_counts: dict[int, int],
        period_end: Optional[datetime] = None,
    ) -> list[asyncio.Task]:
        tasks = []

        threshold = self.config.REGULAR_PARTICIPANT_THRESHOLD
        # Only the run that brings a streak to the threshold unlocks it
        regulars = sorted(user_id for user_id, count in consecutive_counts.items() if count == threshold)
        if regulars:
            tasks.append(
                self.dispatcher.submit(
                    self.unlock_regular_participants(organization_id, regulars),
                    f"unlock-regular-participants:org-{organization_id}",
                )
            )

        if self.config.PAIRING_NOTIFICATIONS_ENABLED:
            for user, partner in pairs:
                for recipient, other in ((user, partner), (partner, user)):
                    tasks.append(
                        self.dispatcher.submit(
                            self.notify_new_pairing(recipient, other, period_end),
                            f"pairing-email:user-{recipient.id}",
                        )
                    )

        return tasks

    async def unlock_regular_participants(self, organization_id: int, user_ids: Sequence[int]) -> int:
        """Unlock the regular-participant achievement for each user. Returns how many were new."""
        achievement_type = self.config.REGULAR_PARTICIPANT_ACHIEVEMENT_TYPE
        achievement = await self.achievements.find_by_type(achievement_type)
        if achievement is None:
            logger.warning(
                f"No '{achievement_type}' achievement defined; skipping unlock for "
                f"{len(user_ids)} users in organization {organization_id}"
            )
            return 0

        unlocked = 0
        for user_id in user_ids:
            try:
                if await self.achievements.unlock_achievement_if_not_already(user_id, achievement.id):
                    unlocked += 1
            except Exception as e:
                logger.error(f"Failed to unlock achievement {achievement.id} for user {user_id}: {e}")
        return unlocked

    async def notify_new_pairing(
        self,
        recipient: PairedUser,
        partner: PairedUser,
        period_end: Optional[datetime] = None,
    ) -> None:
        subject = "You have a new coffee partner"
        lines = [
            f"Hi {recipient.first_name},",
            "",
            f"You have been paired with {partner.full_name} ({partner.email}) for a coffee chat.",
        ]
        if period_end is not None:
            lines.append(f"Try to meet before {period_end:%Y-%m-%d}.")
        await self.mailer.send_email(recipient.email, subject, "\n".join(lines))
