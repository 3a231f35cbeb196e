"""
Achievement unlocking.
"""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from coffee_pairing.core.timeutils import utcnow
from coffee_pairing.models.achievement import Achievement, UserAchievement

logger = logging.getLogger(__name__)


class AchievementService:
    """
    Unlocks achievements in its own session, independent of the caller's transaction.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def find_by_type(self, achievement_type: str) -> Optional[Achievement]:
        async with self.session_maker() as db:
            result = await db.execute(
                select(Achievement)
                .where(Achievement.type == achievement_type)
                .order_by(Achievement.id)
                .limit(1)
            )
            return result.scalar_one_or_none()

    async def unlock_achievement_if_not_already(self, user_id: int, achievement_id: int) -> bool:
        """
        Unlock the achievement for the user. Returns False if it was already unlocked.
        """
        async with self.session_maker() as db:
            result = await db.execute(
                select(UserAchievement)
                .where(UserAchievement.user_id == user_id)
                .where(UserAchievement.achievement_id == achievement_id)
            )
            user_achievement = result.scalar_one_or_none()

            if user_achievement is not None and user_achievement.unlocked_at is not None:
                return False

            if user_achievement is None:
                user_achievement = UserAchievement(user_id=user_id, achievement_id=achievement_id)
                db.add(user_achievement)
            user_achievement.unlocked_at = utcnow()

            await db.commit()

        logger.info(f"Unlocked achievement {achievement_id} for user {user_id}")
        return True
