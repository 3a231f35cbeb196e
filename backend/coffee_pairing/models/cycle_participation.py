"""
Consecutive-cycle participation counters used for gamification.
"""
from sqlalchemy import Integer, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from coffee_pairing.core.database import Base
from coffee_pairing.models.base import TimestampMixin


class CycleParticipation(Base, TimestampMixin):
    """
    How many periods in a row a user has been paired in an organization.
    """

    __tablename__ = "cycle_participations"

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    organization_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("organizations.id", ondelete="CASCADE"), primary_key=True
    )
    consecutive_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_participation_cycle: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<CycleParticipation(user={self.user_id}, org={self.organization_id}, "
            f"count={self.consecutive_count}, last={self.last_participation_cycle})>"
        )
