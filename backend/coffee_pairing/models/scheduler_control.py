"""
Per-organization pause switch for scheduled pairing.
"""
from typing import Optional
from sqlalchemy import Boolean, Integer, String, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from coffee_pairing.core.database import Base
from coffee_pairing.models.base import TimestampMixin


class SchedulerControl(Base, TimestampMixin):
    """
    While `pause_pairing` is set the scheduler leaves the organization alone.
    Manual runs by an administrator still go through.
    """

    __tablename__ = "scheduler_controls"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    organization_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("organizations.id", ondelete="CASCADE"), unique=True, nullable=False
    )

    pause_pairing: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    paused_reason: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    paused_by_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    def __repr__(self) -> str:
        return f"<SchedulerControl(org={self.organization_id}, paused={self.pause_pairing})>"
