"""
Pairing periods and the user pairs created within them.
"""
import enum
from datetime import datetime
from typing import Optional, List, TYPE_CHECKING
from sqlalchemy import Integer, ForeignKey, DateTime, Index, text, func, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coffee_pairing.core.database import Base
from coffee_pairing.models.base import TenantMixin

if TYPE_CHECKING:
    from coffee_pairing.models.user import User


class PairingPeriodStatus(str, enum.Enum):
    UPCOMING = "upcoming"
    ACTIVE = "active"
    CLOSED = "closed"


class PairingStatus(str, enum.Enum):
    PLANNED = "planned"
    MATCHED = "matched"
    MET = "met"
    NOT_MET = "not_met"
    CANCELLED = "cancelled"


class PairingPeriod(Base, TenantMixin):
    """
    A time-bounded pairing cycle. At most one period per organization is active.
    """

    __tablename__ = "pairing_periods"
    __table_args__ = (
        Index(
            "uq_pairing_periods_one_active",
            "organization_id",
            unique=True,
            sqlite_where=text("status = 'ACTIVE'"),
            postgresql_where=text("status = 'ACTIVE'"),
        ),
        Index("ix_pairing_periods_org_start", "organization_id", "start_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[PairingPeriodStatus] = mapped_column(
        SQLEnum(PairingPeriodStatus), default=PairingPeriodStatus.ACTIVE, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    pairings: Mapped[List["Pairing"]] = relationship(
        "Pairing", back_populates="period", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<PairingPeriod(id={self.id}, org={self.organization_id}, status={self.status})>"


class Pairing(Base, TenantMixin):
    """
    An unordered pair of users matched within a period.
    """

    __tablename__ = "pairings"
    __table_args__ = (
        Index("ix_pairings_period_user_a", "period_id", "user_a_id"),
        Index("ix_pairings_period_user_b", "period_id", "user_b_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    period_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("pairing_periods.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_a_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user_b_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    status: Mapped[PairingStatus] = mapped_column(
        SQLEnum(PairingStatus), default=PairingStatus.PLANNED, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    period: Mapped["PairingPeriod"] = relationship("PairingPeriod", back_populates="pairings")
    user_a: Mapped["User"] = relationship("User", foreign_keys=[user_a_id])
    user_b: Mapped["User"] = relationship("User", foreign_keys=[user_b_id])

    def __repr__(self) -> str:
        return f"<Pairing(id={self.id}, period={self.period_id}, users=({self.user_a_id}, {self.user_b_id}))>"
