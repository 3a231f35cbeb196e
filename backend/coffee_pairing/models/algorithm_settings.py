"""
Per-organization pairing algorithm settings.
"""
from typing import TYPE_CHECKING
from sqlalchemy import Integer, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coffee_pairing.core.database import Base
from coffee_pairing.models.base import TimestampMixin

if TYPE_CHECKING:
    from coffee_pairing.models.organization import Organization


class AlgorithmSetting(Base, TimestampMixin):
    """
    One row per organization holding the period length and the shuffle seed.
    """

    __tablename__ = "algorithm_settings"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    organization_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("organizations.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    period_length_days: Mapped[int] = mapped_column(Integer, nullable=False)
    random_seed: Mapped[int] = mapped_column(Integer, nullable=False)

    organization: Mapped["Organization"] = relationship("Organization", back_populates="algorithm_setting")

    def __repr__(self) -> str:
        return (
            f"<AlgorithmSetting(org={self.organization_id}, "
            f"days={self.period_length_days}, seed={self.random_seed})>"
        )
