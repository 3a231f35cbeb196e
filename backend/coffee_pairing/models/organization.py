"""
Organization model for multi-tenancy support.
"""
from typing import Optional, List, TYPE_CHECKING
from sqlalchemy import String, Boolean, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coffee_pairing.core.database import Base
from coffee_pairing.models.base import TimestampMixin

if TYPE_CHECKING:
    from coffee_pairing.models.user import User
    from coffee_pairing.models.algorithm_settings import AlgorithmSetting


class Organization(Base, TimestampMixin):
    """
    Organization is a tenant; its members are paired only with each other.
    """

    __tablename__ = "organizations"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    timezone: Mapped[str] = mapped_column(String(50), default="UTC", nullable=False)

    # Relationships
    users: Mapped[List["User"]] = relationship("User", back_populates="organization")
    algorithm_setting: Mapped[Optional["AlgorithmSetting"]] = relationship(
        "AlgorithmSetting", back_populates="organization", uselist=False
    )

    def __repr__(self) -> str:
        return f"<Organization(id={self.id}, code='{self.code}', name='{self.name}')>"
