"""
Audit Log model for tracking administrative changes.
"""
from datetime import datetime
from typing import Optional
from sqlalchemy import String, Text, Integer, ForeignKey, DateTime, JSON, func
from sqlalchemy.orm import Mapped, mapped_column

from coffee_pairing.core.database import Base


class AuditLog(Base):
    """
    Audit trail for settings changes, manual pairing runs and period closures.
    """

    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # What entity was affected
    entity_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)  # e.g., "AlgorithmSetting", "PairingPeriod"
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    # What action was taken
    action: Mapped[str] = mapped_column(String(50), nullable=False, index=True)  # UPDATE, STATUS_CHANGE, EXECUTE

    # Who performed the action; None for the scheduler
    user_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    organization_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=True, index=True
    )

    # Change details
    field_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    old_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    new_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    changes: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<AuditLog(id={self.id}, entity={self.entity_type}:{self.entity_id}, action={self.action})>"
