"""
Pairing execution, period and participation schemas.
"""
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict

from coffee_pairing.models.pairing import PairingPeriodStatus, PairingStatus


class PairingExecutionResponse(BaseModel):
    """Outcome of one pairing run."""
    success: bool
    message: str
    pairings_created: int
    unpaired_users: int = 0
    period_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class PairingResponse(BaseModel):
    id: int
    period_id: int
    user_a_id: int
    user_b_id: int
    status: PairingStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PairingPeriodResponse(BaseModel):
    """Pairing period with its pairs."""
    id: int
    organization_id: int
    start_date: datetime
    end_date: Optional[datetime] = None
    status: PairingPeriodStatus
    created_at: datetime
    pairings: List[PairingResponse] = []

    model_config = ConfigDict(from_attributes=True)


class CycleParticipationResponse(BaseModel):
    user_id: int
    organization_id: int
    consecutive_count: int
