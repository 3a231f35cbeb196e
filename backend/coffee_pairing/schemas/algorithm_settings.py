"""
Algorithm settings schemas.
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict


class AlgorithmSettingsUpdate(BaseModel):
    """
    Settings update. Omitted fields keep their stored value.
    Range checks happen in the service so they produce the domain error messages.
    """
    period_length_days: Optional[int] = None
    random_seed: Optional[int] = None


class AlgorithmSettingsResponse(BaseModel):
    """Algorithm settings response schema."""
    id: int
    organization_id: int
    period_length_days: int
    random_seed: int
    created_at: datetime
    updated_at: datetime
    warning: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
