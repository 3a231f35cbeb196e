"""
Pydantic schemas for API request/response validation.
"""
from coffee_pairing.schemas.common import ErrorResponse, ERROR_RESPONSES
from coffee_pairing.schemas.algorithm_settings import (
    AlgorithmSettingsUpdate,
    AlgorithmSettingsResponse,
)
from coffee_pairing.schemas.pairing import (
    PairingExecutionResponse,
    PairingResponse,
    PairingPeriodResponse,
    CycleParticipationResponse,
)

__all__ = [
    "ErrorResponse",
    "ERROR_RESPONSES",
    "AlgorithmSettingsUpdate",
    "AlgorithmSettingsResponse",
    "PairingExecutionResponse",
    "PairingResponse",
    "PairingPeriodResponse",
    "CycleParticipationResponse",
]
