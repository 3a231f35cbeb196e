"""
Algorithm settings endpoints.
"""
from typing import Any

from fastapi import APIRouter

from coffee_pairing.api.deps import DBSession, CurrentIdentity
from coffee_pairing.schemas.algorithm_settings import (
    AlgorithmSettingsUpdate,
    AlgorithmSettingsResponse,
)
from coffee_pairing.services.algorithm_settings_service import AlgorithmSettingsService

router = APIRouter()


@router.get("/{organization_id}/algorithm-settings", response_model=AlgorithmSettingsResponse)
async def get_algorithm_settings(
    db: DBSession,
    current_identity: CurrentIdentity,
    organization_id: int,
) -> Any:
    """
    Get the organization's pairing settings, creating defaults on first access.
    Requires organization admin privileges.
    """
    setting = await AlgorithmSettingsService(db).get_for_admin(organization_id, current_identity)
    await db.commit()
    return AlgorithmSettingsResponse.model_validate(setting)


@router.put("/{organization_id}/algorithm-settings", response_model=AlgorithmSettingsResponse)
async def update_algorithm_settings(
    db: DBSession,
    current_identity: CurrentIdentity,
    organization_id: int,
    settings_in: AlgorithmSettingsUpdate,
) -> Any:
    """
    Update period length and/or random seed.
    A period length outside the recommended range is saved and reported in `warning`.
    """
    result = await AlgorithmSettingsService(db).update(
        organization_id,
        current_identity,
        period_length_days=settings_in.period_length_days,
        random_seed=settings_in.random_seed,
    )
    await db.commit()

    response = AlgorithmSettingsResponse.model_validate(result.setting)
    response.warning = result.warning
    return response
