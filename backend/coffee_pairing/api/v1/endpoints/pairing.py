"""
Pairing execution, active period and participation endpoints.
"""
from typing import Any

from fastapi import APIRouter, HTTPException, status

from coffee_pairing.api.deps import DBSession, CurrentIdentity, PairingServiceDep
from coffee_pairing.core.security import ensure_can_administer, ensure_member
from coffee_pairing.repositories.period_repository import PairingPeriodRepository
from coffee_pairing.schemas.pairing import (
    PairingExecutionResponse,
    PairingPeriodResponse,
    CycleParticipationResponse,
)
from coffee_pairing.services.cycle_participation import CycleParticipationTracker

router = APIRouter()


@router.post("/{organization_id}/pairing/execute", response_model=PairingExecutionResponse)
async def execute_pairing(
    current_identity: CurrentIdentity,
    pairing_service: PairingServiceDep,
    organization_id: int,
) -> Any:
    """
    Run the pairing algorithm now for the organization.

    Returns success=false (HTTP 200) when the run could not be persisted; nothing
    is saved in that case and the run can simply be retried.
    """
    ensure_can_administer(current_identity, organization_id)
    result = await pairing_service.execute_pairing(organization_id, actor=current_identity)
    return PairingExecutionResponse.model_validate(result)


@router.get("/{organization_id}/pairing-periods/active", response_model=PairingPeriodResponse)
async def get_active_period(
    db: DBSession,
    current_identity: CurrentIdentity,
    organization_id: int,
) -> Any:
    """
    Get the running pairing period and its pairs.
    """
    ensure_member(current_identity, organization_id)

    period = await PairingPeriodRepository(db).get_active(organization_id, with_pairings=True)
    if period is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No active pairing period",
        )

    return period


@router.get(
    "/{organization_id}/cycle-participation/{user_id}",
    response_model=CycleParticipationResponse,
)
async def get_cycle_participation(
    db: DBSession,
    current_identity: CurrentIdentity,
    organization_id: int,
    user_id: int,
) -> Any:
    """
    Get how many consecutive periods a user has been paired in.
    """
    ensure_member(current_identity, organization_id)

    count = await CycleParticipationTracker(db).get_consecutive_count(user_id, organization_id)
    return CycleParticipationResponse(
        user_id=user_id,
        organization_id=organization_id,
        consecutive_count=count,
    )
