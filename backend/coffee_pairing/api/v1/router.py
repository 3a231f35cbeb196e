"""
API v1 router aggregating all endpoints.
"""
from fastapi import APIRouter

from coffee_pairing.schemas.common import ERROR_RESPONSES
from coffee_pairing.api.v1.endpoints import (
    algorithm_settings,
    pairing,
)

api_router = APIRouter()

api_router.include_router(
    algorithm_settings.router,
    prefix="/organizations",
    tags=["Algorithm Settings"],
    responses=ERROR_RESPONSES,
)
api_router.include_router(
    pairing.router, prefix="/organizations", tags=["Pairing"], responses=ERROR_RESPONSES
)
