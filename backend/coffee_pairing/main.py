"""
Coffee Pairing API - Main Application Entry Point
"""
import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from coffee_pairing.core.config import get_settings
from coffee_pairing.core.database import init_db, async_session_maker
from coffee_pairing.core.exceptions import Forbidden, InvalidArgument, OrganizationNotFound
from coffee_pairing.api.deps import get_pairing_service
from coffee_pairing.api.v1.router import api_router
from coffee_pairing.schemas.common import ErrorResponse
from coffee_pairing.services.background import dispatcher
from coffee_pairing.services.pairing_scheduler import run_pairing_scheduler

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.INFO if not settings.DEBUG else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler for startup and shutdown events.
    """
    # Startup
    logger.info("Starting Coffee Pairing API...")

    await init_db()
    logger.info("Database initialized")

    scheduler_task = None
    if settings.PAIRING_SCHEDULER_ENABLED:
        scheduler_task = asyncio.create_task(
            run_pairing_scheduler(async_session_maker, get_pairing_service())
        )
        logger.info("Pairing scheduler started")

    yield

    # Shutdown
    logger.info("Shutting down Coffee Pairing API...")
    if scheduler_task is not None:
        scheduler_task.cancel()
        try:
            await scheduler_task
        except asyncio.CancelledError:
            pass
    await dispatcher.drain()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="""
    ## Coffee Pairing

    Periodically pairs members of an organization for informal coffee meetings.

    * **Algorithm Settings** - Period length and shuffle seed per organization
    * **Pairing** - Manual runs, the active period and its pairs
    * **Participation** - Consecutive-cycle streaks

    ### Authentication

    Include an `Authorization: Bearer <token>` header issued by the identity provider.
    """,
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": settings.APP_VERSION}


@app.exception_handler(InvalidArgument)
async def invalid_argument_handler(request: Request, exc: InvalidArgument):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(detail=exc.message).model_dump(),
    )


@app.exception_handler(Forbidden)
async def forbidden_handler(request: Request, exc: Forbidden):
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content=ErrorResponse(detail=exc.message).model_dump(),
    )


@app.exception_handler(OrganizationNotFound)
async def organization_not_found_handler(request: Request, exc: OrganizationNotFound):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=ErrorResponse(detail=exc.message).model_dump(),
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(detail="Internal server error").model_dump(),
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "coffee_pairing.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
