"""
Health Check Routes

Liveness, readiness and per-dependency status for the rating API.
"""

import logging
from importlib.metadata import PackageNotFoundError, version

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from photorate.database import get_db
from photorate.schemas import HealthResponse
from photorate.services.reset import PasswordResetService, get_reset_service
from photorate.services.storage import StorageService, get_storage_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


def get_version() -> str:
    """Installed package version."""
    try:
        return version("photorate")
    except PackageNotFoundError:
        return "unknown"


async def database_ok(db: AsyncSession) -> bool:
    try:
        await db.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error("Database check failed: %s", type(e).__name__)
        return False


def reset_store_ok(resets: PasswordResetService) -> bool:
    try:
        return resets.health_check()
    except Exception as e:
        logger.error("Reset token store check failed: %s", type(e).__name__)
        return False


def storage_ok(storage: StorageService) -> bool:
    try:
        storage.list_files(prefix=f"{storage.PHOTO_PREFIX}/")
        return True
    except Exception as e:
        logger.error("Photo storage check failed: %s", type(e).__name__)
        return False


@router.get("/health", response_model=HealthResponse)
async def health_check(
    db: AsyncSession = Depends(get_db),
    resets: PasswordResetService = Depends(get_reset_service),
    storage: StorageService = Depends(get_storage_service),
) -> HealthResponse:
    """Status of the database, the reset token store and photo storage."""
    checks = {
        "database": await database_ok(db),
        "redis": reset_store_ok(resets),
        "storage": storage_ok(storage),
    }
    services = {name: "healthy" if ok else "unhealthy" for name, ok in checks.items()}

    return HealthResponse(
        status="healthy" if all(checks.values()) else "degraded",
        version=get_version(),
        services=services,
    )


@router.get("/health/live")
async def liveness():
    """The process is up."""
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness(db: AsyncSession = Depends(get_db)):
    """Ready to serve once the database answers; 503 otherwise."""
    if not await database_ok(db):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not ready"},
        )
    return {"status": "ready"}
