"""Root API router for REST endpoints."""
from fastapi import APIRouter

from app.api.endpoints import companies, grni

router = APIRouter()


@router.get("/health", tags=["health"], summary="Health check")
def health_check() -> dict[str, str]:
    """Return basic service health information."""

    return {"status": "ok"}


router.include_router(companies.router)
router.include_router(grni.router)
