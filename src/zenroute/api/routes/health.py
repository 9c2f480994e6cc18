"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ...config import settings
from .routes import get_registry

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/directions", status_code=status.HTTP_200_OK)
async def health_directions(registry=Depends(get_registry)) -> dict:
    """Check that the directions provider is configured and answering."""
    gateway = registry.gateway
    if not gateway.configured:
        return {
            "service": "directions",
            "configured": False,
            "healthy": False,
            "message": "Directions API key missing. Set ZENROUTE_GOOGLE_MAPS_API_KEY; demo routes are served meanwhile.",
        }
    try:
        healthy = await gateway.check_health()
        return {"service": "directions", "configured": True, "healthy": healthy}
    except Exception as e:
        return {"service": "directions", "configured": True, "healthy": False, "error": str(e)}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database() -> dict:
    """Check Supabase configuration and route history table access."""
    from ...db.supabase import get_supabase_client

    supabase = get_supabase_client()
    if not supabase:
        return {
            "configured": False,
            "message": "Supabase not configured. Set ZENROUTE_SUPABASE_URL and ZENROUTE_SUPABASE_KEY environment variables.",
        }

    try:
        supabase.table(settings.route_history_table).select("id").limit(1).execute()
        return {
            "configured": True,
            "connected": True,
            "message": "Database connected.",
        }
    except Exception as exc:
        return {
            "configured": True,
            "connected": False,
            "error": str(exc),
            "message": f"Database connection error: {exc}",
        }
