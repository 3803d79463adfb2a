import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.exc import SQLAlchemyError

from lms_admin.api.responses import api_error, api_ok
from lms_admin.auth.dependencies import ADMIN_ROLES, require_auth, require_role
from lms_admin.core.cache import CacheClient
from lms_admin.core.context import get_cache, get_context
from lms_admin.core.forms import to_int
from lms_admin.templating import render

from .service import DashboardStats

logger = logging.getLogger(__name__)

router = APIRouter(tags=["dashboard"], dependencies=[Depends(require_auth)])


def get_dashboard(request: Request, cache: Optional[CacheClient] = Depends(get_cache)) -> DashboardStats:
    context = get_context(request)
    return DashboardStats(context.sessionmaker, cache, ttl=context.settings.cache_ttl_seconds)


@router.get("/dashboard")
async def dashboard(
    request: Request,
    year: Optional[str] = None,
    company: Optional[str] = None,
    stats: DashboardStats = Depends(get_dashboard),
):
    try:
        snapshot = await stats.get_all_stats(to_int(year), company)
    except SQLAlchemyError:
        logger.exception("Failed to load dashboard statistics")
        return render(
            request,
            "dashboard.html",
            {"page_title": "Academy Dashboard", "stats": None, "error": "Failed to load dashboard statistics"},
        )
    return render(request, "dashboard.html", {"page_title": "Academy Dashboard", "stats": snapshot})


@router.get("/analytics")
async def analytics(request: Request):
    return render(request, "analytics.html", {"page_title": "Analytics Dashboard"})


@router.get("/api/dashboard/stats")
async def api_stats(
    year: Optional[str] = None,
    company: Optional[str] = None,
    stats: DashboardStats = Depends(get_dashboard),
):
    try:
        snapshot = await stats.get_all_stats(to_int(year), company)
    except SQLAlchemyError as e:
        logger.exception("Failed to fetch dashboard statistics")
        return api_error(str(e))
    return api_ok(snapshot)


@router.post("/api/dashboard/cache/clear", dependencies=[Depends(require_role(*ADMIN_ROLES))])
async def api_clear_cache(stats: DashboardStats = Depends(get_dashboard)):
    cleared = await stats.clear_cache()
    if not cleared:
        return api_error("Cache is not available", 503)
    return api_ok(message="Dashboard cache cleared")
