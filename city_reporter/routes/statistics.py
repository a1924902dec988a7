"""
Statistics endpoints - read-only aggregations for dashboards.
"""

from fastapi import APIRouter, Depends

from city_reporter.services.statistics_service import StatisticsService, get_statistics_service

router = APIRouter(prefix="/statistics", tags=["Statistics"])


@router.get("/location")
async def location_statistics(stats: StatisticsService = Depends(get_statistics_service)):
    return {"success": True, **stats.location_statistics()}


@router.get("/status")
async def status_statistics(stats: StatisticsService = Depends(get_statistics_service)):
    return {"success": True, **stats.status_statistics()}


@router.get("/admin-activity")
async def admin_activity(stats: StatisticsService = Depends(get_statistics_service)):
    """Per-admin action counts, most active first."""
    return {"success": True, "admin_activity": stats.admin_activity()}
