from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..schemas.analytics import BioAnalytics, LinkAnalytics, RotatorAnalytics
from ..services.analytics import get_bio_analytics, get_link_analytics, get_rotator_analytics
from ..services.lookup import find_bio_page, find_link

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/links/{slug}", response_model=LinkAnalytics)
async def link_analytics(
    slug: str,
    days: int = Query(settings.DEFAULT_WINDOW_DAYS, ge=1, le=settings.MAX_WINDOW_DAYS),
    chart_days: int = Query(settings.CHART_DAYS, ge=1, le=settings.MAX_WINDOW_DAYS),
    db: Session = Depends(get_db)
):
    """
    Get analytics for a preview, alias, protected or expiring link.

    Totals are all-time, in_window counts cover the last `days` days,
    the daily series covers the last `chart_days` days.
    """
    link = find_link(db, slug)

    if not link:
        raise HTTPException(status_code=404, detail="Link not found")

    if link.kind == "rotator":
        raise HTTPException(status_code=400, detail="Rotator analytics live under /analytics/rotators")

    return get_link_analytics(db, link, days, chart_days)


@router.get("/rotators/{slug}", response_model=RotatorAnalytics)
async def rotator_analytics(
    slug: str,
    days: int = Query(settings.CHART_DAYS, ge=1, le=settings.MAX_WINDOW_DAYS),
    db: Session = Depends(get_db)
):
    """Get clicks per destination, top countries and referrers for a rotator"""
    link = find_link(db, slug)

    if not link or link.kind != "rotator":
        raise HTTPException(status_code=404, detail="Rotator not found")

    return get_rotator_analytics(db, link, days)


@router.get("/bio/{bio_page_id}", response_model=BioAnalytics)
async def bio_analytics(
    bio_page_id: int,
    days: int = Query(settings.DEFAULT_WINDOW_DAYS, ge=1, le=settings.MAX_WINDOW_DAYS),
    db: Session = Depends(get_db)
):
    """Get page views, link clicks and click rate for a bio page"""
    page = find_bio_page(db, bio_page_id)

    if not page:
        raise HTTPException(status_code=404, detail="Bio page not found")

    return get_bio_analytics(db, page, days)
