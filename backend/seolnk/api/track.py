from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config import settings
from ..database import get_db
from ..schemas.events import TrackEvent, TrackResponse
from ..services.lookup import find_bio_link, find_bio_page, find_destination, find_link
from ..services.tracking import record_bio_event, record_link_event
from ..utils.validators import get_client_ip

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)

BIO_EVENTS = ("page_view", "link_click")


@router.post("/track", response_model=TrackResponse)
@limiter.limit(f"{settings.RATE_LIMIT_TRACK_PER_MINUTE}/minute")
async def track_event(
    request: Request,
    payload: TrackEvent,
    db: Session = Depends(get_db)
):
    """
    Record a page view, link click, rotator click or unlock.

    Referrer and user agent default to the request headers.
    """
    referrer = payload.referrer if payload.referrer is not None else request.headers.get("referer")
    user_agent = payload.user_agent if payload.user_agent is not None else request.headers.get("user-agent")

    if payload.type in BIO_EVENTS:
        if payload.bio_page_id is None:
            raise HTTPException(status_code=400, detail="bio_page_id is required for bio events")

        page = find_bio_page(db, payload.bio_page_id)
        if not page:
            raise HTTPException(status_code=404, detail="Bio page not found")

        bio_link = None
        if payload.type == "link_click":
            if payload.bio_link_id is None:
                raise HTTPException(status_code=400, detail="bio_link_id is required for link clicks")
            bio_link = find_bio_link(db, page, payload.bio_link_id)
            if not bio_link:
                raise HTTPException(status_code=404, detail="Bio link not found")

        event = record_bio_event(
            db, page, payload.type,
            referrer=referrer,
            user_agent=user_agent,
            bio_link=bio_link
        )
        return {"success": True, "event_id": event.id}

    if not payload.slug:
        raise HTTPException(status_code=400, detail="slug is required for link events")

    link = find_link(db, payload.slug)
    if not link:
        raise HTTPException(status_code=404, detail="Link not found")

    if payload.type == "unlock" and link.kind != "protected":
        raise HTTPException(status_code=400, detail="Only protected links can be unlocked")

    destination = None
    if payload.destination_id is not None:
        if link.kind != "rotator" or payload.type != "click":
            raise HTTPException(status_code=400, detail="destination_id is only valid for rotator clicks")
        destination = find_destination(db, link, payload.destination_id)
        if not destination:
            raise HTTPException(status_code=404, detail="Destination not found")

    event = record_link_event(
        db, link, payload.type,
        client_ip=get_client_ip(request),
        referrer=referrer,
        user_agent=user_agent,
        destination=destination
    )
    return {"success": True, "event_id": event.id}
