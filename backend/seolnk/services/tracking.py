import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from ..models import BioEvent, BioLink, BioPage, Link, LinkEvent, RotatorDestination
from ..utils.geo import get_country_code
from ..utils.validators import clip

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def record_link_event(
    db: Session,
    link: Link,
    event_type: str,
    client_ip: str,
    referrer: Optional[str] = None,
    user_agent: Optional[str] = None,
    destination: Optional[RotatorDestination] = None,
    occurred_at: Optional[datetime] = None
) -> LinkEvent:
    """
    Store a view, click or unlock of a link and bump its counters.

    Rotator clicks also record the visitor's country.
    """
    country_code = None
    if link.kind == "rotator" and event_type == "click":
        country_code = get_country_code(client_ip)

    event = LinkEvent(
        link_id=link.id,
        destination_id=destination.id if destination else None,
        event_type=event_type,
        occurred_at=occurred_at or _utcnow(),
        referrer=clip(referrer) or None,
        user_agent=clip(user_agent) or None,
        country_code=country_code
    )
    db.add(event)

    # Increment denormalized counters
    if event_type == "view":
        link.views_count = (link.views_count or 0) + 1
    elif event_type == "click":
        link.clicks_count = (link.clicks_count or 0) + 1
        if destination is not None:
            destination.clicks_count = (destination.clicks_count or 0) + 1

    db.commit()
    db.refresh(event)

    logger.debug("Recorded %s for link %s (event %s)", event_type, link.slug, event.id)
    return event


def record_bio_event(
    db: Session,
    page: BioPage,
    event_type: str,
    referrer: Optional[str] = None,
    user_agent: Optional[str] = None,
    bio_link: Optional[BioLink] = None,
    occurred_at: Optional[datetime] = None
) -> BioEvent:
    """Store a bio page view or bio link click and bump its counter"""
    event = BioEvent(
        bio_page_id=page.id,
        bio_link_id=bio_link.id if bio_link else None,
        event_type=event_type,
        occurred_at=occurred_at or _utcnow(),
        referrer=clip(referrer) or None,
        user_agent=clip(user_agent) or None
    )
    db.add(event)

    if event_type == "page_view":
        page.views_count = (page.views_count or 0) + 1
    elif bio_link is not None:
        bio_link.clicks_count = (bio_link.clicks_count or 0) + 1

    db.commit()
    db.refresh(event)

    logger.debug("Recorded %s for bio page %s (event %s)", event_type, page.username, event.id)
    return event
