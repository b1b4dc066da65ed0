from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models import BioLink, BioPage, Link, RotatorDestination


def find_link(db: Session, slug: str) -> Optional[Link]:
    """Find link by slug (case-insensitive)"""
    return db.query(Link).filter(
        func.lower(Link.slug) == slug.lower()
    ).first()


def find_destination(db: Session, link: Link, destination_id: int) -> Optional[RotatorDestination]:
    """Find a destination that belongs to the given rotator"""
    return db.query(RotatorDestination).filter(
        RotatorDestination.id == destination_id,
        RotatorDestination.link_id == link.id
    ).first()


def find_bio_page(db: Session, bio_page_id: int) -> Optional[BioPage]:
    return db.query(BioPage).filter(BioPage.id == bio_page_id).first()


def find_bio_link(db: Session, page: BioPage, bio_link_id: int) -> Optional[BioLink]:
    """Find a bio link that belongs to the given page"""
    return db.query(BioLink).filter(
        BioLink.id == bio_link_id,
        BioLink.bio_page_id == page.id
    ).first()
