from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index, func
from sqlalchemy.orm import relationship
from ..database import Base


class LinkEvent(Base):
    """Raw view, click or unlock of a link. Append-only."""
    __tablename__ = "link_events"

    id = Column(Integer, primary_key=True, index=True)
    link_id = Column(Integer, ForeignKey("links.id", ondelete="CASCADE"), nullable=False)
    destination_id = Column(
        Integer, ForeignKey("rotator_destinations.id", ondelete="SET NULL"), nullable=True
    )
    event_type = Column(String(10), nullable=False)
    occurred_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    referrer = Column(String(512), nullable=True)
    user_agent = Column(String(512), nullable=True)
    country_code = Column(String(2), nullable=True)  # Only filled for rotator clicks

    link = relationship("Link", back_populates="events")

    __table_args__ = (
        Index('idx_link_events_link_time', 'link_id', 'occurred_at'),
    )

    def __repr__(self):
        return f"<LinkEvent {self.event_type} for link {self.link_id}>"


class BioEvent(Base):
    """Raw page view or link click on a bio page. Append-only."""
    __tablename__ = "bio_events"

    id = Column(Integer, primary_key=True, index=True)
    bio_page_id = Column(Integer, ForeignKey("bio_pages.id", ondelete="CASCADE"), nullable=False)
    bio_link_id = Column(Integer, ForeignKey("bio_links.id", ondelete="SET NULL"), nullable=True)
    event_type = Column(String(12), nullable=False)
    occurred_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    referrer = Column(String(512), nullable=True)
    user_agent = Column(String(512), nullable=True)

    page = relationship("BioPage", back_populates="events")

    __table_args__ = (
        Index('idx_bio_events_page_time', 'bio_page_id', 'occurred_at'),
    )

    def __repr__(self):
        return f"<BioEvent {self.event_type} for page {self.bio_page_id}>"
