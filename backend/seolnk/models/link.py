from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, func, Index
from sqlalchemy.orm import relationship
from ..database import Base


class Link(Base):
    """Short link of any kind (preview card, alias, protected, expiring, rotator)"""
    __tablename__ = "links"

    id = Column(Integer, primary_key=True, index=True)
    slug = Column(String(64), unique=True, index=True, nullable=False)
    kind = Column(String(20), nullable=False, default="alias")
    title = Column(String(255), nullable=True)
    destination_url = Column(String(2048), nullable=True)  # NULL for rotators
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Denormalized counters, maintained by the tracking endpoint
    views_count = Column(Integer, default=0, nullable=False)
    clicks_count = Column(Integer, default=0, nullable=False)

    events = relationship("LinkEvent", back_populates="link", cascade="all, delete-orphan")
    destinations = relationship(
        "RotatorDestination",
        back_populates="link",
        cascade="all, delete-orphan",
        order_by="RotatorDestination.id"
    )

    # Index for case-insensitive lookup
    __table_args__ = (
        Index('idx_link_slug_lower', func.lower(slug)),
    )

    def __repr__(self):
        return f"<Link {self.kind}:{self.slug}>"


class RotatorDestination(Base):
    """One of the URLs a rotator link sends visitors to"""
    __tablename__ = "rotator_destinations"

    id = Column(Integer, primary_key=True, index=True)
    link_id = Column(Integer, ForeignKey("links.id", ondelete="CASCADE"), nullable=False)
    url = Column(String(2048), nullable=False)
    clicks_count = Column(Integer, default=0, nullable=False)

    link = relationship("Link", back_populates="destinations")

    def __repr__(self):
        return f"<RotatorDestination {self.id} -> {self.url}>"
