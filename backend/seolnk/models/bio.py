from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from ..database import Base


class BioPage(Base):
    """Link-in-bio page"""
    __tablename__ = "bio_pages"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    title = Column(String(255), nullable=True)
    views_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    links = relationship(
        "BioLink",
        back_populates="page",
        cascade="all, delete-orphan",
        order_by="BioLink.position"
    )
    events = relationship("BioEvent", back_populates="page", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<BioPage {self.username}>"


class BioLink(Base):
    """Link shown on a bio page"""
    __tablename__ = "bio_links"

    id = Column(Integer, primary_key=True, index=True)
    bio_page_id = Column(Integer, ForeignKey("bio_pages.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    url = Column(String(2048), nullable=False)
    position = Column(Integer, default=0, nullable=False)
    clicks_count = Column(Integer, default=0, nullable=False)

    page = relationship("BioPage", back_populates="links")

    def __repr__(self):
        return f"<BioLink {self.title} -> {self.url}>"
