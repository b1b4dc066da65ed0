from pydantic import BaseModel, Field
from typing import Literal, Optional


class TrackEvent(BaseModel):
    """Schema for recording a single analytics event"""
    type: Literal["view", "click", "unlock", "page_view", "link_click"]
    slug: Optional[str] = Field(None, description="Link slug for view/click/unlock events", max_length=64)
    destination_id: Optional[int] = Field(None, description="Rotator destination that received the click")
    bio_page_id: Optional[int] = Field(None, description="Bio page for page_view/link_click events")
    bio_link_id: Optional[int] = Field(None, description="Bio link for link_click events")
    referrer: Optional[str] = Field(None, description="Referrer, defaults to the Referer header")
    user_agent: Optional[str] = Field(None, description="User agent, defaults to the User-Agent header")


class TrackResponse(BaseModel):
    """Schema for tracking response"""
    success: bool
    event_id: int
