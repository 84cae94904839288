import datetime as dt
import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ApodOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    date: dt.date
    title: str
    explanation: str
    url: Optional[str] = None
    hdurl: Optional[str] = None
    media_type: str
    copyright: Optional[str] = None
    created_at: dt.datetime
    view_count: int = 0
    rating: Optional[float] = None
    is_favorited: bool = False


class RemoteApod(BaseModel):
    """Payload returned by the NASA ``planetary/apod`` endpoint."""

    date: dt.date
    title: str
    explanation: str = ""
    url: Optional[str] = None
    hdurl: Optional[str] = None
    media_type: str = ""
    copyright: Optional[str] = None
    service_version: Optional[str] = None


class RatingIn(BaseModel):
    rating: float = Field(ge=1, le=5)


class ApodTrendOut(BaseModel):
    period: dt.date
    total_images: int
    total_videos: int
    average_rating: float
    total_views: int
    most_popular_title: str


class ApodCalendarItemOut(BaseModel):
    date: dt.date
    title: str
    image_url: str = ""
    page_url: str
