from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime, timezone
import datetime as dt
import uuid

class ApodEntry(SQLModel, table=True):
    __tablename__ = "apod_data"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    date: dt.date = Field(index=True, unique=True)

    title: str = Field(max_length=500)
    explanation: str
    url: Optional[str] = Field(default=None, max_length=2000)
    hdurl: Optional[str] = Field(default=None, max_length=2000)
    media_type: str = Field(default="", max_length=50)
    copyright: Optional[str] = Field(default=None, max_length=200)

    view_count: int = 0
    rating: Optional[float] = None
    is_favorited: bool = False

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None
