from collections import defaultdict
from datetime import date, datetime, timezone
from typing import List, Optional
import uuid

from sqlalchemy import func
from sqlmodel import Session, select

from astrotracker.models import ApodEntry
from astrotracker.schemas.apod import ApodTrendOut


class ApodRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_date(self, day: date) -> Optional[ApodEntry]:
        return self.session.exec(select(ApodEntry).where(ApodEntry.date == day)).first()

    def get_by_id(self, apod_id: uuid.UUID) -> Optional[ApodEntry]:
        return self.session.get(ApodEntry, apod_id)

    def create(self, entry: ApodEntry) -> ApodEntry:
        self.session.add(entry)
        self.session.commit()
        self.session.refresh(entry)
        return entry

    def update(self, entry: ApodEntry) -> ApodEntry:
        entry.updated_at = datetime.now(timezone.utc)
        self.session.add(entry)
        self.session.commit()
        self.session.refresh(entry)
        return entry

    def rollback(self) -> None:
        self.session.rollback()

    def list_page(self, page: int = 1, page_size: int = 10) -> List[ApodEntry]:
        return self.session.exec(
            select(ApodEntry)
            .order_by(ApodEntry.date.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        ).all()

    def list_range(self, start: date, end: date) -> List[ApodEntry]:
        return self.session.exec(
            select(ApodEntry)
            .where(ApodEntry.date >= start, ApodEntry.date <= end)
            .order_by(ApodEntry.date.desc())
        ).all()

    def increment_view_count(self, apod_id: uuid.UUID) -> Optional[ApodEntry]:
        entry = self.get_by_id(apod_id)
        if entry is None:
            return None
        entry.view_count += 1
        return self.update(entry)

    def update_rating(self, apod_id: uuid.UUID, rating: float) -> Optional[ApodEntry]:
        entry = self.get_by_id(apod_id)
        if entry is None:
            return None
        entry.rating = rating
        return self.update(entry)

    def toggle_favorite(self, apod_id: uuid.UUID) -> Optional[ApodEntry]:
        entry = self.get_by_id(apod_id)
        if entry is None:
            return None
        entry.is_favorited = not entry.is_favorited
        return self.update(entry)

    def trends(self, start: date, end: date) -> List[ApodTrendOut]:
        """Per-month aggregates of the stored entries between ``start`` and ``end``."""
        groups: dict[date, list[ApodEntry]] = defaultdict(list)
        for entry in self.list_range(start, end):
            groups[entry.date.replace(day=1)].append(entry)

        trends = []
        for period, entries in groups.items():
            ratings = [e.rating for e in entries if e.rating is not None]
            most_popular = max(entries, key=lambda e: e.view_count, default=None)
            trends.append(
                ApodTrendOut(
                    period=period,
                    total_images=sum(1 for e in entries if e.media_type == "image"),
                    total_videos=sum(1 for e in entries if e.media_type == "video"),
                    average_rating=sum(ratings) / len(ratings) if ratings else 0.0,
                    total_views=sum(e.view_count for e in entries),
                    most_popular_title=most_popular.title if most_popular else "N/A",
                )
            )
        return sorted(trends, key=lambda t: t.period, reverse=True)

    def count(self) -> int:
        return self.session.exec(select(func.count()).select_from(ApodEntry)).one()
