"""APOD lookup, synchronisation and calendar scraping.

Lookups go memory cache -> relational store -> NASA API; whatever comes back
from NASA is upserted into the store and cached.
"""

from datetime import date, datetime, timedelta, timezone
import random
from typing import List
import uuid

import structlog
from sqlalchemy.exc import IntegrityError

from astrotracker.core.cache import MemoryCache
from astrotracker.core.config import Settings
from astrotracker.core.errors import BadRequestError, NotFoundError, UpstreamUnavailableError
from astrotracker.models import ApodEntry
from astrotracker.repositories import ApodRepository
from astrotracker.schemas.apod import ApodCalendarItemOut, ApodOut, ApodTrendOut, RemoteApod
from astrotracker.services import apod_calendar
from astrotracker.services.nasa_client import NasaClient

log = structlog.get_logger(__name__)

APOD_FIRST_DATE = date(1995, 6, 16)
RANDOM_RANGE_END = date(2024, 8, 29)
MIN_RATING = 1
MAX_RATING = 5


def apod_cache_key(day: date) -> str:
    return f"apod_{day.isoformat()}"


def calendar_cache_key(year: int, month: int) -> str:
    return f"apod_calendar_{year:04d}_{month:02d}"


def _clean(value):
    return value.strip() if isinstance(value, str) else value


class NasaService:
    def __init__(self, apods: ApodRepository, client: NasaClient, cache: MemoryCache, settings: Settings):
        self.apods = apods
        self.client = client
        self.cache = cache
        self.settings = settings

    def _cache_apod(self, dto: ApodOut, *days: date) -> ApodOut:
        for day in {dto.date, *days}:
            self.cache.set(apod_cache_key(day), dto, self.settings.apod_cache_ttl_seconds)
        return dto

    def get_apod_by_date(self, day: date) -> ApodOut:
        cached = self.cache.get(apod_cache_key(day))
        if cached is not None:
            log.info("apod_cache_hit", date=day.isoformat())
            return cached

        stored = self.apods.get_by_date(day)
        if stored is not None:
            log.info("apod_store_hit", date=day.isoformat(), title=stored.title)
            return self._cache_apod(ApodOut.model_validate(stored))

        log.info("apod_store_miss", date=day.isoformat())
        return self.sync_apod_from_nasa(day)

    def get_random_apod(self) -> ApodOut:
        span = (RANDOM_RANGE_END - APOD_FIRST_DATE).days
        day = APOD_FIRST_DATE + timedelta(days=random.randrange(span))
        return self.get_apod_by_date(day)

    def sync_apod_from_nasa(self, day: date) -> ApodOut:
        remote = self.client.fetch_apod(day)

        existing = self.apods.get_by_date(remote.date)
        if existing is not None:
            if existing.title != remote.title:
                log.info(
                    "apod_resync_overwrite",
                    date=remote.date.isoformat(),
                    old_title=existing.title,
                    new_title=remote.title,
                )
                self._apply_remote(existing, remote)
                existing = self.apods.update(existing)
            return self._cache_apod(ApodOut.model_validate(existing), day)

        entry = ApodEntry(date=remote.date)
        self._apply_remote(entry, remote)
        try:
            entry = self.apods.create(entry)
        except IntegrityError:
            # another request stored this date between our read and our insert
            self.apods.rollback()
            entry = self.apods.get_by_date(remote.date)
            if entry is None:
                raise
            log.info("apod_concurrent_insert", date=remote.date.isoformat())
        else:
            log.info("apod_synced", date=remote.date.isoformat(), apod_id=str(entry.id))
        return self._cache_apod(ApodOut.model_validate(entry), day)

    @staticmethod
    def _apply_remote(entry: ApodEntry, remote: RemoteApod) -> None:
        entry.title = _clean(remote.title)
        entry.explanation = _clean(remote.explanation)
        entry.url = _clean(remote.url)
        entry.hdurl = _clean(remote.hdurl)
        entry.media_type = _clean(remote.media_type)
        entry.copyright = _clean(remote.copyright)

    def get_apod_range(self, start: date, end: date) -> List[ApodOut]:
        return [ApodOut.model_validate(e) for e in self.apods.list_range(start, end)]

    def get_stored_apods(self, page: int = 1, page_size: int = 10) -> List[ApodOut]:
        return [ApodOut.model_validate(e) for e in self.apods.list_page(page, page_size)]

    def count_stored(self) -> int:
        return self.apods.count()

    def get_trends(self, start: date, end: date) -> List[ApodTrendOut]:
        return self.apods.trends(start, end)

    def increment_view_count(self, apod_id: uuid.UUID) -> ApodOut:
        entry = self.apods.increment_view_count(apod_id)
        if entry is None:
            raise NotFoundError("APOD not found")
        return self._cache_apod(ApodOut.model_validate(entry))

    def update_rating(self, apod_id: uuid.UUID, rating: float) -> ApodOut:
        if rating < MIN_RATING or rating > MAX_RATING:
            raise BadRequestError("Rating must be between 1 and 5")
        entry = self.apods.update_rating(apod_id, rating)
        if entry is None:
            raise NotFoundError("APOD not found")
        return self._cache_apod(ApodOut.model_validate(entry))

    def toggle_favorite(self, apod_id: uuid.UUID) -> ApodOut:
        entry = self.apods.toggle_favorite(apod_id)
        if entry is None:
            raise NotFoundError("APOD not found")
        return self._cache_apod(ApodOut.model_validate(entry))

    def get_apod_calendar_month(self, year: int, month: int) -> List[ApodCalendarItemOut]:
        if month < 1 or month > 12:
            raise BadRequestError("Month must be between 1 and 12")
        if year < APOD_FIRST_DATE.year or year > datetime.now(timezone.utc).year + 1:
            raise BadRequestError("Year is outside the supported APOD range")

        key = calendar_cache_key(year, month)
        cached = self.cache.get(key)
        if cached is not None:
            log.info("apod_calendar_cache_hit", year=year, month=month)
            return cached

        base_url = self.settings.apod_site_url
        url = apod_calendar.calendar_url(base_url, year, month)
        log.info("apod_calendar_fetch", year=year, month=month, url=url)
        page_html = self.client.fetch_page(url)

        items = []
        for entry in apod_calendar.parse_calendar(page_html, year, month, base_url):
            if not entry.image_url:
                self._resolve_from_day_page(entry, base_url)
            items.append(
                ApodCalendarItemOut(
                    date=entry.date,
                    title=entry.title or apod_calendar.text_title(entry.inner_html, entry.date),
                    image_url=entry.image_url,
                    page_url=entry.page_url,
                )
            )

        items.sort(key=lambda item: item.date)
        self.cache.set(key, items, self.settings.apod_calendar_cache_ttl_seconds)
        return items

    def _resolve_from_day_page(self, entry: apod_calendar.CalendarEntry, base_url: str) -> None:
        try:
            page_html = self.client.fetch_page(entry.page_url)
        except UpstreamUnavailableError:
            log.warning("apod_day_page_unresolved", page_url=entry.page_url)
            return
        entry.image_url = apod_calendar.extract_page_image(page_html, base_url)
        if not entry.title:
            entry.title = apod_calendar.extract_page_title(page_html)
