from datetime import date, timedelta
from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends, Query, Response

from astrotracker.api.deps import get_current_user, get_nasa_service
from astrotracker.core.errors import BadRequestError
from astrotracker.schemas.apod import ApodCalendarItemOut, ApodOut, ApodTrendOut, RatingIn
from astrotracker.services.nasa_service import APOD_FIRST_DATE, NasaService

MAX_RANGE_DAYS = 30
MAX_PAGE_SIZE = 50

router = APIRouter(prefix="/nasa", tags=["nasa"], dependencies=[Depends(get_current_user)])


def _check_apod_date(day: date) -> None:
    if day > date.today():
        raise BadRequestError("Date cannot be in the future")
    if day < APOD_FIRST_DATE:
        raise BadRequestError("APOD started on June 16, 1995")


@router.get("/apod", response_model=ApodOut)
def get_apod(
    day: Optional[date] = Query(default=None, alias="date"),
    nasa: NasaService = Depends(get_nasa_service),
):
    target = day or date.today()
    _check_apod_date(target)
    apod = nasa.get_apod_by_date(target)
    return nasa.increment_view_count(apod.id)


@router.get("/apod/random", response_model=ApodOut)
def get_random_apod(nasa: NasaService = Depends(get_nasa_service)):
    apod = nasa.get_random_apod()
    return nasa.increment_view_count(apod.id)


@router.get("/apod/range", response_model=List[ApodOut])
def get_apod_range(
    start_date: date,
    end_date: date,
    nasa: NasaService = Depends(get_nasa_service),
):
    if start_date > end_date:
        raise BadRequestError("Start date must be before end date")
    if end_date > date.today():
        raise BadRequestError("End date cannot be in the future")
    if end_date - start_date > timedelta(days=MAX_RANGE_DAYS):
        raise BadRequestError(f"Range cannot exceed {MAX_RANGE_DAYS} days")
    return nasa.get_apod_range(start_date, end_date)


@router.get("/apod/stored", response_model=List[ApodOut])
def get_stored_apods(
    response: Response,
    page: int = 1,
    page_size: int = 10,
    nasa: NasaService = Depends(get_nasa_service),
):
    if page < 1:
        raise BadRequestError("Page must be greater than 0")
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        raise BadRequestError(f"Page size must be between 1 and {MAX_PAGE_SIZE}")
    response.headers["X-Total-Count"] = str(nasa.count_stored())
    return nasa.get_stored_apods(page, page_size)


@router.get("/apod/trends", response_model=List[ApodTrendOut])
def get_trends(
    start_date: date,
    end_date: date,
    nasa: NasaService = Depends(get_nasa_service),
):
    if start_date > end_date:
        raise BadRequestError("Start date must be before end date")
    return nasa.get_trends(start_date, end_date)


@router.get("/apod/calendar", response_model=List[ApodCalendarItemOut])
def get_apod_calendar(
    year: int,
    month: int,
    nasa: NasaService = Depends(get_nasa_service),
):
    return nasa.get_apod_calendar_month(year, month)


@router.put("/apod/{apod_id}/rating", response_model=ApodOut)
def update_rating(
    apod_id: uuid.UUID,
    payload: RatingIn,
    nasa: NasaService = Depends(get_nasa_service),
):
    return nasa.update_rating(apod_id, payload.rating)


@router.post("/apod/{apod_id}/favorite", response_model=ApodOut)
def toggle_favorite(apod_id: uuid.UUID, nasa: NasaService = Depends(get_nasa_service)):
    return nasa.toggle_favorite(apod_id)


@router.post("/apod/sync", response_model=ApodOut)
def sync_apod(
    day: date = Query(alias="date"),
    nasa: NasaService = Depends(get_nasa_service),
):
    _check_apod_date(day)
    return nasa.sync_apod_from_nasa(day)
