from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import structlog
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from astrotracker.core.database import get_session

log = structlog.get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
def health(session: Session = Depends(get_session)):
    try:
        session.connection().execute(text("SELECT 1"))
    except SQLAlchemyError:
        log.error("health_check_database_failed", exc_info=True)
        return JSONResponse(status_code=503, content={"status": "unhealthy", "database": "error"})
    return {"status": "healthy", "database": "ok"}


test_router = APIRouter(prefix="/test", tags=["test"])


@test_router.get("/health")
def test_health():
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc)}


@test_router.get("/ping")
def ping():
    return "pong"
