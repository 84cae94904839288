from pydantic import BaseModel
from dotenv import load_dotenv
import os

load_dotenv()


def _bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _csv(name: str, default: str) -> list[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


class Settings(BaseModel):
    app_name: str = os.getenv("APP_NAME", "Astronomy Tracker API")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_json: bool = _bool("LOG_JSON", "false")
    cors_origins: list[str] = _csv(
        "CORS_ORIGINS", "http://localhost:4200,https://localhost:4200"
    )
    frontend_url: str = os.getenv("FRONTEND_URL", "http://localhost:4200")

    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./astrotracker.db")

    jwt_secret: str = os.getenv("JWT_SECRET", "change-me")
    jwt_issuer: str = os.getenv("JWT_ISSUER", "AstronomyTrackerAPI")
    jwt_audience: str = os.getenv("JWT_AUDIENCE", "AstronomyTrackerAPI-Users")
    jwt_expire_minutes: int = int(os.getenv("JWT_EXPIRE_MINUTES", "60"))

    nasa_api_base_url: str = os.getenv("NASA_API_BASE_URL", "https://api.nasa.gov/")
    nasa_api_key: str = os.getenv("NASA_API_KEY", "DEMO_KEY")
    nasa_timeout_seconds: float = float(os.getenv("NASA_TIMEOUT_SECONDS", "30"))
    # connection-level retries only, handled by the httpx transport
    nasa_retry_attempts: int = int(os.getenv("NASA_RETRY_ATTEMPTS", "3"))
    apod_site_url: str = os.getenv("APOD_SITE_URL", "https://apod.nasa.gov/apod/")
    apod_cache_ttl_seconds: int = int(os.getenv("APOD_CACHE_TTL_SECONDS", "3600"))
    apod_calendar_cache_ttl_seconds: int = int(
        os.getenv("APOD_CALENDAR_CACHE_TTL_SECONDS", str(12 * 3600))
    )

    smtp_host: str = os.getenv("SMTP_HOST", "")
    smtp_port: int = int(os.getenv("SMTP_PORT", "587"))
    smtp_use_tls: bool = _bool("SMTP_USE_TLS", "true")
    smtp_use_ssl: bool = _bool("SMTP_USE_SSL", "false")
    smtp_username: str = os.getenv("SMTP_USERNAME", "")
    smtp_password: str = os.getenv("SMTP_PASSWORD", "")
    smtp_from_email: str = os.getenv("SMTP_FROM_EMAIL", "")
    smtp_from_name: str = os.getenv("SMTP_FROM_NAME", "Astronomy Tracker")

settings = Settings()
