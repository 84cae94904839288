from datetime import date
from typing import Optional

import httpx
import structlog

from astrotracker.core.config import Settings
from astrotracker.core.errors import UpstreamUnavailableError
from astrotracker.schemas.apod import RemoteApod

log = structlog.get_logger(__name__)


class NasaClient:
    """Thin httpx wrapper around the NASA APOD API and the static APOD site."""

    def __init__(self, settings: Settings, transport: Optional[httpx.BaseTransport] = None):
        self.api_key = settings.nasa_api_key
        self._client = httpx.Client(
            base_url=settings.nasa_api_base_url,
            timeout=settings.nasa_timeout_seconds,
            transport=transport or httpx.HTTPTransport(retries=settings.nasa_retry_attempts),
            follow_redirects=True,
        )

    def fetch_apod(self, day: date) -> RemoteApod:
        params = {"api_key": self.api_key, "date": day.isoformat()}
        log.info("nasa_apod_request", date=day.isoformat())
        try:
            response = self._client.get("planetary/apod", params=params)
            response.raise_for_status()
            return RemoteApod.model_validate(response.json())
        except httpx.HTTPStatusError as exc:
            log.error("nasa_apod_bad_status", date=day.isoformat(), status_code=exc.response.status_code)
            raise UpstreamUnavailableError("NASA service is temporarily unavailable") from exc
        except httpx.HTTPError as exc:
            log.error("nasa_apod_unreachable", date=day.isoformat(), error=str(exc))
            raise UpstreamUnavailableError("NASA service is temporarily unavailable") from exc
        except ValueError as exc:
            # json decoding errors and pydantic validation errors both land here
            log.error("nasa_apod_bad_payload", date=day.isoformat(), error=str(exc))
            raise UpstreamUnavailableError("NASA service returned an unexpected response") from exc

    def fetch_page(self, url: str) -> str:
        try:
            response = self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            log.warning("apod_page_fetch_failed", url=url, error=str(exc))
            raise UpstreamUnavailableError("APOD site is temporarily unavailable") from exc
        return response.text

    def close(self) -> None:
        self._client.close()
