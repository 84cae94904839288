from astrotracker.api.routes.auth import router as auth_router
from astrotracker.api.routes.nasa import router as nasa_router
from astrotracker.api.routes.health import router as health_router, test_router

__all__ = ["auth_router", "nasa_router", "health_router", "test_router"]
