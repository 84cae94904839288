from fastapi import APIRouter
from astrotracker.api.routes import auth_router, nasa_router, test_router

api_router = APIRouter(prefix="/api")
api_router.include_router(auth_router)
api_router.include_router(nasa_router)
api_router.include_router(test_router)
