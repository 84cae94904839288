from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from astrotracker.core.config import settings
from astrotracker.core.database import init_db
from astrotracker.core.errors import register_exception_handlers
from astrotracker.core.logging import setup_logging
from astrotracker.api import api_router
from astrotracker.api.deps import get_nasa_client
from astrotracker.api.routes import health_router

setup_logging()

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

@app.on_event("startup")
def on_startup():
    init_db()

@app.on_event("shutdown")
def on_shutdown():
    get_nasa_client().close()

app.include_router(health_router)
app.include_router(api_router)
