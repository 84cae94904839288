from astrotracker.models.user import User
from astrotracker.models.apod import ApodEntry

__all__ = ["User", "ApodEntry"]
