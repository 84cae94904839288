from astrotracker.repositories.user_repository import UserRepository
from astrotracker.repositories.apod_repository import ApodRepository

__all__ = ["UserRepository", "ApodRepository"]
