"""Database models."""
from app.models.user import User
from app.models.health_data import HealthData

__all__ = [
    "User",
    "HealthData",
]
