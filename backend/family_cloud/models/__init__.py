"""SQLAlchemy ORM models for Family Cloud."""

from family_cloud.models.base import Base
from family_cloud.models.user import User

__all__ = [
    "Base",
    "User",
]
