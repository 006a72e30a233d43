"""Core app configuration, database and security."""

from designfolio.core.config import get_settings, settings
from designfolio.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
