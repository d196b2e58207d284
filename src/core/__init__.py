from src.core.config import Settings, get_settings
from src.core.database import Database, get_db

__all__ = ["Settings", "get_settings", "Database", "get_db"]
