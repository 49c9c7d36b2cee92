from .settings import AccessSettings, settings
from .database import DatabaseManager

__all__ = ["AccessSettings", "settings", "DatabaseManager"]
