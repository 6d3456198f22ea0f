import os

DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite+aiosqlite:///./events.db")
SQL_ECHO = os.environ.get("SQL_ECHO", "false").lower() in ("1", "true", "yes")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
DEFAULT_TIMEZONE = os.environ.get("DEFAULT_TIMEZONE", "UTC")
