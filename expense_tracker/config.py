import os
from pathlib import Path


def _csv(value):
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    # Database
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./data/expenses.db")

    # Directories
    BASE_DIR = Path(__file__).parent.parent

    # API Settings
    API_PREFIX = "/api"
    PROJECT_NAME = "Expense Tracker"
    CORS_ORIGINS = _csv(os.getenv("CORS_ORIGINS", "*"))

    # Authentication
    JWT_SECRET = os.getenv("JWT_SECRET", "change-me-in-production")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", str(60 * 24)))

    # Application settings
    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "100"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    def __init__(self):
        # Ensure the SQLite data directory exists
        if self.DATABASE_URL.startswith("sqlite:///") and ":memory:" not in self.DATABASE_URL:
            database_path = Path(self.DATABASE_URL[len("sqlite:///"):])
            database_path.parent.mkdir(parents=True, exist_ok=True)


settings = Settings()
