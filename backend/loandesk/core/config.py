from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

# .../backend/loandesk/core/config.py -> parents[2] = .../backend
BACKEND_DIR = Path(__file__).resolve().parents[2]
ENV_FILE = BACKEND_DIR / ".env"

class Settings(BaseSettings):
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "loandesk"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    # Full SQLAlchemy URL; takes precedence over the DB_* parts when set
    DATABASE_URL: Optional[str] = None

    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]
    LOG_LEVEL: str = "INFO"

    WHATSAPP_API_BASE_URL: str = "https://graph.facebook.com"
    WHATSAPP_API_VERSION: str = "v18.0"
    WHATSAPP_PHONE_NUMBER_ID: str = ""
    WHATSAPP_ACCESS_TOKEN: str = ""
    WHATSAPP_VERIFY_TOKEN: str = "your_verify_token"
    WHATSAPP_COUNTRY_CODE: str = "91"
    WHATSAPP_TIMEOUT_SECONDS: float = 15.0

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

settings = Settings()

# Display labels for rows whose grouping column is null
UNASSIGNED_AGENT_LABEL = "Unassigned"
NO_TEAM_LABEL = "No Team"
UNKNOWN_SEGMENT_LABEL = "Unknown"
