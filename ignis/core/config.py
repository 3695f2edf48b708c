from typing import Any, Dict, List, Optional
from urllib.parse import quote_plus

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEV_ORIGINS = ["http://localhost:5173", "http://localhost:3000"]


class Settings(BaseSettings):
    PROJECT_NAME: str = "Ignis"
    VERSION: str = "1.0.0"

    # --- Runtime ---
    ENVIRONMENT: str = "local"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # "json" or "console"
    LOG_DIR: str = "logs"

    # --- CORS (the dashboard front end) ---
    ALLOWED_ORIGINS: List[str] = Field(
        default_factory=list,
        validate_default=True,
        description="Dashboard origins; empty outside production means the dev servers.",
    )
    ALLOWED_METHODS: List[str] = Field(default_factory=lambda: ["GET", "OPTIONS"])
    ALLOWED_HEADERS: List[str] = Field(
        default_factory=lambda: ["Accept", "Accept-Language", "Content-Type", "X-Request-ID"],
    )

    # --- Latency budgets in seconds, keyed by path ---
    SLO_THRESHOLDS: Dict[str, float] = Field(
        default_factory=lambda: {
            "/risco": 1.0,
            "/foco_calor": 1.5,
            "/area_queimada": 1.5,
            "/health": 0.2,
        }
    )

    # --- Spatial store ---
    DB_HOST: Optional[str] = "localhost"
    DB_USER: Optional[str] = "postgres"
    DB_PASSWORD: Optional[str] = None
    DB_PORT: Optional[str] = "5432"
    DB_NAME: Optional[str] = "ignis"
    DB_APPLICATION_NAME: str = "ignis-api"
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_PRE_PING: bool = True
    TEST_DATABASE_URL: Optional[str] = None

    # Wins over the DB_* parts when set
    DATABASE_URL: Optional[str] = Field(default=None, validate_default=True)

    # --- Map client ---
    API_BASE_URL: str = "http://localhost:3000"
    ASSETS_BASE_URL: str = "http://localhost:3000"
    CLIENT_TIMEOUT: float = 15.0

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=True, extra="ignore"
    )

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def default_allowed_origins(cls, v: Any, info: ValidationInfo) -> Any:
        if isinstance(v, str) and v.strip() in ("", "[]"):
            v = []
        if not v and (info.data.get("ENVIRONMENT") or "local") != "production":
            return list(DEV_ORIGINS)
        return v or []

    @field_validator("LOG_FORMAT", mode="after")
    @classmethod
    def known_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("json", "console"):
            raise ValueError("LOG_FORMAT must be 'json' or 'console'")
        return v

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str], info: ValidationInfo) -> Any:
        if isinstance(v, str) and v:
            return v

        parts = info.data
        if not parts.get("DB_HOST") or not parts.get("DB_USER"):
            return None

        # @, # and : in passwords would otherwise break the URL
        password = quote_plus(parts.get("DB_PASSWORD") or "")
        return (
            f"postgresql+psycopg2://{parts['DB_USER']}:{password}"
            f"@{parts['DB_HOST']}:{parts.get('DB_PORT') or '5432'}"
            f"/{parts.get('DB_NAME') or 'ignis'}"
        )


settings = Settings()
