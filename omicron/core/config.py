from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from pydantic import field_validator

class Settings(BaseSettings):
    # Database settings
    POSTGRES_USER: str = 'omicron_user'
    POSTGRES_PASSWORD: str = 'omicron_pass'
    POSTGRES_DB: str = 'omicron_db'
    POSTGRES_HOST: str = 'postgres'
    POSTGRES_PORT: int = 5432

    # Permite usar SQLite en desarrollo (ej. sqlite:///./omicron.db)
    DATABASE_URL: Optional[str] = None

    # Calendario local para cortes de caja y estadísticas
    TIMEZONE: str = 'America/Mexico_City'

    # Inventario
    LOW_STOCK_THRESHOLD: int = 5  # Stock "bajo": 0 < stock < umbral

    # Tickets
    FOLIO_PREFIX: str = 'T-'

    # Estadísticas
    TREND_DAYS: int = 7

    # Pagination
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    model_config = SettingsConfigDict(
        extra="allow",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    @field_validator("DEBUG", mode="before")
    @classmethod
    def parse_debug(cls, v):
        if isinstance(v, str):
            return v.lower().strip('"').strip("'") in ("true", "1", "yes", "on")
        return bool(v)

    @field_validator("LOW_STOCK_THRESHOLD", "TREND_DAYS")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("El valor debe ser mayor a cero")
        return v

settings = Settings()
