"""Application configuration."""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    PROJECT_NAME: str = "tagvault"

    # Database
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "tagvault"
    SQL_ECHO: bool = False

    # Redis (event publishing)
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379

    # Events: 'redis', 'log' or 'none'
    EVENTS_BACKEND: str = "log"
    EVENTS_CHANNEL_PREFIX: str = "tagvault"

    # Content store
    STORAGE_PATH: str = "./data/documents"

    # Logging
    LOG_LEVEL: str = "INFO"

    # Actor recorded in provenance when the caller does not supply one
    DEFAULT_ACTOR: str = "api-user"

    # Attempts at assigning the next schema version before giving up
    SCHEMA_VERSION_MAX_RETRIES: int = 3

    @property
    def DATABASE_URL(self) -> str:
        """Async PostgreSQL database URL for SQLAlchemy."""
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def SYNC_DATABASE_URL(self) -> str:
        """Sync PostgreSQL database URL for Alembic migrations."""
        return f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def REDIS_URL(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/0"


settings = Settings()
