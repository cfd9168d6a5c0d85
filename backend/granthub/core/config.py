"""Runtime settings of the GrantHub backend, read from the environment."""

from typing import Optional

from pydantic import PostgresDsn, ValidationInfo, field_validator
from pydantic_settings import BaseSettings

_LOCAL_FRONTENDS = ("http://localhost:3000", "http://localhost:5173")


class Settings(BaseSettings):
    """Environment backed settings.

    Attributes:
    ----------
        LOCAL_DEVELOPMENT (bool): Plain text logs instead of JSON.
        ENVIRONMENT (str): Deployment name (local, dev, test, prd).
        DEBUG (bool): Include tracebacks in 500 responses.
        LOG_LEVEL (str): Level name for every GrantHub logger.
        SQLALCHEMY_ASYNC_DATABASE_URI (Optional[PostgresDsn]): Overrides the
            URI assembled from the POSTGRES_* values.
        DB_POOL_SIZE, DB_MAX_OVERFLOW, DB_POOL_TIMEOUT (int): Engine pool sizing.
        RUN_ALEMBIC_MIGRATIONS (bool): Upgrade the schema to head on startup.
        DEFAULT_GROUP_NAME (str): Name of the group every team gets.
        POSTAL_CENTROIDS_URL (str): GeoNames postal code archive.
        ADDITIONAL_CORS_ORIGINS (Optional[str]): Extra origins, comma or
            semicolon separated.

    """

    PROJECT_NAME: str = "GrantHub"
    LOCAL_DEVELOPMENT: bool = False
    ENVIRONMENT: str = "local"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "granthub"
    POSTGRES_USER: str = "granthub"
    POSTGRES_PASSWORD: str = "granthub"
    SQLALCHEMY_ASYNC_DATABASE_URI: Optional[PostgresDsn] = None

    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    RUN_ALEMBIC_MIGRATIONS: bool = False

    DEFAULT_GROUP_NAME: str = "Default"
    POSTAL_CENTROIDS_URL: str = "https://download.geonames.org/export/zip/allCountries.zip"

    ADDITIONAL_CORS_ORIGINS: Optional[str] = None

    @field_validator("SQLALCHEMY_ASYNC_DATABASE_URI", mode="before")
    def assemble_db_connection(cls, v: Optional[str], info: ValidationInfo) -> PostgresDsn:
        """Use an explicit URI as is, otherwise build an asyncpg one."""
        if isinstance(v, str):
            return v

        values = info.data
        return PostgresDsn.build(
            scheme="postgresql+asyncpg",
            username=values.get("POSTGRES_USER"),
            password=values.get("POSTGRES_PASSWORD"),
            host=values.get("POSTGRES_HOST", "localhost"),
            port=values.get("POSTGRES_PORT"),
            path=values.get("POSTGRES_DB") or "",
        )

    @property
    def cors_origins(self) -> list[str]:
        """Local frontends plus ADDITIONAL_CORS_ORIGINS.

        A local environment with extra origins configured accepts any origin.
        """
        raw = (self.ADDITIONAL_CORS_ORIGINS or "").replace(";", ",")
        extra = [origin.strip() for origin in raw.split(",") if origin.strip()]
        if extra and self.ENVIRONMENT == "local":
            extra = ["*"]
        return [*_LOCAL_FRONTENDS, *extra]


settings = Settings()
