from pydantic import model_validator
from pydantic_settings import BaseSettings

# Fields that must be non-empty (strings) or non-zero (ints) for the
# process to start.  DB_PASSWORD and JWT_SECRET have no default at all.
_REQUIRED_FIELDS = (
    "APP_PORT",
    "DB_HOST",
    "DB_PORT",
    "DB_USER",
    "DB_PASSWORD",
    "DB_NAME",
    "REDIS_HOST",
    "REDIS_PORT",
    "JWT_SECRET",
    "JWT_EXPIRES_HOURS",
)


class Settings(BaseSettings):
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8080
    APP_ENV: str = "development"
    DEBUG: bool = False

    # Database parts; DATABASE_URL overrides them when set.
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "bloguser"
    DB_PASSWORD: str
    DB_NAME: str = "blogdb"
    DATABASE_URL: str | None = None

    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_PASSWORD: str | None = None
    REDIS_DB: int = 0

    JWT_SECRET: str
    JWT_EXPIRES_HOURS: int = 24
    JWT_ISSUER: str = "blog-api"

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # "json" or "console"
    LOG_FILE: str | None = None

    # Pagination
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    model_config = {"env_file": ".env", "extra": "ignore"}

    @model_validator(mode="after")
    def _check_required(self) -> "Settings":
        missing = [name for name in _REQUIRED_FIELDS if not getattr(self, name)]
        if missing:
            raise ValueError(f"required configuration is empty: {', '.join(missing)}")
        return self

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    @property
    def redis_url(self) -> str:
        auth = f":{self.REDIS_PASSWORD}@" if self.REDIS_PASSWORD else ""
        return f"redis://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    @property
    def token_ttl_seconds(self) -> int:
        return self.JWT_EXPIRES_HOURS * 3600


settings = Settings()
