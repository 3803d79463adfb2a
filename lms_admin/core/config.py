from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(
        "mysql+aiomysql://root@localhost:3306/lms_database",
        alias="DATABASE_URL",
    )
    # Physical schema names behind the two logical schemas used by the models.
    # None means "the connection's default schema".
    lms_schema: Optional[str] = Field(None, alias="LMS_SCHEMA")
    elearning_schema: Optional[str] = Field("tesco_elearning", alias="ELEARNING_SCHEMA")
    db_pool_size: int = Field(10, alias="DB_POOL_SIZE")

    redis_host: str = Field("localhost", alias="REDIS_HOST")
    redis_port: int = Field(6379, alias="REDIS_PORT")
    redis_password: Optional[str] = Field(None, alias="REDIS_PASSWORD")
    redis_db: int = Field(0, alias="REDIS_DB")
    cache_ttl_seconds: int = Field(300, alias="CACHE_TTL_SECONDS")
    cache_retry_delay_seconds: float = Field(5, alias="CACHE_RETRY_DELAY_SECONDS")

    session_secret: str = Field("lms-secret-key-change-in-production", alias="SESSION_SECRET")
    session_max_age: int = Field(24 * 60 * 60, alias="SESSION_MAX_AGE")
    session_https_only: bool = Field(False, alias="SESSION_HTTPS_ONLY")

    default_company: str = Field("lotus", alias="DEFAULT_COMPANY")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"
        populate_by_name = True


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
