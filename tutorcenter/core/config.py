from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")

    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    db_echo: bool = Field(False, alias="DB_ECHO")
    db_pool_recycle_seconds: int = Field(300, alias="DB_POOL_RECYCLE_SECONDS")
    # SQLite only: how long a writer waits on a locked database file
    db_busy_timeout_seconds: int = Field(30, alias="DB_BUSY_TIMEOUT_SECONDS")

    # Parent-supplied free text on absence requests
    absence_message_max_length: int = Field(500, alias="ABSENCE_MESSAGE_MAX_LENGTH")

    portal_page_size_default: int = Field(50, alias="PORTAL_PAGE_SIZE_DEFAULT")
    portal_page_size_max: int = Field(200, alias="PORTAL_PAGE_SIZE_MAX")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
