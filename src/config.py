from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    DATABASE_URL : str
    DATABASE_POOL_SIZE : int = 10
    DATABASE_MAX_OVERFLOW : int = 20
    DATABASE_POOL_TIMEOUT : int = 60
    DATABASE_ECHO : bool = False

    JWT_SECRET : str
    JWT_ALGORITHM : str = "HS256"
    ACCESS_TOKEN_EXPIRY_MINUTES : int = 60
    REDIS_URL : str = "redis://localhost:6379/0"

    CORS_ORIGINS : List[str] = ["http://localhost:3000"]

    # Voucher engine
    DEFAULT_AVAILABLE_LIMIT : int = 20
    MAX_AVAILABLE_LIMIT : int = 100
    DEFAULT_PAGE_SIZE : int = 10
    MAX_PAGE_SIZE : int = 100
    CURRENCY_SYMBOL : str = "đ"
    CURRENCY_THOUSANDS_SEPARATOR : str = "."

    model_config = SettingsConfigDict(
        env_file = ".env",
        extra = "ignore"
    )


Config = Settings()
