from __future__ import annotations
from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # App
    APP_TITLE: str = Field("inventario")
    APP_VERSION: str = Field("0.1.0")
    APP_ENV: str = Field("dev")
    LOG_LEVEL: str = Field("INFO")

    # DB (fișier SQLite creat la prima pornire dacă lipsește)
    DATABASE_URL: str = Field("sqlite:///./database.db", description="sqlite:///./database.db")
    DB_ECHO: bool = False

    # HTTP
    HOST: str = "0.0.0.0"
    PORT: int = 3100
    CORS_ORIGINS: str = ""
    MAX_BODY_SIZE_BYTES: int = 0  # 0 = dezactivat

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

@lru_cache
def get_settings() -> Settings:
    return Settings()
