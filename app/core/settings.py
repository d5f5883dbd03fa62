"""Application settings and environment loading utilities."""
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings


BASE_DIR = Path(__file__).resolve().parent.parent.parent
ENV_FILE = BASE_DIR / ".env"

load_dotenv(dotenv_path=ENV_FILE)


class Settings(BaseSettings):
    """Central application configuration."""

    app_name: str = "GRNI Accrual Ledger API"
    environment: str = Field(default="development", alias="ENVIRONMENT")
    database_url: str = Field(
        default="sqlite:///./data/dev.db",
        description="SQLAlchemy database URL",
        alias="DATABASE_URL",
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    default_owner_role: str = Field(default="COMPRAS_ANALISTA", alias="GRNI_DEFAULT_OWNER_ROLE")
    owner_selection: Literal["random", "round_robin"] = Field(default="random", alias="GRNI_OWNER_SELECTION")
    default_currency: str = Field(default="ARS", alias="GRNI_DEFAULT_CURRENCY")
    default_doc_type: str = Field(default="T1", alias="GRNI_DEFAULT_DOC_TYPE")

    class Config:
        env_file = ENV_FILE
        env_file_encoding = "utf-8"
        case_sensitive = False
        populate_by_name = True


@lru_cache
def get_settings() -> "Settings":
    """Return cached settings instance."""

    return Settings()
