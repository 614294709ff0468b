"""
Configuration module for the School Gradebook.
"""
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings
from dotenv import load_dotenv

from .constants import SUBJECTS

load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database (in-memory by default, one database per application state)
    database_url: str = "sqlite+pysqlite:///:memory:"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    # Seed accounts
    seed_demo_data: bool = False
    seed_teacher_login: str = "RomanYarg"
    seed_teacher_secret: str = "1qaz2wsx"
    seed_teacher_name: str = "Roman Yaroslavovich"
    seed_teacher_avatar: str = "👨‍🏫"
    seed_teacher_subjects: List[str] = list(SUBJECTS)
    seed_admin_login: str = "admin"
    seed_admin_secret: str = "admin"
    seed_admin_name: str = "Administrator"
    seed_admin_avatar: str = "👑"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()


settings = get_settings()
