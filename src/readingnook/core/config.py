"""
Configuration module for ReadingNook.

This module defines the Settings class, which loads environment variables
and provides application-wide configuration: the database URL, the Aladin
catalog credentials and limits, CORS origins and the log level.

Usage:
    Import the `settings` object to access configuration throughout the project.
"""

import os
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv
from typing import List

load_dotenv()

NO_ALADIN_KEY = "NO_ALADIN_KEY_SET"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        DATABASE_URL (str): Database connection string.
        ALADIN_TTB_KEY (str): TTB key for the Aladin open API.
        ALADIN_API_BASE (str): Base URL of the Aladin TTB API.
        ALADIN_API_VERSION (str): Fixed response version requested from Aladin.
        CATALOG_SEARCH_LIMIT (int): MaxResults for keyword searches.
        CATALOG_LIST_LIMIT (int): MaxResults for bestseller/new-arrival lists.
        LOCAL_SEARCH_LIMIT (int): Cap on local rows matched by a search.
        ENVIRONMENT (str): Current environment (e.g., 'production', 'development').
        CORS_ORIGINS (str): Comma-separated list of allowed browser origins.
        LOG_LEVEL (str): Root log level.
    """
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./readingnook.db")
    ALADIN_TTB_KEY: str = os.getenv("ALADIN_TTB_KEY", NO_ALADIN_KEY)
    ALADIN_API_BASE: str = os.getenv("ALADIN_API_BASE", "https://www.aladin.co.kr/ttb/api")
    ALADIN_API_VERSION: str = "20131101"
    CATALOG_SEARCH_LIMIT: int = 20
    CATALOG_LIST_LIMIT: int = 12
    LOCAL_SEARCH_LIMIT: int = 50
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "production")
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "http://localhost:5173")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def catalog_configured(self) -> bool:
        """True when a real Aladin key has been provided."""
        return bool(self.ALADIN_TTB_KEY) and self.ALADIN_TTB_KEY != NO_ALADIN_KEY

    @property
    def list_cors_origins(self) -> List[str]:
        """
        Returns the list of CORS origins parsed from CORS_ORIGINS.

        Returns:
            List[str]: List of allowed origins.
        """
        return [origin.strip() for origin in self.CORS_ORIGINS.split(',') if origin.strip()]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
