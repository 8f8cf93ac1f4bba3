"""Settings for the CrossQuery search engine."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class CrossQuerySettings(BaseSettings):
    """CrossQuery configuration settings."""

    # Logging
    LOG_LEVEL: str = "INFO"

    # Criteria defaults and request bounds
    DEFAULT_PAGE_NUMBER: int = 0
    DEFAULT_PAGE_SIZE: int = 100
    SEARCH_MAX_FILTERS: int = 50
    SEARCH_MAX_SORTS: int = 10
    FULL_TEXT_MAX_LENGTH: int = 200

    # PostgreSQL
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: str = "5432"
    POSTGRES_DBNAME: Optional[str] = None
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_SCHEMA: Optional[str] = None

    # MongoDB
    MONGO_URI: Optional[str] = None
    MONGO_DATABASE: Optional[str] = None

    # Elasticsearch
    ELASTICSEARCH_URL: Optional[str] = None
    ELASTICSEARCH_API_KEY: Optional[str] = None
    # Sub-field used for exact/wildcard/sort clauses on STRING fields ("" to address the field itself)
    ELASTICSEARCH_KEYWORD_SUFFIX: str = ".keyword"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = CrossQuerySettings()
