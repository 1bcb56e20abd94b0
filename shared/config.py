"""Shared configuration for all services."""
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # MongoDB Configuration
    mongo_url: str = "mongodb://localhost:27017"
    mongo_db_name: str = "vocab_builder"

    # Redis Configuration
    redis_url: str = "redis://localhost:6379"
    redis_lease_key: str = "word_worker:lease"
    worker_lease_ttl: int = 180  # seconds, must outlast one item

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False
    run_worker_in_api: bool = False

    # Submission limits
    bulk_max_words: int = 20000
    stream_max_words: int = 50
    item_insert_chunk_size: int = 1000

    # Worker Configuration
    worker_batch_size: int = 5
    worker_item_delay: float = 2.0
    worker_idle_delay: float = 5.0
    worker_stale_timeout: float = 600.0  # seconds an item may stay processing
    max_retry_attempts: int = 3
    retry_base_delay: float = 1.0
    retry_max_delay: float = 60.0
    error_message_max_length: int = 250

    # Streaming Configuration
    stream_word_delay: float = 0.1

    # Generator (Gemini) Configuration
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-flash"
    gemini_api_base: str = "https://generativelanguage.googleapis.com/v1beta"
    generation_timeout: int = 30
    generation_temperature: float = 0.7
    translation_language: str = "Turkish"

    # Rate Limiting
    rate_limit_requests: int = 60
    rate_limit_window: int = 60  # seconds
    rate_limit_key: str = "generator:rate"

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
