"""
Configuration management for the PDF Flashcard Generator
"""
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application Configuration
    app_name: str = "PDF Flashcard Generator"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 3000
    workers: int = 1

    # Security Configuration
    allowed_hosts: str = "*"
    cors_origins: str = "*"

    # LLM Configuration (Mistral chat completions)
    mistral_api_key: Optional[str] = None
    llm_api_url: str = "https://api.mistral.ai/v1/chat/completions"
    llm_model: str = "mistral-small"
    llm_temperature: float = 0.7
    llm_max_tokens: int = 200
    llm_timeout_seconds: float = 30.0

    # Rate limiting policy
    request_delay_seconds: float = 3.0  # before every LLM call
    chunk_delay_seconds: float = 3.0  # between consecutive chunks
    max_retries: int = 10
    initial_retry_delay_seconds: float = 5.0
    max_retry_delay_seconds: float = 60.0
    retry_jitter_seconds: float = 1.0

    # Pipeline Configuration
    chunk_size: int = 800
    max_question_chunks: int = 5
    min_qa_field_length: int = 10
    fallback_prompt_chars: int = 1000
    processing_timeout_seconds: float = 300.0

    # Result cache
    cache_ttl_seconds: int = 3600
    cache_max_entries: int = 256

    # Upload Configuration
    upload_directory: str = "./uploads"
    max_file_size_mb: int = 5

    # Logging Configuration
    log_level: str = "INFO"
    log_format: str = "structured"
    log_file: Optional[str] = None

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
