"""
API configuration settings.
"""

from pydantic_settings import BaseSettings


class APIConfig(BaseSettings):
    """API configuration settings."""

    # API Settings
    api_title: str = "Book Review API"
    api_version: str = "1.0.0"
    api_description: str = "Users, book reviews with audio attachments, a book catalog and review statistics"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 3004
    debug: bool = False

    # Uploads
    uploads_dir: str = "uploads"
    uploads_url_prefix: str = "/uploads"

    # Statistics
    popular_books_limit: int = 10

    # CORS Settings
    cors_origins: list = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list = ["*"]
    cors_allow_headers: list = ["*"]

    model_config = {
        "env_file": ".env",
        "extra": "ignore"  # Ignore extra fields from .env
    }


# Global config instance
config = APIConfig()
