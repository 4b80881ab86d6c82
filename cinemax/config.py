"""Application configuration loaded from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central configuration — reads from environment / .env file."""

    # TMDB
    tmdb_api_key: str = ""
    tmdb_base_url: str = "https://api.themoviedb.org/3"
    tmdb_language: str = "en-US"
    tmdb_timeout_seconds: int = 15

    # Database
    database_url: str = "sqlite+aiosqlite:///./cinemax.db"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    allowed_origins: str = "*"

    # Paging
    page_size: int = 20
    cache_timeout_seconds: int = 3600           # 1 hour before a list is refreshed on open

    # Search memo (seconds / entries)
    search_cache_ttl: int = 300
    search_cache_size: int = 256

    # Failure kind -> user-facing message key
    error_message_keys: dict[str, str] = {
        "offline": "no_internet_connection",
        "network": "unknown_error",
        "server": "unknown_error",
        "unknown": "unknown_error",
    }

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def has_tmdb_key(self) -> bool:
        return bool(self.tmdb_api_key)

    @property
    def is_demo_mode(self) -> bool:
        return not self.has_tmdb_key

    @property
    def cors_origins(self) -> list[str]:
        if self.allowed_origins == "*":
            return ["*"]
        return [o.strip() for o in self.allowed_origins.split(",")]


settings = Settings()
