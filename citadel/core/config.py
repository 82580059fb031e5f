from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    # App
    app_name: str = "Citadel"
    debug: bool = False

    # Access control
    super_admin_role: str = "Super Admin"
    default_user_role: str = "User"
    permission_guard: str = "api"

    # Database
    database_url: str = "sqlite:///./citadel.db"

    # Security (tokens are issued by the OAuth provider, only verified here)
    secret_key: str = "dev-secret-key-change-in-production"
    algorithm: str = "HS256"

    # API
    api_per_page: int = 15
    api_max_per_page: int = 100

    # Logging
    log_level: str = "INFO"
    log_dir: Optional[str] = None

    model_config = SettingsConfigDict(
        env_prefix="CITADEL_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"  # Allow extra env vars without raising validation errors
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
