from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    # App
    app_name: str = "Church Admin"
    debug: bool = False
    app_base_url: str = "http://localhost:5173"
    church_name: str = "Blessing Haven Church"
    host: str = "0.0.0.0"
    port: int = 8000

    # CORS
    cors_origins: str = "http://localhost:5173"

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # Database
    database_url: str = "sqlite:///./churchadmin.db"

    # Redis (rate limiter backend)
    redis_url: str = "redis://localhost:6379/0"

    # Security
    secret_key: str = "dev-secret-key-change-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    min_password_length: int = 8

    # Rate Limiting
    rate_limit_enabled: bool = True
    rate_limit_default: int = 100  # requests per window
    rate_limit_window: int = 60  # seconds
    rate_limit_login: int = 5  # login attempts

    # Logging
    log_level: str = "INFO"
    log_dir: str = "./logs"
    log_to_file: bool = False

    # Email
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_from_email: str = "noreply@churchadmin.local"
    smtp_from_name: str = "Church Admin"
    smtp_use_tls: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"  # Allow extra env vars without raising validation errors
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
