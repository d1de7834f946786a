"""Environment-driven settings for the Tourbook API."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent
DEFAULT_DB_PATH = (BASE_DIR / "tourbook.db").resolve()


class Settings(BaseSettings):
    """Application settings loaded from environment variables (and backend/.env)."""

    model_config = SettingsConfigDict(
        env_file=str(BASE_DIR.parent / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Seguridad / JWT
    secret_key: str = ""
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 90 * 24 * 60
    jwt_cookie_expires_days: int = 90
    cookie_secure: bool = False
    bcrypt_rounds: int = 12
    reset_token_expire_minutes: int = 10

    # Persistencia
    database_url: str = f"sqlite:///{DEFAULT_DB_PATH.as_posix()}"

    # HTTP
    frontend_origin: Optional[str] = None
    log_level: str = "INFO"

    # Límites de peticiones (0 desactiva el limitador)
    rate_limit_max_requests: int = 100
    rate_limit_window_seconds: int = 15 * 60
    max_body_bytes: int = 10 * 1024

    # Correo saliente (recuperación de contraseña)
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = True
    mail_from: str = "Tourbook <no-reply@tourbook.local>"


settings = Settings()
