from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="FINBOARD_", env_file=".env", extra="ignore")

    # Full SQLAlchemy URL. When set it wins over the ODBC fields below (e.g. sqlite:///finboard.db).
    database_url: str | None = None

    # Use the common instance name format used by SSMS, e.g. .\SQLEXPRESS
    db_server: str = r".\SQLEXPRESS"
    db_name: str = "finboard"
    db_trusted_connection: bool = True
    db_user: str | None = None
    db_password: str | None = None
    db_driver: str = "ODBC Driver 17 for SQL Server"

    jwt_secret: str = "change-me"
    jwt_expire_minutes: int = 60

    # Cookie-based auth: store JWT in HttpOnly cookie.
    auth_cookie_name: str = "finboard_auth"
    auth_cookie_samesite: str = "lax"  # lax|strict|none
    auth_cookie_secure: bool = False

    cors_origins: str = "http://localhost:5173,http://127.0.0.1:5173,http://localhost:8000,http://127.0.0.1:8000"

    log_level: str = "INFO"

    # How long a completed Idempotency-Key is remembered.
    idempotency_window_seconds: int = 600

    seed_admin_username: str = "admin"
    seed_admin_password: str = "admin"


settings = Settings()
