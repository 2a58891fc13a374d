"""PrepWise Payments — configuration loaded from environment."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, loaded from .env or environment variables."""

    # ── Database ──────────────────────────────────────────
    database_url: str = "sqlite+aiosqlite:///./prepwise_payments.db"
    database_busy_timeout_seconds: float = 30.0  # SQLite lock wait

    # ── Email delivery (SMTP) ─────────────────────────────
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_start_tls: bool = True
    smtp_timeout_seconds: float = 10.0
    email_from: str = "PrepWise <noreply@prepwise.local>"

    # ── Payment OTP ───────────────────────────────────────
    otp_length: int = 6
    otp_ttl_seconds: int = 300
    otp_max_attempts: int = 3  # 0 disables the lockout
    otp_cleanup_interval_seconds: int = 300

    # ── Client ────────────────────────────────────────────
    api_base_url: str = "http://localhost:8000"

    # ── App ───────────────────────────────────────────────
    app_name: str = "PrepWise Payments"
    debug: bool = True

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton settings instance
settings = Settings()
