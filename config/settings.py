"""
Application settings loaded from environment variables.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Security Secrets ──────────────────────────────────────────────────
    jwt_secret: str = "change-me-jwt-secret-key"       # HMAC secret for auth tokens
    jwt_expiry_seconds: int = 86400                     # 24 hours
    jwt_algorithm: str = "HS256"
    bcrypt_rounds: int = 12                             # bcrypt work factor

    # ── Database ─────────────────────────────────────────────────────────
    database_url: str = "sqlite+aiosqlite:///./database.sqlite"

    # ── Server ───────────────────────────────────────────────────────────
    port: int = 3001
    host: str = "0.0.0.0"
    debug: bool = False
    frontend_url: str = "http://localhost:5173"   # allowed cross-origin caller

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
    }

    @property
    def cors_origins(self) -> list:
        return [origin.strip() for origin in self.frontend_url.split(",") if origin.strip()]


config = Settings()
