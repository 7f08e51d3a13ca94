from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )

    # Database
    database_url: str

    # Auth (Supabase access tokens are HS256 JWTs)
    supabase_jwt_secret: str
    supabase_jwt_audience: str = "authenticated"

    # App
    debug: bool = False
    allowed_origins: str = ""  # comma-separated
    frontend_url: str = "http://localhost:3000"

    # Schools
    default_max_jobs: int = 5

    # Matching
    matching_result_limit: int = 50
    min_match_score: int = 0

    # Payments
    payment_mode: str = "stripe"  # stripe | dev (dev only honoured when debug is on)
    stripe_secret_key: Optional[str] = None
    stripe_api_base: str = "https://api.stripe.com/v1"

    def get_frontend_url(self) -> str:
        return self.frontend_url.rstrip("/")


settings = Settings()
