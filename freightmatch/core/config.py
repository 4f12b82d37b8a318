"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"
    VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./freightmatch.db"

    # Session cookie
    SESSION_SECRET: str = "change-this-in-production"
    SESSION_COOKIE_NAME: str = "freightmatch.sid"
    SESSION_MAX_AGE_DAYS: int = 7

    # PIN hashing cost (lowered in tests)
    BCRYPT_ROUNDS: int = 12

    # CORS
    CORS_ORIGINS: str = "http://localhost:5173"

    # Pricing (seed value for the AdminSettings row)
    DEFAULT_COMMISSION_PERCENTAGE: str = "10"

    # Bootstrap: phone numbers containing this marker register as admin
    ADMIN_PHONE_MARKER: str = "000000"

    # SMS (Infobip)
    INFOBIP_API_KEY: str = ""
    INFOBIP_BASE_URL: str = ""
    SMS_SENDER_NAME: str = "FreightMatch"

    # Push notifications
    PUSH_SERVER_KEY: str = ""
    PUSH_API_URL: str = "https://fcm.googleapis.com/fcm/send"

    # Email (Resend) - admin audit copies
    RESEND_API_KEY: str = ""
    EMAIL_FROM: str = "noreply@freightmatch.local"
    ADMIN_EMAIL: str = ""

    # Distance matrix
    GOOGLE_MAPS_API_KEY: str = ""

    # Outbound HTTP timeout for all providers (seconds)
    PROVIDER_TIMEOUT_SECONDS: float = 10.0

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def cookie_secure(self) -> bool:
        """Secure cookies only outside dev."""
        return self.ENV != "dev"

    @property
    def session_max_age_seconds(self) -> int:
        return self.SESSION_MAX_AGE_DAYS * 24 * 60 * 60


settings = Settings()
