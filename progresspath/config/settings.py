from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List

DEFAULT_APP_URL = "https://progress-path-one.vercel.app"


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = Field(
        default="",
        validation_alias=AliasChoices("NEXT_PUBLIC_SUPABASE_URL", "SUPABASE_URL", "supabase_url"),
    )
    supabase_key: str = Field(
        default="",
        validation_alias=AliasChoices("NEXT_PUBLIC_SUPABASE_ANON_KEY", "SUPABASE_KEY", "supabase_key"),
    )
    supabase_service_role_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_SERVICE_KEY", "supabase_service_role_key"
        ),
    )

    # Embed tokens
    jwt_embed_secret: Optional[str] = None
    jwtembedsecret: Optional[str] = None
    jwt_secret: Optional[str] = None
    jwt_embed_default_duration: str = "7d"

    # Public URLs used to build embed links
    app_url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("NEXT_PUBLIC_APP_URL", "app_url")
    )
    vercel_url: Optional[str] = None

    # Scheduled jobs
    cron_secret: Optional[str] = None
    test_secret: Optional[str] = None

    # Dashboard data owner when no userId is passed
    dashboard_user_id: str = "f484bfe8-2771-4e0f-b765-830fbdb3c74e"

    # App
    app_name: str = "progresspath-api"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def service_key(self) -> Optional[str]:
        return self.supabase_service_role_key or None

    @property
    def embed_secret(self) -> Optional[str]:
        """First non-empty of JWT_EMBED_SECRET, JWTEMBEDSECRET, JWT_SECRET, then the Supabase service key."""
        return self.jwt_embed_secret or self.jwtembedsecret or self.jwt_secret or self.service_key

    @property
    def public_app_url(self) -> str:
        if self.app_url:
            return self.app_url.rstrip("/")
        if self.vercel_url:
            if self.vercel_url.startswith("http"):
                return self.vercel_url.rstrip("/")
            return f"https://{self.vercel_url}".rstrip("/")
        return DEFAULT_APP_URL

    @property
    def job_secret(self) -> Optional[str]:
        return self.test_secret or self.cron_secret

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore",
        populate_by_name=True,
    )


settings = Settings()


def get_settings() -> Settings:
    return settings
