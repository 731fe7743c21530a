from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for diagnostics (auth.admin, bypasses RLS)

    # Onboarding guard
    onboarding_cache_ttl_seconds: float = 3.0
    trigger_window_seconds: float = 5.0  # how long the handle_new_user trigger may take to create rows
    fresh_signup_window_seconds: int = 300
    auth_intent_cookie_name: str = "auth_intent"
    auth_intent_max_age_seconds: int = 600
    cookie_secure: bool = False

    # App
    app_name: str = "storefront-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @model_validator(mode="after")
    def clamp_cache_ttl(self) -> "Settings":
        # A cached "absent" must never outlive the trigger window
        if self.onboarding_cache_ttl_seconds > self.trigger_window_seconds:
            self.onboarding_cache_ttl_seconds = self.trigger_window_seconds
        if self.onboarding_cache_ttl_seconds < 0:
            self.onboarding_cache_ttl_seconds = 0
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
