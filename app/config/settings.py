from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""  # public anon key; row-level policies apply
    profiles_table: str = "profiles"

    # Visitor sessions
    secret_key: str = "change-me"  # signs the session cookie
    session_cookie: str = "portal_session"
    session_max_age: int = 14 * 24 * 60 * 60
    visitor_idle_ttl: int = 30 * 60  # seconds before an idle visitor context is torn down
    visitor_sweep_interval: int = 60

    # App
    app_name: str = "profile-portal"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:8000,http://127.0.0.1:8000"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"
    auth_rate_limit: str = "10/minute"

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
