from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""  # anon key, used for interactive sessions
    supabase_service_role_key: Optional[str] = None  # Required for request-serving contexts

    # Tables
    environments_table: str = "environments"
    plants_table: str = "plants"
    diary_entries_table: str = "diary_entries"

    # Photo analysis (Anthropic Messages API)
    photo_analysis_api_key: Optional[str] = None
    photo_analysis_model: str = "claude-3-5-sonnet-20241022"
    photo_analysis_base_url: str = "https://api.anthropic.com/v1/messages"
    photo_analysis_timeout_seconds: float = 30.0
    photo_analysis_max_tokens: int = 400

    # App
    app_name: str = "growlog"
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
