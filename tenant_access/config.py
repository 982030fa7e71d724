from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    supabase_url: str
    supabase_service_role_key: str
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    jwt_expiration_minutes: int = 60 * 24 * 30
    database_url: str | None = None  # only used by scripts/create_tables.py
    environment: Literal["production", "staging", "development"] = "production"
    enable_dev_login: bool = False
    position_override_mode: Literal["covered", "exclusive", "disabled"] = "covered"
    identifier_store_path: str = ".tenant_access/identifier.json"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @property
    def dev_login_enabled(self) -> bool:
        return self.enable_dev_login and self.environment != "production"


settings = Settings()
