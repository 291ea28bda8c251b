from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    app_name: str = "projectgen"
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    log_level: str = "INFO"

    storage_backend: str = "memory"
    database_url: str = "sqlite:///./projectgen.db"

    provider_priority: str = "azure,google"
    provider_timeout_seconds: float = 120.0

    azure_openai_api_key: str | None = None
    azure_openai_endpoint: str | None = None
    azure_openai_deployment: str = "gpt-5-2025-08-07"
    azure_openai_api_version: str = "2024-04-01-preview"
    azure_openai_model_name: str = "gpt-5-chat"

    gemini_api_key: str | None = Field(
        default=None, validation_alias=AliasChoices("gemini_api_key", "google_ai_api_key")
    )
    gemini_api_base: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_analysis_model: str = "gemini-2.5-pro"
    gemini_files_model: str = "gemini-2.5-flash"

    e2b_api_key: str | None = Field(default=None, validation_alias=AliasChoices("e2b_api_key", "e2b_key"))
    e2b_api_base: str = "https://api.e2b.dev"
    deploy_enabled: bool = True

    subscriber_queue_size: int = 0

    @property
    def provider_order(self) -> list[str]:
        return [p.strip().lower() for p in self.provider_priority.split(",") if p.strip()]

settings = Settings()
