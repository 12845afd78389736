"""Configuration for the assistant backend using pydantic-settings."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_PACKAGE_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _PACKAGE_DIR.parent.parent  # src/municipal_assistant/ → project root

LLM_PROVIDERS = ("azure", "openai")


class Settings(BaseSettings):
    """Assistant settings from the environment, with a project-root .env as fallback."""

    model_config = SettingsConfigDict(
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Text generation — "azure" (Azure OpenAI) or "openai"
    # ------------------------------------------------------------------
    llm_provider: str = "azure"

    azure_openai_api_key: str = ""
    azure_openai_endpoint: str = ""
    azure_openai_api_version: str = "2025-01-01-preview"
    azure_openai_chat_deployment: str = "gpt-4o-mini"

    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"

    # ------------------------------------------------------------------
    # Document store (complaints + knowledge base)
    # ------------------------------------------------------------------
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "municipal_services"

    # ------------------------------------------------------------------
    # Conversation state
    # Sessions idle longer than the TTL are swept; 0 keeps them forever.
    # ------------------------------------------------------------------
    history_limit: int = 10
    session_idle_ttl_minutes: int = 60

    # ------------------------------------------------------------------
    # Auth (JWT issued by the portal's auth provider)
    # Set AUTH_ENABLED=false to disable for development.
    # ------------------------------------------------------------------
    auth_enabled: bool = True
    jwt_secret: str = "local-dev-jwt-secret-replace-me!"
    jwt_expiry_hours: int = 24
    # JSON list; only these emails may change complaint status. Empty admits all staff.
    admin_emails: list[str] = []

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = "INFO"
    log_json: bool = False

    # ------------------------------------------------------------------
    # Observability — "off", "logfire" or "otel"
    # ------------------------------------------------------------------
    observability: str = "off"
    otel_service_name: str = "municipal-assistant-backend"
    otel_exporter_otlp_endpoint: str = "http://localhost:4318"
    otel_console_exporter: bool = False

    # ------------------------------------------------------------------
    # Startup validation
    # ------------------------------------------------------------------
    def validate_runtime(self) -> None:
        """Check that all required values are present.

        Runs from the application lifespan rather than at import, so tests
        may build partial Settings objects freely.
        """
        provider = self.llm_provider.lower()
        if provider not in LLM_PROVIDERS:
            raise ValueError(
                f"Unknown LLM_PROVIDER '{self.llm_provider}'. Use one of: {', '.join(LLM_PROVIDERS)}"
            )
        if provider == "azure":
            if not self.azure_openai_api_key:
                raise ValueError("AZURE_OPENAI_API_KEY not set. Add it to .env")
            if not self.azure_openai_endpoint:
                raise ValueError("AZURE_OPENAI_ENDPOINT not set. Add it to .env")
        elif not self.openai_api_key:
            raise ValueError("OPENAI_API_KEY not set. Add it to .env")
        if not self.mongodb_url:
            raise ValueError("MONGODB_URL not set. Add it to .env")
        if self.history_limit < 1:
            raise ValueError("HISTORY_LIMIT must be at least 1.")


@lru_cache
def get_settings() -> Settings:
    """Return the cached Settings singleton."""
    return Settings()
