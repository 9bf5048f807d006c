import os
from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


def _read_key_file(path: str | None) -> str | None:
    try:
        if path and os.path.isfile(path):
            with open(path, "r", encoding="utf-8") as f:
                return f.read().strip() or None
    except OSError:
        return None
    return None


class Settings(BaseSettings):
    ENV: str = "dev"  # dev | staging | prod | test
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # Narrative provider (Google AI Studio generateContent API).
    # No key => rule-engine only; never an error.
    GOOGLE_AI_API_KEY: str | None = None
    GOOGLE_AI_API_KEY_FILE: str = "/run/secrets/google_ai_api_key"
    NARRATIVE_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta/models"
    NARRATIVE_MODEL: str = "gemma-3-27b-it"
    NARRATIVE_TIMEOUT_SEC: float = 15.0
    NARRATIVE_ENABLED: bool = True

    # Sampling knobs only affect wording, never the computed numbers
    INTERVENTION_TEMPERATURE: float = 0.95
    INTERVENTION_TOP_P: float = 0.95
    INTERVENTION_TOP_K: int = 40
    INTERVENTION_MAX_TOKENS: int = 300
    INSIGHTS_TEMPERATURE: float = 0.85
    INSIGHTS_TOP_P: float = 0.9
    INSIGHTS_TOP_K: int = 30
    INSIGHTS_MAX_TOKENS: int = 500

    RECENT_EXPENSES_WINDOW: int = 20
    CURRENCY_PREFIX: str = "Rs."

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    def provider_key(self) -> str | None:
        """Resolve the provider credential: env var first, then the secret file."""
        key = (self.GOOGLE_AI_API_KEY or "").strip()
        if key:
            return key
        return _read_key_file(self.GOOGLE_AI_API_KEY_FILE)

    def narrative_configured(self) -> bool:
        return bool(self.NARRATIVE_ENABLED and self.provider_key())


settings = Settings()
