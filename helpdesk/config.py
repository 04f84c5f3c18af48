"""
Helpdesk Intelligence - Configuration Management
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings"""

    # FastAPI
    fastapi_env: str = "development"
    fastapi_host: str = "0.0.0.0"
    fastapi_port: int = 8000

    # LLM
    openai_api_key: str = ""
    openai_model: str = "gpt-3.5-turbo"
    openai_base_url: str = "https://api.openai.com/v1"
    llm_timeout_seconds: float = 10.0
    llm_max_retries: int = 0
    llm_max_tokens: int = 150
    llm_temperature: float = 0.1

    # Data store
    data_store: str = "supabase"  # supabase | memory
    supabase_url: str = ""
    supabase_key: str = ""

    # Identity recorded on automatic actions (escalation)
    system_actor_id: int = 1

    # Insight confidences
    ai_categorization_confidence: float = 0.85
    ai_priority_confidence: float = 0.78
    ai_sentiment_confidence: float = 0.92
    offline_categorization_confidence: float = 0.75
    offline_priority_confidence: float = 0.70
    offline_sentiment_confidence: float = 0.80
    category_confidence_threshold: float = 0.7

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False
    )

    @property
    def llm_configured(self) -> bool:
        """True when language-model credentials are present"""
        return bool(self.openai_api_key)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
