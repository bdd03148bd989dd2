"""Configuration management for fightclub."""

import os

from pydantic import BaseModel


class Config(BaseModel):
    """Application configuration."""

    # Match rules
    max_turns: int = 30
    decision_timeout: float = 5.0  # Seconds each side gets to decide a turn
    max_energy: int = 5
    knockouts_to_win: int = 3
    weakness_bonus: int = 20
    history_size: int = 5  # Recent turns shown to decision providers

    # Ratings
    k_factor: int = 32
    default_rating: int = 1200
    min_rating: int = 100  # Floor applied by the result stores

    # Persistence
    database_url: str = "sqlite:///fightclub.db"

    # Language-model decision provider
    openai_api_key: str | None = None
    llm_model: str = "gpt-4o-mini"
    llm_base_url: str = "https://api.openai.com/v1"
    llm_max_tokens: int = 300
    llm_temperature: float = 0.9

    @classmethod
    def from_env(cls) -> "Config":
        """Build a config from FIGHTCLUB_* environment variables."""
        overrides: dict = {}
        env_fields = {
            "FIGHTCLUB_MAX_TURNS": "max_turns",
            "FIGHTCLUB_DECISION_TIMEOUT": "decision_timeout",
            "FIGHTCLUB_DATABASE_URL": "database_url",
            "FIGHTCLUB_LLM_MODEL": "llm_model",
            "FIGHTCLUB_LLM_BASE_URL": "llm_base_url",
            "OPENAI_API_KEY": "openai_api_key",
        }
        for env_name, field in env_fields.items():
            value = os.getenv(env_name)
            if value:
                overrides[field] = value
        return cls(**overrides)


# Global config instance
config = Config.from_env()
