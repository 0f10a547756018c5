from pydantic_settings import BaseSettings
from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from pathlib import Path
import json
import os


SETTINGS_FILE = Path(__file__).parent.parent.parent / "settings.json"

PROVIDERS = ("openai", "deepseek", "gemini")

# Providers that speak the chat-completions REST shape and need a base URL
REST_PROVIDERS = ("openai", "deepseek")


def load_settings_from_file() -> dict:
    """Load settings from JSON file if exists."""
    if SETTINGS_FILE.exists():
        try:
            with open(SETTINGS_FILE) as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError):
            pass
    return {}


def save_settings_to_file(settings: dict) -> None:
    """Save settings to JSON file."""
    with open(SETTINGS_FILE, "w") as f:
        json.dump(settings, f, indent=2)


class ProviderConfig(BaseModel):
    """Connection details for one LLM provider."""

    model_config = ConfigDict(frozen=True)

    base_url: str = ""
    model: str = ""
    api_key: str = ""


class Settings(BaseSettings):
    # Document store
    database_url: str = "sqlite:///./study_assistant.db"
    storage_dir: str = "./storage"
    user_id: str = "local"

    # Vector index
    chroma_dir: str = "./chroma_db"
    embedding_model: str = "text-embedding-3-small"
    embedding_max_chars: int = 8000

    # Providers
    active_provider: str = "deepseek"

    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"

    deepseek_api_key: str = ""
    deepseek_base_url: str = "https://api.deepseek.com/v1"
    deepseek_model: str = "deepseek-chat"

    gemini_api_key: str = ""
    gemini_base_url: str = ""
    gemini_model: str = "gemini-2.5-flash"

    # Chat
    system_prompt: str = ""
    context_max_chars: int = 8000

    # Server
    backend_port: int = 8000
    cors_origins: List[str] = ["http://localhost:5173"]
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"

    def __init__(self, **kwargs):
        # Load from settings file first
        file_settings = load_settings_from_file()

        # Merge: kwargs > file_settings > env vars (handled by pydantic)
        merged = {**file_settings, **kwargs}

        super().__init__(**merged)

        # Handle CORS_ORIGINS as JSON string from env
        cors_env = os.getenv("CORS_ORIGINS")
        if cors_env:
            try:
                self.cors_origins = json.loads(cors_env)
            except json.JSONDecodeError:
                pass

    def provider_config(self, provider: Optional[str] = None) -> ProviderConfig:
        """Build the immutable config for a provider (defaults to the active one)."""
        name = provider or self.active_provider
        if name not in PROVIDERS:
            raise ValueError(f"Unknown provider: {name}")
        return ProviderConfig(
            base_url=getattr(self, f"{name}_base_url"),
            model=getattr(self, f"{name}_model"),
            api_key=getattr(self, f"{name}_api_key"),
        )

    def get_effective_settings(self) -> dict:
        """Get current effective settings (for API response)."""
        return {
            "database_url": self.database_url,
            "storage_dir": self.storage_dir,
            "active_provider": self.active_provider,
            "openai_api_key": self._mask_key(self.openai_api_key),
            "openai_base_url": self.openai_base_url,
            "openai_model": self.openai_model,
            "deepseek_api_key": self._mask_key(self.deepseek_api_key),
            "deepseek_base_url": self.deepseek_base_url,
            "deepseek_model": self.deepseek_model,
            "gemini_api_key": self._mask_key(self.gemini_api_key),
            "gemini_model": self.gemini_model,
            "system_prompt": self.system_prompt,
            "context_max_chars": self.context_max_chars,
            "embedding_model": self.embedding_model,
        }

    def _mask_key(self, key: str) -> str:
        """Mask a secret key for display."""
        if not key:
            return ""
        if len(key) <= 8:
            return "*" * len(key)
        return key[:4] + "*" * (len(key) - 8) + key[-4:]


def reload_settings() -> "Settings":
    """Reload settings from file and environment."""
    global settings
    settings = Settings()
    return settings


settings = Settings()
