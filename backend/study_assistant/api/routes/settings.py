from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import Optional
import logging

import study_assistant.core.config as config_module
from study_assistant.core.config import (
    PROVIDERS,
    save_settings_to_file,
    reload_settings,
    load_settings_from_file,
)
from study_assistant.core.errors import ConfigurationError
from study_assistant.db.database import get_database
from study_assistant.services.provider_dispatch import get_agent

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])


class SettingsUpdate(BaseModel):
    active_provider: Optional[str] = None
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    openai_model: Optional[str] = None
    deepseek_api_key: Optional[str] = None
    deepseek_base_url: Optional[str] = None
    deepseek_model: Optional[str] = None
    gemini_api_key: Optional[str] = None
    gemini_model: Optional[str] = None
    system_prompt: Optional[str] = None
    context_max_chars: Optional[int] = None


class SettingsResponse(BaseModel):
    database_url: str
    storage_dir: str
    active_provider: str
    openai_api_key: str  # masked
    openai_base_url: str
    openai_model: str
    deepseek_api_key: str  # masked
    deepseek_base_url: str
    deepseek_model: str
    gemini_api_key: str  # masked
    gemini_model: str
    system_prompt: str
    context_max_chars: int
    embedding_model: str


class TestConnectionResponse(BaseModel):
    store: bool
    provider: str
    provider_ready: bool
    demo_mode: bool
    errors: dict


@router.get("", response_model=SettingsResponse)
async def get_settings():
    """Retrieve current settings with masked sensitive values."""
    return config_module.settings.get_effective_settings()


@router.post("", response_model=SettingsResponse)
async def update_settings(update: SettingsUpdate):
    """Update settings and save to local file."""
    changes = update.model_dump(exclude_none=True)

    if "active_provider" in changes and changes["active_provider"] not in PROVIDERS:
        raise HTTPException(
            status_code=400,
            detail=f"active_provider must be one of {list(PROVIDERS)}",
        )
    if "context_max_chars" in changes and changes["context_max_chars"] <= 0:
        raise HTTPException(status_code=400, detail="context_max_chars must be positive")

    # Load existing settings and update only provided fields
    current = load_settings_from_file()
    current.update(changes)
    save_settings_to_file(current)

    new_settings = reload_settings()
    logger.info("Settings updated: %s", sorted(changes))

    return new_settings.get_effective_settings()


@router.post("/test", response_model=TestConnectionResponse)
async def test_connections():
    """Check the document store and the active provider's configuration."""
    settings = config_module.settings
    errors = {}
    store_ok = False

    try:
        db = await get_database()
        await db.fetch_one("SELECT 1")
        store_ok = True
    except Exception as e:
        errors["store"] = str(e)

    provider = settings.active_provider
    provider_ready = False
    demo_mode = False
    try:
        agent = get_agent(provider, settings.provider_config(provider))
        demo_mode = agent.name == "demo"
        provider_ready = not demo_mode
    except (ConfigurationError, ValueError) as e:
        errors["provider"] = str(e)

    return TestConnectionResponse(
        store=store_ok,
        provider=provider,
        provider_ready=provider_ready,
        demo_mode=demo_mode,
        errors=errors,
    )
