from typing import Optional
import logging

import httpx
import openai
from openai import AsyncOpenAI

from study_assistant.agents.base import ProviderAgent
from study_assistant.agents.prompts import build_user_prompt, resolve_system_prompt
from study_assistant.core.config import ProviderConfig
from study_assistant.core.errors import (
    ConfigurationError,
    ProviderHTTPError,
    ProviderRateLimitError,
)
from study_assistant.schemas.chat import GenerationResult

logger = logging.getLogger(__name__)

NO_CONTENT = "No response content."

CHAT_COMPLETIONS_SUFFIX = "/chat/completions"


def normalize_base_url(base_url: str) -> str:
    """Accept either the API root or the full chat-completions endpoint."""
    url = base_url.strip().rstrip("/")
    if url.endswith(CHAT_COMPLETIONS_SUFFIX):
        url = url[: -len(CHAT_COMPLETIONS_SUFFIX)]
    return url


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


class OpenAICompatibleAgent(ProviderAgent):
    """Chat-completions REST providers (OpenAI, DeepSeek, ...)."""

    def __init__(
        self,
        name: str,
        config: ProviderConfig,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        if not config.base_url:
            raise ConfigurationError(f"{name} requires a base URL. Configure it in Settings.")
        if not config.model:
            raise ConfigurationError(f"{name} requires a model name. Configure it in Settings.")

        self.name = name
        self.model = config.model

        # No automatic retries; failures surface to the caller immediately
        client_config = {
            "api_key": config.api_key,
            "base_url": normalize_base_url(config.base_url),
            "max_retries": 0,
        }
        if http_client is not None:
            client_config["http_client"] = http_client
        self.client = AsyncOpenAI(**client_config)

    async def generate(
        self,
        question: str,
        context: str,
        use_search: bool = False,
        system_prompt: Optional[str] = None,
    ) -> GenerationResult:
        if use_search:
            logger.debug("%s has no built-in web search; ignoring search flag", self.name)

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": resolve_system_prompt(system_prompt)},
                    {"role": "user", "content": build_user_prompt(question, context)},
                ],
            )
        except openai.RateLimitError as e:
            raise ProviderRateLimitError(
                self.name,
                e.status_code,
                e.response.text,
                retry_after=_parse_retry_after(e.response.headers.get("retry-after")),
            ) from e
        except openai.APIStatusError as e:
            raise ProviderHTTPError(self.name, e.status_code, e.response.text) from e

        choices = getattr(response, "choices", None) or []
        content = choices[0].message.content if choices and choices[0].message else None
        return GenerationResult(text=content or NO_CONTENT)
