"""Search-grounded provider agent backed by the Gemini API."""

import logging
import re
from typing import Any, Optional

from google import genai
from google.genai import types

from study_assistant.agents.base import ProviderAgent
from study_assistant.agents.prompts import build_user_prompt, resolve_system_prompt
from study_assistant.core.config import ProviderConfig
from study_assistant.core.errors import ProviderHTTPError, ProviderRateLimitError
from study_assistant.schemas.chat import GenerationResult, GroundingChunk, GroundingMetadata

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"

NO_TEXT = "No response text."

MODEL_ALIASES = {
    "gemini flash": "gemini-2.5-flash",
    "gemini pro": "gemini-2.5-pro",
}

RETRY_IN_PATTERN = re.compile(r"retry in ([\d.]+)\s*s", re.IGNORECASE)
RETRY_DELAY_PATTERN = re.compile(r"^([\d.]+)s$")


def is_rate_limited(error: Exception) -> bool:
    """True for HTTP 429 or a RESOURCE_EXHAUSTED / quota signal."""
    if getattr(error, "code", None) == 429:
        return True
    if getattr(error, "status", None) == "RESOURCE_EXHAUSTED":
        return True
    return "quota" in str(error).lower()


SEARCH_FAILURE_HINTS = ("search", "tool", "grounding")


def is_search_tool_failure(error: Exception) -> bool:
    """True for a 400 rejection that names the search tool or grounding."""
    if getattr(error, "code", None) != 400:
        return False
    text = str(error).lower()
    return any(hint in text for hint in SEARCH_FAILURE_HINTS)


def extract_retry_after(error: Exception) -> Optional[float]:
    """Pull a retry delay in seconds out of a quota error, if the provider sent one."""
    details = getattr(error, "details", None)
    if isinstance(details, dict):
        payload = details.get("error", details)
        for item in payload.get("details", None) or []:
            delay = item.get("retryDelay") if isinstance(item, dict) else None
            match = RETRY_DELAY_PATTERN.match(delay) if isinstance(delay, str) else None
            if match:
                return float(match.group(1))

    match = RETRY_IN_PATTERN.search(str(error))
    if match:
        return float(match.group(1))
    return None


def extract_grounding(response: Any) -> Optional[GroundingMetadata]:
    """Convert the first candidate's grounding metadata to our schema."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None

    metadata = getattr(candidates[0], "grounding_metadata", None)
    if metadata is None:
        return None

    chunks = []
    for chunk in getattr(metadata, "grounding_chunks", None) or []:
        web = getattr(chunk, "web", None)
        chunks.append(GroundingChunk(
            uri=getattr(web, "uri", None) if web else None,
            title=getattr(web, "title", None) if web else None,
        ))

    return GroundingMetadata(
        grounding_chunks=chunks,
        web_search_queries=list(getattr(metadata, "web_search_queries", None) or []),
    )


class SearchGroundedAgent(ProviderAgent):
    """Gemini generation with optional Google Search grounding."""

    def __init__(self, name: str, config: ProviderConfig, client: Any = None):
        self.name = name
        model = (config.model or DEFAULT_MODEL).strip()
        self.model = MODEL_ALIASES.get(model.lower(), model)
        self.client = client or genai.Client(api_key=config.api_key)

    async def _call(self, prompt: str, system_prompt: str, use_search: bool):
        request_config = types.GenerateContentConfig(
            system_instruction=system_prompt,
            tools=[types.Tool(google_search=types.GoogleSearch())] if use_search else None,
        )
        return await self.client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config=request_config,
        )

    def _raise_translated(self, error: Exception):
        """Re-raise a provider failure as one of our error kinds where it maps."""
        if is_rate_limited(error):
            raise ProviderRateLimitError(
                self.name,
                getattr(error, "code", None) or 429,
                str(error),
                retry_after=extract_retry_after(error),
            ) from error
        code = getattr(error, "code", None)
        if isinstance(code, int):
            raise ProviderHTTPError(
                self.name, code, getattr(error, "message", None) or str(error)
            ) from error
        raise error

    async def generate(
        self,
        question: str,
        context: str,
        use_search: bool = False,
        system_prompt: Optional[str] = None,
    ) -> GenerationResult:
        prompt = build_user_prompt(question, context)
        instruction = resolve_system_prompt(system_prompt)

        try:
            response = await self._call(prompt, instruction, use_search)
        except Exception as e:
            if not use_search or is_rate_limited(e) or not is_search_tool_failure(e):
                self._raise_translated(e)

            # Only a search tool failure gets one retry without the tool
            logger.warning("%s search call failed (%s); retrying without search", self.name, e)
            try:
                response = await self._call(prompt, instruction, use_search=False)
            except Exception as retry_error:
                self._raise_translated(retry_error)
            use_search = False

        return GenerationResult(
            text=getattr(response, "text", None) or NO_TEXT,
            grounding_metadata=extract_grounding(response) if use_search else None,
        )
