from typing import Optional
import logging

from study_assistant.agents.base import ProviderAgent
from study_assistant.agents.prompts import build_demo_response
from study_assistant.schemas.chat import GenerationResult

logger = logging.getLogger(__name__)


class DemoAgent(ProviderAgent):
    """Offline stand-in used when the selected provider has no API key."""

    name = "demo"

    def __init__(self, provider: str = ""):
        self.provider = provider

    async def generate(
        self,
        question: str,
        context: str,
        use_search: bool = False,
        system_prompt: Optional[str] = None,
    ) -> GenerationResult:
        logger.info("No API key for provider %r, answering in demo mode", self.provider)
        return GenerationResult(text=build_demo_response(context))
