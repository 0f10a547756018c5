from abc import ABC, abstractmethod
from typing import Optional

from study_assistant.schemas.chat import GenerationResult


class ProviderAgent(ABC):
    """One LLM provider family behind the common dispatch interface."""

    name: str = "provider"

    @abstractmethod
    async def generate(
        self,
        question: str,
        context: str,
        use_search: bool = False,
        system_prompt: Optional[str] = None,
    ) -> GenerationResult:
        """
        Answer a question grounded in notes context.

        Args:
            question: User's question
            context: Assembled notes context, may be empty
            use_search: Ask for provider-side web search where supported
            system_prompt: Custom system prompt, default used when empty

        Returns:
            GenerationResult with answer text and optional grounding metadata
        """
        ...
