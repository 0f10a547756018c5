"""Route a chat request to the agent for the selected provider."""

import logging
from typing import Callable, Dict, Optional, Type

from study_assistant.agents.base import ProviderAgent
from study_assistant.agents.demo_agent import DemoAgent
from study_assistant.agents.gemini_agent import SearchGroundedAgent
from study_assistant.agents.openai_compatible import OpenAICompatibleAgent
from study_assistant.core.config import ProviderConfig
from study_assistant.core.errors import ConfigurationError
from study_assistant.schemas.chat import GenerationResult

logger = logging.getLogger(__name__)

# Adding a provider means adding one entry here
PROVIDER_FAMILIES: Dict[str, Type[ProviderAgent]] = {
    "openai": OpenAICompatibleAgent,
    "deepseek": OpenAICompatibleAgent,
    "gemini": SearchGroundedAgent,
}

AgentFactory = Callable[[str, ProviderConfig], ProviderAgent]


def get_agent(provider: str, config: ProviderConfig, **client_kwargs) -> ProviderAgent:
    """Pick the agent for a provider.

    A missing API key selects demo mode; other missing required fields raise
    ConfigurationError before any network call.
    """
    agent_cls = PROVIDER_FAMILIES.get(provider)
    if agent_cls is None:
        raise ConfigurationError(
            f"Unknown provider: {provider}. Supported: {sorted(PROVIDER_FAMILIES)}"
        )

    if not config.api_key:
        return DemoAgent(provider)

    return agent_cls(provider, config, **client_kwargs)


async def generate_response(
    question: str,
    context: str,
    provider: str,
    config: ProviderConfig,
    use_search: bool = False,
    system_prompt: Optional[str] = None,
    agent_factory: AgentFactory = get_agent,
) -> GenerationResult:
    """Answer a question with the selected provider. Errors are logged and re-raised."""
    agent = agent_factory(provider, config)
    logger.info(
        "Dispatching to %s (agent=%s, search=%s, context_chars=%d)",
        provider, agent.name, use_search, len(context),
    )

    try:
        return await agent.generate(
            question, context, use_search=use_search, system_prompt=system_prompt
        )
    except Exception as e:
        logger.error("Provider %s failed: %s", provider, e)
        raise
