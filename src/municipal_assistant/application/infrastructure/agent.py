"""PydanticAI agent used as the free-text generation service."""

from __future__ import annotations

from openai import AsyncAzureOpenAI, AsyncOpenAI
from pydantic_ai import Agent
from pydantic_ai.exceptions import ModelHTTPError, UnexpectedModelBehavior
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider

from municipal_assistant.application.exceptions import GenerationError
from municipal_assistant.config import Settings, get_settings

# ---------------------------------------------------------------------------
# Agent factory
# ---------------------------------------------------------------------------


def create_agent(settings: Settings | None = None, instrument: bool = False) -> Agent[None, str]:
    """Create the text-generation agent.

    The agent carries no system prompt: every turn sends one fully composed
    prompt (see ``application.prompt``).

    Args:
        settings: Optional Settings override (defaults to get_settings()).
        instrument: Emit OpenTelemetry spans for model calls.
    """
    s = settings or get_settings()

    if s.llm_provider.lower() == "openai":
        client: AsyncOpenAI = AsyncOpenAI(api_key=s.openai_api_key)
        model_name = s.openai_model
    else:
        client = AsyncAzureOpenAI(
            api_key=s.azure_openai_api_key,
            azure_endpoint=s.azure_openai_endpoint,
            api_version=s.azure_openai_api_version,
        )
        model_name = s.azure_openai_chat_deployment

    model = OpenAIChatModel(model_name, provider=OpenAIProvider(openai_client=client))
    return Agent(model=model, output_type=str, instrument=instrument)


# ---------------------------------------------------------------------------
# Generator adapter
# ---------------------------------------------------------------------------


class AgentTextGenerator:
    """Adapts a PydanticAI agent to the ``generate(prompt) -> str`` contract."""

    def __init__(self, agent: Agent[None, str]) -> None:
        self.agent = agent

    async def generate(self, prompt: str) -> str:
        """Run the agent on *prompt* and return its text.

        Raises:
            GenerationError: The model call failed or produced no text.
        """
        try:
            result = await self.agent.run(prompt)
        except (ModelHTTPError, UnexpectedModelBehavior) as exc:
            raise GenerationError(f"Text generation failed: {exc}") from exc

        text = result.output
        if not text or not text.strip():
            raise GenerationError("Text generation returned an empty response")
        return text
