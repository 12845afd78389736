"""Tests for the agent module — factory and generator adapter."""

from __future__ import annotations

from unittest.mock import AsyncMock, Mock

import pytest
from pydantic_ai import Agent
from pydantic_ai.exceptions import ModelHTTPError
from pydantic_ai.messages import ModelMessage, ModelResponse, TextPart
from pydantic_ai.models.function import AgentInfo, FunctionModel

from municipal_assistant.application.exceptions import GenerationError
from municipal_assistant.application.infrastructure.agent import AgentTextGenerator, create_agent
from municipal_assistant.config import Settings
from municipal_assistant.domain.protocols import ITextGenerator


def _echo(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
    prompt = messages[-1].parts[-1].content
    return ModelResponse(parts=[TextPart(content=f"echo: {prompt}")])


def _mock_agent(output: str) -> AsyncMock:
    agent = AsyncMock()
    run_result = Mock()
    run_result.output = output
    agent.run.return_value = run_result
    return agent


class TestAgentTextGenerator:
    async def test_returns_model_text(self):
        generator = AgentTextGenerator(Agent(FunctionModel(_echo), output_type=str))
        assert await generator.generate("नमस्ते") == "echo: नमस्ते"

    async def test_passes_prompt_to_agent(self):
        agent = _mock_agent("ok")
        await AgentTextGenerator(agent).generate("full prompt")
        assert agent.run.call_args[0][0] == "full prompt"

    async def test_empty_output_raises(self):
        with pytest.raises(GenerationError, match="empty"):
            await AgentTextGenerator(_mock_agent("   ")).generate("prompt")

    async def test_http_error_raises_generation_error(self):
        agent = AsyncMock()
        agent.run.side_effect = ModelHTTPError(
            status_code=503, model_name="gpt-4o-mini", body={"message": "overloaded"}
        )
        with pytest.raises(GenerationError):
            await AgentTextGenerator(agent).generate("prompt")

    def test_satisfies_protocol(self):
        assert isinstance(AgentTextGenerator(_mock_agent("x")), ITextGenerator)


class TestCreateAgent:
    def test_azure_provider(self):
        settings = Settings(
            _env_file=None,
            llm_provider="azure",
            azure_openai_api_key="k",
            azure_openai_endpoint="https://ep.openai.azure.com/",
        )
        assert isinstance(create_agent(settings), Agent)

    def test_openai_provider(self):
        settings = Settings(_env_file=None, llm_provider="openai", openai_api_key="sk-test")
        assert isinstance(create_agent(settings), Agent)
