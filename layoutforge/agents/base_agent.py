"""Base class for Pydantic AI agents that return raw model text."""

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any, Generic, TypeVar, cast

from pydantic import BaseModel
from pydantic_ai import Agent
from pydantic_ai.settings import ModelSettings

from layoutforge.config import settings
from layoutforge.core.retry import call_with_rate_limit_retry

logger = logging.getLogger(__name__)

InputT = TypeVar("InputT", bound=BaseModel)


class BaseAgent(ABC, Generic[InputT]):
    """Abstract base class for the text-returning model calls.

    The agents deliberately ask for plain text instead of a typed
    ``output_type``: the pipeline owns parsing, validation and repair of the
    reply, so the raw text must reach it untouched.

    Each agent should:
    1. Define the system_prompt property
    2. Implement _build_prompt to construct the user prompt
    3. Optionally override _build_user_content to attach binary parts
    4. Set deadline_seconds to bound the call client-side
    """

    # Model tier for environment-aware resolution (standard / fast)
    model_tier: str = "standard"
    # Explicit model override at the class level (bypasses tier resolution)
    model: str | None = None
    temperature: float = 0.7
    max_retries: int = settings.llm_max_retries
    service_name: str = "Generative model"

    def __init__(self, model_override: str | None = None) -> None:
        """Initialize the agent.

        Model resolution priority:
        1. model_override parameter (explicit runtime override)
        2. model class attribute (if set by subclass)
        3. settings.get_model(self.model_tier) (environment-aware tier fallback)
        """
        model_source = "tier_default"
        if model_override:
            self._model = model_override
            model_source = "runtime_override"
        elif self.model:
            self._model = self.model
            model_source = "class_override"
        else:
            self._model = settings.get_model(self.model_tier)
        self._agent: Agent[None, str] | None = None

        logger.info(
            "Agent initialized",
            extra={
                "agent": self.__class__.__name__,
                "model": self._model,
                "model_tier": self.model_tier,
                "model_source": model_source,
                "temperature": self.temperature,
            },
        )

    @property
    def agent(self) -> Agent[None, str]:
        """Lazily initialize and return the Pydantic AI agent."""
        if self._agent is None:
            self._agent = cast(
                Agent[None, str],
                Agent(
                    model=self._model,
                    output_type=str,
                    system_prompt=self.system_prompt,
                    retries=self.max_retries,
                ),
            )
        agent = self._agent
        assert agent is not None
        return agent

    @property
    @abstractmethod
    def system_prompt(self) -> str:
        """System prompt for the agent."""
        pass

    @property
    @abstractmethod
    def deadline_seconds(self) -> float:
        """Client-side wall-clock ceiling for one run, retries included."""
        pass

    @abstractmethod
    def _build_prompt(self, input_data: InputT) -> str:
        """Build the user prompt from input data."""
        pass

    def _build_user_content(self, input_data: InputT) -> str | Sequence[Any]:
        """Build the full user message; text only unless overridden."""
        return self._build_prompt(input_data)

    async def run(self, input_data: InputT) -> str:
        """Run the agent and return the model's raw reply text.

        Raises:
            UpstreamStatusError: the model endpoint answered with a non-success
                status (after rate-limit retries were exhausted for 429s).
            UpstreamTimeoutError: the deadline expired; the call is cancelled.
        """
        agent_name = self.__class__.__name__
        logger.info(
            "Agent run started",
            extra={
                "agent": agent_name,
                "input_type": type(input_data).__name__,
                "model": self._model,
            },
        )

        user_content = self._build_user_content(input_data)
        prompt_length = (
            len(user_content)
            if isinstance(user_content, str)
            else sum(len(part) for part in user_content if isinstance(part, str))
        )
        logger.info(
            "Prompt built, sending to LLM",
            extra={
                "agent": agent_name,
                "prompt_length": prompt_length,
                "model": self._model,
            },
        )

        model_settings = ModelSettings(temperature=self.temperature)

        async def _call() -> Any:
            return await self.agent.run(user_content, model_settings=model_settings)

        t0 = time.perf_counter()
        result = await call_with_rate_limit_retry(
            _call,
            service=self.service_name,
            deadline_seconds=self.deadline_seconds,
            log_context={"agent": agent_name, "model": self._model},
        )
        elapsed = time.perf_counter() - t0

        usage = result.usage()
        logger.info(
            "Agent run completed",
            extra={
                "agent": agent_name,
                "duration_s": round(elapsed, 2),
                "input_tokens": getattr(usage, "input_tokens", None),
                "output_tokens": getattr(usage, "output_tokens", None),
                "total_tokens": getattr(usage, "total_tokens", None),
            },
        )

        output = result.output
        return output if isinstance(output, str) else str(output or "")
