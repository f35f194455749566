"""Base agent class for the AI closer agents.

Every agent (the conversational closer and the qualifier) inherits from
BaseAgent, which provides:

- Gemini model access via the infra.gemini_client wrapper
- A standard AgentResult return type (Result pattern)
- Latency measurement and token tracking in the logs
- Multi-turn chat over stored ``{role, content}`` turns
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)

# Hard limit on a single provider call
GENERATION_TIMEOUT_SECONDS = 120


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------

@dataclass
class AgentResult:
    """Standard result type for all agent operations.

    Every agent call returns an AgentResult instead of raising.
    Callers check ``result.ok`` to determine success or failure.

    Attributes:
        ok: True if the operation succeeded.
        data: The response payload (usually the response text).
        error: Human-readable error description when ``ok`` is False.
        tokens_used: Total tokens consumed (prompt + completion).
        latency_ms: Wall-clock time for the operation in milliseconds.
    """

    ok: bool
    data: Any = None
    error: Optional[str] = None
    tokens_used: int = 0
    latency_ms: int = 0

    @classmethod
    def success(
        cls,
        data: Any,
        tokens_used: int = 0,
        latency_ms: int = 0,
    ) -> "AgentResult":
        """Create a successful result."""
        return cls(ok=True, data=data, tokens_used=tokens_used, latency_ms=latency_ms)

    @classmethod
    def failure(cls, error: str, latency_ms: int = 0) -> "AgentResult":
        """Create a failure result."""
        return cls(ok=False, error=error, latency_ms=latency_ms)


def _token_count(response) -> int:
    """Sum prompt and completion tokens from a Gemini response, if reported."""
    usage = getattr(response, "usage_metadata", None)
    if not usage:
        return 0
    prompt_tokens = getattr(usage, "prompt_token_count", 0) or 0
    completion_tokens = getattr(usage, "candidates_token_count", 0) or 0
    return prompt_tokens + completion_tokens


# ---------------------------------------------------------------------------
# Base agent
# ---------------------------------------------------------------------------

class BaseAgent:
    """Base class for the AI closer agents.

    Example::

        class SummaryAgent(BaseAgent):
            def __init__(self):
                super().__init__(agent_name="summary")

            async def summarise(self, transcript: str) -> AgentResult:
                return await self.generate(
                    prompt=f"Summarise this call: {transcript}",
                    system_instruction="You are a real estate sales assistant.",
                )
    """

    def __init__(
        self,
        agent_name: str,
        model_name: Optional[str] = None,
        temperature: float = 0.7,
    ):
        """Initialise the agent.

        Args:
            agent_name: A short, unique name for this agent (used in logs).
            model_name: The Gemini model identifier; ``None`` uses the
                configured ``gemini_model``.
            temperature: Generation temperature (0.0-1.0).
        """
        self.agent_name = agent_name
        self.model_name = model_name
        self.temperature = temperature

    # ------------------------------------------------------------------
    # Core generation
    # ------------------------------------------------------------------

    async def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        json_mode: bool = False,
        response_schema: dict | None = None,
    ) -> AgentResult:
        """Generate a single-turn response from Gemini.

        Args:
            prompt: The user prompt to send.
            system_instruction: Optional system instruction.
            json_mode: If True the model is instructed to return valid JSON.
            response_schema: Optional Gemini response schema (JSON mode only).

        Returns:
            An ``AgentResult`` with the response text in ``data``.
        """
        start_time = time.time()
        try:
            from realty_platform.infra.gemini_client import get_model

            model = get_model(
                model_name=self.model_name,
                temperature=self.temperature,
                json_mode=json_mode,
                response_schema=response_schema,
                system_instruction=system_instruction,
            )

            response = await asyncio.wait_for(
                model.generate_content_async(prompt),
                timeout=GENERATION_TIMEOUT_SECONDS,
            )
            latency_ms = int((time.time() - start_time) * 1000)
            tokens_used = _token_count(response)

            logger.info(
                "[%s] Generation succeeded: tokens=%d, latency=%dms",
                self.agent_name,
                tokens_used,
                latency_ms,
            )
            return AgentResult.success(
                data=response.text,
                tokens_used=tokens_used,
                latency_ms=latency_ms,
            )

        except Exception as exc:
            latency_ms = int((time.time() - start_time) * 1000)
            logger.error(
                "[%s] Generation failed after %dms: %s",
                self.agent_name,
                latency_ms,
                exc,
            )
            return AgentResult.failure(str(exc), latency_ms=latency_ms)

    # ------------------------------------------------------------------
    # Multi-turn chat
    # ------------------------------------------------------------------

    async def chat(
        self,
        turns: list[dict],
        system_instruction: Optional[str] = None,
    ) -> AgentResult:
        """Conduct a multi-turn conversation with Gemini.

        Args:
            turns: Ordered ``{role, content}`` dicts with role ``"user"`` or
                ``"assistant"``. The **last** turn is sent as the new user
                message; everything before it is the chat history.
            system_instruction: Optional system instruction.

        Returns:
            An ``AgentResult`` with the model's reply text in ``data``.
        """
        start_time = time.time()
        try:
            from realty_platform.infra.gemini_client import get_model, to_gemini_history

            if not turns:
                return AgentResult.failure("No messages provided for chat.")

            model = get_model(
                model_name=self.model_name,
                temperature=self.temperature,
                system_instruction=system_instruction,
            )

            chat_session = model.start_chat(history=to_gemini_history(turns[:-1]))
            user_text = turns[-1].get("content", "")

            response = await asyncio.wait_for(
                chat_session.send_message_async(user_text),
                timeout=GENERATION_TIMEOUT_SECONDS,
            )
            latency_ms = int((time.time() - start_time) * 1000)
            tokens_used = _token_count(response)

            logger.info(
                "[%s] Chat succeeded: tokens=%d, latency=%dms, turns=%d",
                self.agent_name,
                tokens_used,
                latency_ms,
                len(turns),
            )
            return AgentResult.success(
                data=response.text,
                tokens_used=tokens_used,
                latency_ms=latency_ms,
            )

        except Exception as exc:
            latency_ms = int((time.time() - start_time) * 1000)
            logger.error(
                "[%s] Chat failed after %dms: %s",
                self.agent_name,
                latency_ms,
                exc,
            )
            return AgentResult.failure(str(exc), latency_ms=latency_ms)
