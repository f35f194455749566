"""AI Closer Agent - conducts the buyer qualification conversation."""

import logging

from realty_platform.agents.base import AgentResult, BaseAgent
from realty_platform.agents.prompts.ai_closer import AI_CLOSER_SYSTEM_PROMPT

logger = logging.getLogger(__name__)


class AiCloserAgent(BaseAgent):
    """Talks to a prospective buyer and steers toward qualifying details.

    State lives on the AiCloserSession row and is passed into each call;
    the agent itself is stateless between requests.
    """

    def __init__(self):
        super().__init__(agent_name="ai_closer", temperature=0.7)

    async def reply(self, history: list[dict], message: str) -> AgentResult:
        """Generate the assistant reply to ``message``.

        Args:
            history: Previous turns ``[{role, content, ...}]``, oldest first.
            message: The buyer's new message.

        Returns:
            AgentResult whose ``data`` is the reply text.
        """
        turns = [{"role": t["role"], "content": t["content"]} for t in history]
        turns.append({"role": "user", "content": message})

        result = await self.chat(turns=turns, system_instruction=AI_CLOSER_SYSTEM_PROMPT)
        if result.ok and not (result.data or "").strip():
            logger.warning("[%s] Empty reply after %d turns", self.agent_name, len(turns))
            return AgentResult.failure("Empty reply from model", latency_ms=result.latency_ms)
        return result
