"""Qualification Agent - scores a buyer from the AI closer transcript."""

import json
import logging
import re

from pydantic import ValidationError

from realty_platform.agents.base import BaseAgent
from realty_platform.agents.prompts.ai_closer import QUALIFICATION_PROMPT
from realty_platform.domain.enums import QualificationOutcome
from realty_platform.domain.schemas import ExtractedNeeds, QualificationResult
from realty_platform.infra.gemini_client import response_schema_for

logger = logging.getLogger(__name__)

# Neutral result used when the model answers with something unparseable
FALLBACK_SCORE = 50

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class QualificationError(Exception):
    """Raised when the qualification provider call itself fails."""


def fallback_qualification() -> QualificationResult:
    """Return the neutral qualification used for unparseable responses."""
    return QualificationResult(
        qualification_score=FALLBACK_SCORE,
        extracted_needs=ExtractedNeeds(),
        outcome=QualificationOutcome.NEEDS_FOLLOWUP,
    )


def parse_qualification(raw: str | None) -> QualificationResult:
    """Parse model output into a QualificationResult.

    Tolerates prose around the JSON object. Anything that is not a JSON
    object matching the schema yields ``fallback_qualification()``.
    """
    match = _JSON_OBJECT.search(raw or "")
    if not match:
        logger.warning("Qualification response had no JSON object: %.200s", raw)
        return fallback_qualification()
    try:
        data = json.loads(match.group(0))
        # Models often send null for the needs object or its list fields
        if data.get("extractedNeeds") is None:
            data["extractedNeeds"] = {}
        needs = data["extractedNeeds"]
        if isinstance(needs, dict):
            for key in ("location", "propertyType", "features"):
                if needs.get(key) is None:
                    needs.pop(key, None)
        return QualificationResult.model_validate(data)
    except (json.JSONDecodeError, AttributeError, ValidationError) as exc:
        logger.warning("Qualification response failed validation: %s", exc)
        return fallback_qualification()


class QualificationAgent(BaseAgent):
    """Classifies a buyer as qualified / not_qualified / needs_followup."""

    def __init__(self):
        super().__init__(agent_name="qualification", temperature=0.1)

    async def qualify(self, history: list[dict]) -> QualificationResult:
        """Qualify the buyer from the full conversation.

        Raises:
            QualificationError: the provider call failed. Callers treat this
                as "skip qualification this turn".
        """
        conversation = "\n".join(f"{t['role']}: {t['content']}" for t in history)
        prompt = QUALIFICATION_PROMPT.replace("{conversation}", conversation)

        result = await self.generate(
            prompt=prompt,
            json_mode=True,
            response_schema=response_schema_for(QualificationResult),
        )
        if not result.ok:
            raise QualificationError(result.error)

        qualification = parse_qualification(result.data)
        logger.info(
            "[%s] Buyer qualified: score=%s, outcome=%s",
            self.agent_name,
            qualification.qualification_score,
            qualification.outcome.value,
        )
        return qualification
