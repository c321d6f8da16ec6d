"""Natural-language interpretations of computed readings.

When an LLM provider is configured the reading is sent to the LiteLLM
gateway; otherwise the interpretation is composed from the built-in texts
the engines already return.
"""

import json
import logging
from typing import Any

from app.core.config import settings
from app.models.reading import ReadingType

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a thoughtful divination reader. Interpret the reading you are given "
    "warmly and concretely in 3-5 short paragraphs. Do not invent numbers, cards or "
    "hexagrams that are not in the data. Avoid medical, legal or financial advice."
)

_FOCUS: dict[ReadingType, str] = {
    ReadingType.NUMEROLOGY: "Explain the life path, expression, soul urge and personality numbers.",
    ReadingType.TAROT: "Walk through each card in its position, then give an overall message.",
    ReadingType.ICHING: "Explain the primary hexagram, the changing lines and the relating hexagram.",
    ReadingType.COMPATIBILITY: "Explain how the two life paths interact and how to strengthen the bond.",
    ReadingType.HOLISTIC: "Weave the numerology, tarot and I Ching parts into one message.",
}


def build_prompt(reading_type: ReadingType, data: dict[str, Any], question: str | None = None) -> str:
    """User prompt for a reading."""
    focus = _FOCUS.get(reading_type, "Interpret the reading.")
    parts = [f"Reading type: {reading_type.value}", focus]
    if question:
        parts.append(f"The person asks: {question}")
    parts.append("Reading data (JSON):")
    parts.append(json.dumps(data, ensure_ascii=False, default=str))
    return "\n".join(parts)


def compose_interpretation(reading_type: ReadingType, data: dict[str, Any]) -> str:
    """Interpretation assembled from the engine's own texts."""
    if reading_type == ReadingType.NUMEROLOGY:
        return " ".join(data.get("interpretations", {}).values())
    if reading_type == ReadingType.TAROT:
        meanings = [card["meaning"] for card in data.get("cards", [])]
        return " ".join([*meanings, data.get("overall", "")]).strip()
    if reading_type == ReadingType.ICHING:
        return data.get("interpretation", "")
    if reading_type == ReadingType.COMPATIBILITY:
        return f"Compatibility {data.get('score')}/10 ({data.get('level')}). {data.get('advice', '')}"
    if reading_type == ReadingType.HOLISTIC:
        return data.get("summary", "")
    return ""


class ReadingInterpreter:
    """Produces the narrative text attached to a reading."""

    def __init__(self, use_llm: bool | None = None):
        self.use_llm = settings.has_llm_key if use_llm is None else use_llm

    async def interpret(
        self,
        reading_type: ReadingType,
        data: dict[str, Any],
        question: str | None = None,
    ) -> dict[str, Any]:
        """Return {"text", "source", "model"}.

        Raises:
            LLMError: the gateway was used and every model failed.
        """
        if not self.use_llm:
            return {
                "text": compose_interpretation(reading_type, data),
                "source": "builtin",
                "model": None,
            }

        from app.services.llm_gateway import get_llm_gateway

        result = await get_llm_gateway().complete(
            prompt=build_prompt(reading_type, data, question),
            system_prompt=SYSTEM_PROMPT,
        )
        logger.info(f"AI interpretation for {reading_type.value} generated with {result['model']}")
        return {"text": result["content"], "source": "ai", "model": result["model"]}


_interpreter: ReadingInterpreter | None = None


def get_reading_interpreter() -> ReadingInterpreter:
    """Get or create the interpreter singleton."""
    global _interpreter
    if _interpreter is None:
        _interpreter = ReadingInterpreter()
    return _interpreter
