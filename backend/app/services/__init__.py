"""Business logic services.

Divination engines live in ``app.services.divination``. The LLM gateway is
not imported at module level because LiteLLM must not be loaded before the
Celery prefork pool forks; import it from ``app.services.llm_gateway``.
"""

from app.services.interpreter import ReadingInterpreter, get_reading_interpreter
from app.services.recommendation import RecommendationService, get_recommendation_service

__all__ = [
    "LLMGateway",
    "ReadingInterpreter",
    "RecommendationService",
    "get_llm_gateway",
    "get_reading_interpreter",
    "get_recommendation_service",
]


def __getattr__(name: str):
    """Lazy import for fork-safety."""
    if name in ("LLMGateway", "get_llm_gateway"):
        from app.services.llm_gateway import LLMGateway, get_llm_gateway
        return LLMGateway if name == "LLMGateway" else get_llm_gateway
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
