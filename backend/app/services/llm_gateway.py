"""LLM Gateway - unified completion interface using LiteLLM.

LiteLLM translates one OpenAI-style call to many providers (Gemini, OpenAI,
Anthropic, OpenRouter) and handles fallbacks between them.

Note: LiteLLM is imported lazily to avoid fork-safety issues with Celery prefork pool.
"""

import logging
import os
from typing import Any

from app.core.config import settings

logger = logging.getLogger(__name__)

_litellm_initialized = False


def _ensure_litellm():
    """Lazy initialize LiteLLM on first use."""
    global _litellm_initialized
    if _litellm_initialized:
        return

    import litellm

    if settings.debug:
        os.environ["LITELLM_LOG"] = "DEBUG"

    litellm.drop_params = True  # Drop unsupported params instead of error

    # Disable internal logging callbacks; their async workers time out and spam logs
    litellm.success_callback = []
    litellm.failure_callback = []

    _litellm_initialized = True
    logger.debug("LiteLLM initialized")


class LLMError(Exception):
    """LLM Gateway error."""


class LLMGateway:
    """
    Unified LLM Gateway using LiteLLM.

    Model naming convention:
    - gemini/gemini-1.5-flash
    - openai/gpt-4o-mini
    - anthropic/claude-3-5-haiku-latest
    - openrouter/<vendor>/<model>
    """

    FALLBACK_MODELS = [
        "gemini/gemini-1.5-flash",
        "openai/gpt-4o-mini",
        "anthropic/claude-3-5-haiku-latest",
    ]

    # model prefix -> (environment variable, settings attribute)
    PROVIDER_KEYS = {
        "openai/": ("OPENAI_API_KEY", "openai_api_key"),
        "anthropic/": ("ANTHROPIC_API_KEY", "anthropic_api_key"),
        "gemini/": ("GEMINI_API_KEY", "gemini_api_key"),
        "openrouter/": ("OPENROUTER_API_KEY", "openrouter_api_key"),
    }

    def __init__(self):
        self._export_api_keys()

    def _export_api_keys(self):
        """Export configured provider keys where LiteLLM looks for them."""
        for env_key, attr in self.PROVIDER_KEYS.values():
            value = getattr(settings, attr)
            if value:
                os.environ[env_key] = value

    def _has_key_for(self, model: str) -> bool:
        for prefix, (env_key, _) in self.PROVIDER_KEYS.items():
            if model.startswith(prefix):
                return bool(os.environ.get(env_key))
        return False

    def _get_available_fallbacks(self, exclude_model: str) -> list[str]:
        """Fallback models whose provider key is configured."""
        return [
            model for model in self.FALLBACK_MODELS
            if model != exclude_model and self._has_key_for(model)
        ]

    async def complete(
        self,
        prompt: str,
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        system_prompt: str | None = None,
        **kwargs,
    ) -> dict[str, Any]:
        """
        Generate a completion with automatic fallback.

        Returns:
            dict with content, model and token usage
        """
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        return await self.chat(
            messages=messages,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            **kwargs,
        )

    async def chat(
        self,
        messages: list[dict],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        fallback: bool = True,
        **kwargs,
    ) -> dict[str, Any]:
        """Send chat messages, falling back to other configured providers."""
        _ensure_litellm()
        from litellm import acompletion

        model = model or settings.default_llm_model

        params = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens or settings.llm_max_tokens,
            **kwargs,
        }

        if fallback:
            available_fallbacks = self._get_available_fallbacks(model)
            if available_fallbacks:
                params["fallbacks"] = available_fallbacks

        try:
            response = await acompletion(**params)
        except Exception as e:
            logger.error(f"LLM completion failed: {e}")
            raise LLMError(f"All models failed: {e}") from e

        usage = getattr(response, "usage", None)
        return {
            "content": response.choices[0].message.content,
            "model": response.model,
            "usage": {
                "prompt_tokens": usage.prompt_tokens,
                "completion_tokens": usage.completion_tokens,
                "total_tokens": usage.total_tokens,
            } if usage else None,
        }


# Singleton instance
_llm_gateway: LLMGateway | None = None


def get_llm_gateway() -> LLMGateway:
    """Get or create LLM Gateway singleton."""
    global _llm_gateway
    if _llm_gateway is None:
        _llm_gateway = LLMGateway()
    return _llm_gateway
