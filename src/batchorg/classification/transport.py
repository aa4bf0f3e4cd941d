"""Language-model transport used for classification requests.

Requests go through DSPy's ``dspy.LM`` wrapper, which forwards chat messages
(including inline image content) to any LiteLLM-compatible provider.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Mapping, Optional

import dspy

from batchorg.config.models import LLMSettings
from batchorg.logging_setup import configure_dspy_logging

from .errors import ClassificationTransportError, ClassifierConfigError

LOGGER = logging.getLogger(__name__)

_KEYLESS_PROVIDERS = {"local", "ollama", "ollama_chat", "lm_studio"}
_PROVIDER_KEY_ENV = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "gemini": "GEMINI_API_KEY",
}


class LanguageModelTransport:
    """Send chat completions to the configured provider through DSPy."""

    def __init__(
        self,
        settings: Optional[LLMSettings] = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        """Configure language models for document and image requests.

        Args:
            settings: Language-model configuration.
            env: Environment used to look up provider credentials.

        Raises:
            ClassifierConfigError: If the provider requires credentials that are
                not configured.
        """
        self._settings = settings or LLMSettings()
        self._api_key = self._resolve_api_key(env if env is not None else os.environ)
        configure_dspy_logging()
        self._text_lm = self._build_lm(self._settings.model, self._settings.max_tokens)
        self._vision_lm = self._build_lm(
            self._settings.vision_model, self._settings.vision_max_tokens
        )

    @property
    def settings(self) -> LLMSettings:
        return self._settings

    def complete(
        self,
        messages: list[dict[str, Any]],
        *,
        vision: bool = False,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Send ``messages`` and return the raw text of the first completion.

        Raises:
            ClassificationTransportError: If the request fails.
        """
        language_model = self._vision_lm if vision else self._text_lm
        kwargs: dict[str, Any] = {}
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens
        try:
            outputs = language_model(messages=messages, **kwargs)
        except Exception as exc:
            raise ClassificationTransportError(
                f"Request to {language_model.model} failed: {exc}"
            ) from exc

        if not outputs:
            return ""
        first = outputs[0]
        if isinstance(first, dict):
            first = first.get("text")
        return first if isinstance(first, str) else ""

    def _resolve_api_key(self, env: Mapping[str, str]) -> Optional[str]:
        settings = self._settings
        if settings.api_key:
            return settings.api_key

        provider = (settings.provider or "").lower()
        env_name = _PROVIDER_KEY_ENV.get(provider)
        if env_name and env.get(env_name):
            return env[env_name]

        if settings.api_base_url or provider in _KEYLESS_PROVIDERS:
            return None

        hint = "`llm.api_key`"
        if env_name:
            hint = f"{hint} or the {env_name} environment variable"
        raise ClassifierConfigError(
            f"No API key configured for provider '{settings.provider}'. Set {hint}."
        )

    def _model_name(self, model: str) -> str:
        if "/" in model or not self._settings.provider or self._settings.provider == "local":
            return model
        return f"{self._settings.provider}/{model}"

    def _build_lm(self, model: str, max_tokens: int) -> Any:
        lm_kwargs: dict[str, Any] = {
            "model": self._model_name(model),
            "temperature": self._settings.temperature,
            "max_tokens": max_tokens,
            "cache": False,
        }
        if self._settings.api_base_url:
            lm_kwargs["api_base"] = self._settings.api_base_url
        if self._api_key is not None:
            lm_kwargs["api_key"] = self._api_key

        LOGGER.debug("Configuring language model %s", lm_kwargs["model"])
        try:
            return dspy.LM(**lm_kwargs)
        except Exception as exc:
            raise ClassifierConfigError(
                f"Unable to configure language model '{lm_kwargs['model']}': {exc}"
            ) from exc


__all__ = ["LanguageModelTransport"]
