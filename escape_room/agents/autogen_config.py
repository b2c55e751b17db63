from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from autogen import LLMConfig


@dataclass(frozen=True, slots=True)
class OpenAICompatibleSettings:
    model: str
    base_url: str | None
    api_key: str | None


def settings_from_env(*, model: str) -> OpenAICompatibleSettings:
    return OpenAICompatibleSettings(
        model=model,
        # For Ollama, typically http://127.0.0.1:11434/v1
        base_url=os.environ.get("OPENAI_BASE_URL"),
        api_key=os.environ.get("OPENAI_API_KEY"),
    )


def llm_config_from_env(*, model: str, temperature: float, max_tokens: int | None = None) -> LLMConfig:
    s = settings_from_env(model=model)

    # Many OpenAI-compatible servers ignore the key but some SDKs require it.
    api_key = s.api_key or ("ollama" if s.base_url else None)

    if not api_key:
        raise RuntimeError(
            "Set OPENAI_API_KEY for hosted OpenAI, or set OPENAI_BASE_URL for a local OpenAI-compatible server"
        )

    config: dict[str, Any] = {"model": s.model, "api_key": api_key, "temperature": temperature}
    if s.base_url:
        config["base_url"] = s.base_url
    if max_tokens is not None:
        config["max_tokens"] = max_tokens

    return LLMConfig(config_list=[config])
