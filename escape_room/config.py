from __future__ import annotations

import os
import secrets
from dataclasses import dataclass


DEFAULT_SCENARIO = "curator_study"
DEFAULT_MODEL = "gpt-4o-mini"


@dataclass(frozen=True, slots=True)
class Settings:
    # Newest first. The first key signs, every key verifies.
    secret_keys: tuple[bytes, ...]
    default_scenario: str
    intent_model: str
    narrator_model: str
    log_level: str


def _secret_keys_from_env() -> tuple[bytes, ...]:
    raw = os.environ.get("ESCAPE_ROOM_SECRET_KEYS", "")
    keys = tuple(k.strip().encode("utf-8") for k in raw.split(",") if k.strip())
    if keys:
        return keys
    # No configured secret: one random key for the lifetime of this process.
    return (secrets.token_bytes(32),)


def settings_from_env() -> Settings:
    """Read process configuration.

    Call once at startup; without ESCAPE_ROOM_SECRET_KEYS every call generates a new key.
    """

    model = os.environ.get("OPENAI_MODEL", DEFAULT_MODEL)
    return Settings(
        secret_keys=_secret_keys_from_env(),
        default_scenario=os.environ.get("ESCAPE_ROOM_DEFAULT_SCENARIO", DEFAULT_SCENARIO),
        intent_model=os.environ.get("ESCAPE_ROOM_INTENT_MODEL", model),
        narrator_model=os.environ.get("ESCAPE_ROOM_NARRATOR_MODEL", model),
        log_level=os.environ.get("ESCAPE_ROOM_LOG_LEVEL", "INFO").upper(),
    )


_SETTINGS: Settings | None = None


def init_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = settings_from_env()
    return _SETTINGS


def reset_settings_for_tests() -> None:
    global _SETTINGS
    _SETTINGS = None


def get_settings() -> Settings:
    if _SETTINGS is None:
        raise RuntimeError("Settings not initialized. Call init_settings() at startup.")
    return _SETTINGS
