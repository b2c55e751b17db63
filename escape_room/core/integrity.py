"""Tamper-evident transport for client-held game state.

The state is plaintext; the tag only proves this process issued it unchanged.

Canonical encoding: the pydantic JSON dump with every mapping key sorted and
compact separators. Mappings (the item map, each item's fields) are therefore
independent of insertion order, while lists (inventory, container contents,
aliases) keep their order, which is meaningful.
"""

from __future__ import annotations

import hashlib
import hmac
import json
from dataclasses import dataclass

from escape_room.api.models import GameState
from escape_room.errors import AuthenticationError


def canonical_encoding(state: GameState) -> bytes:
    payload = state.model_dump(mode="json")
    # Client JSON may carry lone surrogates; they must encode, not raise.
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode(
        "utf-8", errors="surrogatepass"
    )


def compute_tag(*, payload: bytes, key: bytes) -> str:
    return hmac.new(key, payload, hashlib.sha256).hexdigest()


@dataclass(frozen=True, slots=True)
class Keyring:
    """Signing secrets, newest first.

    Only `primary` signs; older keys still verify so a rotation does not
    invalidate every game in flight.
    """

    keys: tuple[bytes, ...]

    def __post_init__(self) -> None:
        if not self.keys:
            raise ValueError("Keyring needs at least one key")
        if any(not k for k in self.keys):
            raise ValueError("Signing keys must be non-empty")

    @property
    def primary(self) -> bytes:
        return self.keys[0]

    def sign(self, state: GameState) -> str:
        return compute_tag(payload=canonical_encoding(state), key=self.primary)

    def verify(self, state: GameState, tag: str) -> bool:
        payload = canonical_encoding(state)
        supplied = tag.encode("utf-8")
        matched = False
        # Check every key so timing does not reveal which one matched.
        for key in self.keys:
            expected = compute_tag(payload=payload, key=key).encode("ascii")
            if hmac.compare_digest(expected, supplied):
                matched = True
        return matched

    def rotated(self, new_key: bytes, *, keep: int = 2) -> "Keyring":
        """Return a keyring signing with `new_key` that still accepts the `keep` most recent old keys."""

        return Keyring(keys=(new_key, *self.keys[:keep]))


def authenticate_state(*, state: GameState, tag: str | None, keyring: Keyring, template: GameState) -> None:
    """Accept the initial template untagged; anything else needs a valid tag."""

    if canonical_encoding(state) == canonical_encoding(template):
        return
    if not tag:
        raise AuthenticationError("Missing integrity tag for a non-initial state")
    if not keyring.verify(state, tag):
        raise AuthenticationError("Integrity tag does not match the supplied state")


_KEYRING: Keyring | None = None


def init_keyring(*, keys: tuple[bytes, ...]) -> Keyring:
    global _KEYRING
    if _KEYRING is None:
        _KEYRING = Keyring(keys=keys)
    return _KEYRING


def reset_keyring_for_tests() -> None:
    global _KEYRING
    _KEYRING = None


def get_keyring() -> Keyring:
    if _KEYRING is None:
        raise RuntimeError("Keyring not initialized. Call init_keyring() at startup.")
    return _KEYRING
