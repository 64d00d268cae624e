from __future__ import annotations

import secrets
import time

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(n: int) -> str:
    if n == 0:
        return "0"
    out = []
    while n:
        n, r = divmod(n, 36)
        out.append(_ALPHABET[r])
    return "".join(reversed(out))


def random_suffix(length: int = 7) -> str:
    """Short random token from a cryptographic source (6 bytes, base36 per byte)."""
    token = "".join(_base36(b) for b in secrets.token_bytes(6))
    # 6 zero-ish bytes can yield fewer than `length` chars; pad from the same source
    while len(token) < length:
        token += _ALPHABET[secrets.randbelow(36)]
    return token[:length]


def new_id(prefix: str) -> str:
    return f"{prefix}-{int(time.time() * 1000)}-{random_suffix()}"


def new_session_id() -> str:
    return new_id("session")


def new_participant_id() -> str:
    return new_id("participant")


def new_message_id() -> str:
    return new_id("msg")
