from __future__ import annotations

import secrets

TOKEN_BYTES = 24


def generate_token() -> str:
    """192-bit random token, hex encoded."""
    return secrets.token_hex(TOKEN_BYTES)
