"""
Tracer token generator — side-effect-free apart from the system CSPRNG.
"""

from __future__ import annotations

import secrets
import string

_TOKEN_ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits


def generate_random_code(length: int = 10) -> str:
    """Return *length* cryptographically random alphanumeric characters."""
    return "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(length))


def generate_tracer_token(slug_prefix: str, length: int = 10) -> str:
    """Generate a public tracer token of the form ``{slug_prefix}-{random}``.

    The prefix is a readable hint (candidate and company), the random part
    carries the unguessability.

    Args:
        slug_prefix: Already-sanitised prefix (letters and ``-`` only).
        length: Number of random characters (default 10).
    """
    code = generate_random_code(length)
    return f"{slug_prefix}-{code}" if slug_prefix else code
