"""Client identity resolution from proxy forwarding headers.

The identity is the key usage is metered against. It is derived from the
headers set by the proxies in front of the service, checked in a fixed
priority order. The forwarded chain is preferred because most intermediaries
set it, even though a client can spoof it; quota evasion by header spoofing
is accepted. Clients with no usable header all share the ``"unknown"``
identity and therefore one quota bucket.
"""

from __future__ import annotations

import hashlib
from typing import Mapping

from fastapi import Request

UNKNOWN_IDENTITY = "unknown"

# (header name, is a comma-separated chain)
IDENTITY_HEADERS: tuple[tuple[str, bool], ...] = (
    ("x-forwarded-for", True),
    ("x-real-ip", False),
    ("x-vercel-forwarded-for", True),
    ("cf-connecting-ip", False),
)


def _lowercase_headers(headers: Mapping[str, str]) -> dict[str, str]:
    # First occurrence wins, matching Starlette's Headers.get for repeated headers.
    lowered: dict[str, str] = {}
    for name, value in headers.items():
        lowered.setdefault(name.lower(), value)
    return lowered


def _header_value(raw: str | None, is_chain: bool) -> str | None:
    if raw is None:
        return None
    if is_chain:
        raw = raw.split(",", 1)[0]
    value = raw.strip()
    return value or None


def resolve_identity(headers: Mapping[str, str]) -> str:
    """Derive the client identity from forwarding headers.

    Checks ``X-Forwarded-For`` (leftmost entry), ``X-Real-IP``,
    ``X-Vercel-Forwarded-For`` (leftmost entry) and ``CF-Connecting-IP`` in
    that order and returns the first non-empty value. Header names are
    matched case-insensitively.

    Args:
        headers: Request headers (any mapping of name to value).

    Returns:
        The client identity, or ``"unknown"`` when no header is usable.

    Examples:
        >>> resolve_identity({"X-Forwarded-For": "1.2.3.4, 5.6.7.8", "X-Real-IP": "9.9.9.9"})
        '1.2.3.4'
        >>> resolve_identity({"CF-Connecting-IP": "7.7.7.7"})
        '7.7.7.7'
        >>> resolve_identity({})
        'unknown'
    """
    lowered = _lowercase_headers(headers)
    for name, is_chain in IDENTITY_HEADERS:
        value = _header_value(lowered.get(name), is_chain)
        if value:
            return value
    return UNKNOWN_IDENTITY


def mask_identity(identity: str) -> str:
    """Partially mask an identity for display (first 8 characters kept)."""
    return f"{identity[:8]}***"


def hash_identity(identity: str) -> str:
    """Hash an identity for logging without exposing the address."""
    return hashlib.sha256(identity.encode()).hexdigest()[:16]


async def get_client_identity(request: Request) -> str:
    """FastAPI dependency returning the resolved identity for the request."""
    return resolve_identity(request.headers)
