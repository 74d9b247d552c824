"""Secure credential generation for provisioned services.

Every value is drawn from :mod:`secrets` and carries 128 bits of entropy.
Callers must never log the returned strings.
"""

from __future__ import annotations

import secrets

_SECRET_BYTES = 16


def generate_password() -> str:
    """Return a 32-character lowercase hex password (root/user passwords)."""
    return secrets.token_hex(_SECRET_BYTES)


def generate_access_key() -> str:
    """Return a 32-character uppercase hex access key."""
    return secrets.token_hex(_SECRET_BYTES).upper()


def generate_secret_key() -> str:
    """Return a 32-character lowercase hex secret key."""
    return secrets.token_hex(_SECRET_BYTES)


def generate_api_key() -> str:
    """Return a 32-character hex master key for search engines."""
    return secrets.token_hex(_SECRET_BYTES)
