"""Shared-secret gate evaluated before a request body is read."""

from __future__ import annotations

import hmac

from pdfraster.exceptions import UnauthorizedError


def is_authorized(secret: str | None, token: str | None) -> bool:
    """Return whether `token` grants access under the configured `secret`.

    Args:
        secret (str | None): Configured shared secret. `None` disables the gate.
        token (str | None): Token supplied by the client.

    Returns:
        bool: True when no secret is configured or the token matches exactly.
    """
    if secret is None:
        return True
    if token is None:
        return False
    return hmac.compare_digest(secret.encode("utf-8"), token.encode("utf-8"))


def check_access(secret: str | None, token: str | None) -> None:
    """Validate the request token against the configured secret.

    Raises:
        UnauthorizedError: If a secret is configured and the token does not match.
    """
    if not is_authorized(secret, token):
        raise UnauthorizedError
