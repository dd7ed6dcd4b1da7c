"""VAPID public key decoding for ``PushManager.subscribe``."""

from __future__ import annotations

import base64
import binascii

from beanroute.core.push.errors import NotConfiguredError


def url_b64_to_bytes(value: str) -> bytes:
    """Decode a URL-safe base64 VAPID key, restoring stripped ``=`` padding.

    Raises :class:`NotConfiguredError` when the key is empty or malformed,
    since the server is then effectively not configured for push.
    """
    if not value:
        raise NotConfiguredError("Server did not provide a VAPID public key")

    padded = value + "=" * (-len(value) % 4)
    try:
        return base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError) as e:
        raise NotConfiguredError(f"Server VAPID public key is malformed: {e}") from e
