"""Token fingerprints: deterministic one-way digests used as index keys."""

import hashlib

FINGERPRINT_LENGTH = 64


def fingerprint_token(token: str) -> str:
    """SHA256 hex digest of a raw token.

    Unsalted on purpose: issued tokens are high-entropy and the same token must
    always map to the same fingerprint for lookup.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
