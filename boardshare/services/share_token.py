"""Share-link secret minting and lookup-key derivation.

The secret goes into the invitation URL and is shown to the creator once.
Only its SHA-256 digest (the lookup key) is persisted, and redemption finds
the link by exact match on that digest, so no secret comparison ever
happens in Python.
"""

import hashlib
import secrets
from dataclasses import dataclass

from boardshare.core.errors import ValidationError

# 32 random bytes = 256 bits of entropy, hex-encoded to 64 URL-safe chars.
TOKEN_BYTES = 32


@dataclass(frozen=True)
class MintedToken:
    """A freshly minted share secret and its lookup key.

    Attributes:
        secret: Plaintext secret. Hand to the creator once, never store.
        lookup_key: SHA-256 hex digest stored as share_links.token_hash.
    """

    secret: str
    lookup_key: str

    def __repr__(self) -> str:
        # Keep the secret out of logs and tracebacks.
        return f"MintedToken(lookup_key={self.lookup_key[:8]}...)"


def _digest(secret: str) -> str:
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def mint() -> MintedToken:
    """Generate a new share secret and its lookup key.

    Returns:
        MintedToken with the plaintext secret and its digest.
    """
    secret = secrets.token_hex(TOKEN_BYTES)
    return MintedToken(secret=secret, lookup_key=_digest(secret))


def lookup(secret: str) -> str:
    """Derive the lookup key for a presented secret.

    Deterministic and side-effect free. Surrounding whitespace (a common
    copy/paste artifact) is ignored.

    Args:
        secret: Secret as presented by the invitee.

    Returns:
        SHA-256 hex digest to match against share_links.token_hash.

    Raises:
        ValidationError: If the secret is empty.
    """
    cleaned = (secret or "").strip()
    if not cleaned:
        raise ValidationError("Token is required")
    return _digest(cleaned)
