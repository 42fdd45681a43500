"""PKCE (Proof Key for Code Exchange, RFC 7636) helpers."""

import base64
import hashlib
import secrets
import uuid

# Unreserved URI characters allowed in a code verifier
VERIFIER_CHARSET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-._~"
VERIFIER_LENGTH = 128


def generate_verifier(length: int = VERIFIER_LENGTH) -> str:
    """Draw `length` characters uniformly from the unreserved set using the OS CSPRNG."""
    if not 43 <= length <= 128:
        raise ValueError("PKCE code verifier length must be between 43 and 128")
    return "".join(secrets.choice(VERIFIER_CHARSET) for _ in range(length))


def derive_challenge(verifier: str) -> str:
    """S256 challenge: base64url(sha256(verifier)) without padding."""
    digest = hashlib.sha256(verifier.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def generate_state() -> str:
    return str(uuid.uuid4())
