"""API secret hashing for the Nightscout API-SECRET header."""

import hashlib

API_SECRET_HEADER = "API-SECRET"


def hash_secret(secret: str) -> str:
    """Return the lowercase hex SHA-1 digest Nightscout expects for API-SECRET."""
    return hashlib.sha1(secret.encode("utf-8")).hexdigest()


def auth_headers(secret: str) -> dict:
    """Build request headers for an authenticated entries request."""
    return {
        API_SECRET_HEADER: hash_secret(secret),
        "Accept": "application/json",
    }
