"""Authentication helpers: identity-provider session tokens and proxy headers."""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

import httpx
import jwt

logger = logging.getLogger(__name__)

# Cache with TTL for the provider's signing keys: {jwks_url: ({kid: jwk}, expiry_time)}
_jwks_cache: Dict[str, Tuple[Dict[str, Dict[str, Any]], datetime]] = {}

_KID_RE = re.compile(r"^[A-Za-z0-9_\-]+$")
_USER_ID_RE = re.compile(r"^[A-Za-z0-9_\-.@:|]+$")


def clear_jwks_cache() -> None:
    _jwks_cache.clear()


def _fetch_jwks(jwks_url: str) -> Dict[str, Dict[str, Any]]:
    """Download the JSON Web Key Set and index it by key id."""
    response = httpx.get(jwks_url, timeout=5.0)
    response.raise_for_status()
    keys = response.json().get("keys", [])
    return {k["kid"]: k for k in keys if isinstance(k, dict) and k.get("kid")}


def get_signing_key(kid: str, jwks_url: str, ttl_seconds: int = 3600) -> Optional[Any]:
    """
    Return the public key for ``kid``, fetching the JWKS when it is not cached.

    The cache is refreshed when it expires or when an unknown ``kid`` shows up,
    so provider key rotation is picked up without a restart.

    Args:
        kid: Key ID from the JWT header
        jwks_url: JWKS endpoint of the identity provider
        ttl_seconds: How long a fetched key set stays valid

    Returns:
        Key object usable by ``jwt.decode``, or None if unavailable
    """
    if not _KID_RE.match(kid):
        logger.error("Invalid kid format in session token")
        return None

    now = datetime.now(timezone.utc)
    cached = _jwks_cache.get(jwks_url)
    keys = None
    if cached and now < cached[1]:
        keys = cached[0]

    if keys is None or kid not in keys:
        try:
            keys = _fetch_jwks(jwks_url)
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error fetching JWKS from {jwks_url}: {e.response.status_code}")
            return None
        except (httpx.RequestError, ValueError) as e:
            logger.error(f"Error fetching JWKS from {jwks_url}: {e}")
            return None
        _jwks_cache[jwks_url] = (keys, now + timedelta(seconds=ttl_seconds))

    jwk = keys.get(kid)
    if jwk is None:
        logger.error("Session token signed with unknown key id")
        return None
    try:
        return jwt.PyJWK(jwk).key
    except (jwt.PyJWKError, jwt.InvalidKeyError) as e:
        logger.error(f"Unusable JWK for kid {kid}: {e}")
        return None


def get_user_from_session_token(
    token: Optional[str],
    jwks_url: Optional[str],
    issuer: Optional[str] = None,
    authorized_parties: Optional[List[str]] = None,
    ttl_seconds: int = 3600,
) -> Optional[str]:
    """
    Validate an identity-provider session JWT and return its subject (user id).

    Args:
        token: Raw JWT from the Authorization header or session cookie
        jwks_url: Provider JWKS endpoint used to look up the signing key
        issuer: Expected ``iss`` claim, checked when set
        authorized_parties: Allowed ``azp`` values, checked when non-empty
        ttl_seconds: JWKS cache lifetime

    Returns:
        The user id, or None if validation fails
    """
    if not token:
        return None
    if not jwks_url:
        logger.error("Session token received but CLERK_JWKS_URL is not configured")
        return None
    try:
        header = jwt.get_unverified_header(token)
        kid = header.get("kid")
        if not kid:
            logger.error("Error: 'kid' not found in session token header")
            return None

        key = get_signing_key(kid, jwks_url, ttl_seconds)
        if key is None:
            return None

        payload = jwt.decode(
            token,
            key,
            algorithms=["RS256"],
            issuer=issuer,
            options={"verify_aud": False, "require": ["exp", "sub"]},
        )

        if authorized_parties:
            azp = payload.get("azp")
            if azp and azp not in authorized_parties:
                logger.error("Session token 'azp' is not an authorized party")
                return None

        user_id = payload.get("sub")
        if not isinstance(user_id, str) or not _USER_ID_RE.match(user_id):
            logger.error("Session token has a malformed 'sub' claim")
            return None
        logger.debug("Authenticated user via session token")
        return user_id

    except jwt.ExpiredSignatureError:
        logger.warning("Session token has expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid session token - {e}")
        return None


def get_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer <token>`` value."""
    if not authorization:
        return None
    scheme, _, value = authorization.partition(" ")
    if scheme.lower() != "bearer" or not value.strip():
        return None
    return value.strip()


def get_user_from_header(user_header: Optional[str]) -> Optional[str]:
    """Extract the user id from a trusted proxy header value."""
    if not user_header:
        return None
    value = user_header.strip()
    return value or None
