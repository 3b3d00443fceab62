"""
Bearer Token Authentication (API key or JWT)

Verifies the Authorization header according to an AuthConfig:
  - none:    every request passes unauthenticated
  - api-key: the bearer token must equal the configured key
  - jwt:     HS256 token verified against the configured secret,
             audience and issuer
"""

import hmac
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone, timedelta
from typing import Optional, Union

import jwt

from .config import AuthConfig

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
BEARER_PREFIX = "Bearer "


class AuthenticationError(Exception):
    """Request could not be authenticated; carries the HTTP status to report."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


@dataclass
class AuthContext:
    """Who made the request."""
    authenticated: bool
    user_id: Optional[str] = None
    scopes: list[str] = field(default_factory=list)


def parse_jwt_scopes(scope: Union[str, list, None]) -> list[str]:
    """Accept a space-separated scope string or a list of scopes."""
    if not scope:
        return []
    if isinstance(scope, list):
        return [str(s) for s in scope]
    if isinstance(scope, str):
        return scope.split()
    return []


def _extract_bearer_token(authorization: Optional[str]) -> str:
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise AuthenticationError(
            401,
            "Missing or invalid Authorization header. Expected: Authorization: Bearer <token>",
        )
    return authorization[len(BEARER_PREFIX):]


def _authenticate_api_key(token: str, config: AuthConfig) -> AuthContext:
    if not config.api_key:
        logger.error("AUTH_MODE=api-key but the API key is not configured")
        raise AuthenticationError(500, "Authentication not properly configured")

    if not hmac.compare_digest(token.encode(), config.api_key.encode()):
        raise AuthenticationError(401, "Invalid API key")

    return AuthContext(authenticated=True)


def _authenticate_jwt(token: str, config: AuthConfig) -> AuthContext:
    if not config.jwt_secret:
        logger.error("AUTH_MODE=jwt but the JWT secret is not configured")
        raise AuthenticationError(500, "Authentication not properly configured")

    try:
        payload = jwt.decode(
            token,
            config.jwt_secret,
            algorithms=[JWT_ALGORITHM],
            audience=config.jwt_audience,
            issuer=config.jwt_issuer,
            options={"verify_aud": config.jwt_audience is not None},
        )
    except jwt.ExpiredSignatureError:
        logger.debug("JWT expired")
        raise AuthenticationError(401, "Token has expired")
    except jwt.InvalidTokenError as e:
        logger.debug(f"JWT invalid: {e}")
        raise AuthenticationError(401, "Invalid token")

    return AuthContext(
        authenticated=True,
        user_id=payload.get("sub"),
        scopes=parse_jwt_scopes(payload.get("scope")),
    )


def authenticate(authorization: Optional[str], config: AuthConfig) -> AuthContext:
    """
    Authenticate a request from its Authorization header.

    Args:
        authorization: Raw Authorization header value, if any
        config: Authentication settings for the endpoint group

    Returns:
        AuthContext for the caller

    Raises:
        AuthenticationError: with status 401 (rejected) or 500 (misconfigured)
    """
    if config.mode == "none":
        return AuthContext(authenticated=False)

    token = _extract_bearer_token(authorization)

    if config.mode == "api-key":
        return _authenticate_api_key(token, config)
    if config.mode == "jwt":
        return _authenticate_jwt(token, config)

    raise AuthenticationError(500, "Invalid authentication mode")


def create_access_token(
    subject: str,
    secret: str,
    scopes: Optional[list[str]] = None,
    audience: Optional[str] = None,
    issuer: Optional[str] = None,
    expires_in: timedelta = timedelta(hours=1),
) -> str:
    """
    Issue an HS256 access token accepted by jwt mode.

    Returns:
        Encoded JWT string
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": subject,
        "iat": now,
        "exp": now + expires_in,
    }
    if scopes:
        payload["scope"] = " ".join(scopes)
    if audience:
        payload["aud"] = audience
    if issuer:
        payload["iss"] = issuer
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)
