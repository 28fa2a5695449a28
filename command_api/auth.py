"""
Bearer token gate for the HTTP app.

Tokens are JWTs issued by an external identity authority. They are checked
for signature, expiry and audience (and issuer, when one is configured)
before any route runs; failures are answered with 401 and never reach the
command service.
"""

import logging
from typing import Any, Dict, Iterable, Optional

import jwt
from starlette.applications import Starlette
from starlette.authentication import (
    AuthCredentials,
    AuthenticationBackend,
    AuthenticationError,
    SimpleUser,
)
from starlette.concurrency import run_in_threadpool
from starlette.middleware.authentication import AuthenticationMiddleware
from starlette.requests import HTTPConnection
from starlette.responses import Response

from command_api.config import Settings

logger = logging.getLogger(__name__)

EXEMPT_PATHS = ("/healthz",)


class JWTBearerBackend(AuthenticationBackend):
    """Validate ``Authorization: Bearer <jwt>`` on every non-exempt request.

    With a shared secret configured, tokens are verified as HS256. Otherwise
    the signing key is looked up in the authority's JWKS document and tokens
    are verified as RS256.
    """

    def __init__(self, settings: Settings, exempt_paths: Iterable[str] = EXEMPT_PATHS):
        self.exempt_paths = frozenset(exempt_paths)
        self.audience: Optional[str] = settings.resource_id or None
        self.issuer: Optional[str] = settings.jwt_issuer
        self.secret: Optional[str] = settings.jwt_secret
        self.jwks_client: Optional[jwt.PyJWKClient] = None

        if self.secret:
            self.algorithms = ["HS256"]
        else:
            jwks_url = settings.jwks_url or (
                f"{settings.authority.rstrip('/')}/discovery/v2.0/keys"
            )
            self.jwks_client = jwt.PyJWKClient(jwks_url)
            self.algorithms = ["RS256"]

    async def authenticate(self, conn: HTTPConnection):
        if conn.url.path in self.exempt_paths:
            return None

        header = conn.headers.get("Authorization")
        if not header:
            raise AuthenticationError("Missing bearer token")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise AuthenticationError("Authorization header is not a bearer token")

        # Key lookup may fetch the JWKS document over HTTP
        claims = await run_in_threadpool(self.decode, token.strip())
        scopes = str(claims.get("scp", "")).split()
        return AuthCredentials(["authenticated", *scopes]), SimpleUser(str(claims.get("sub", "")))

    def decode(self, token: str) -> Dict[str, Any]:
        try:
            if self.jwks_client is not None:
                key = self.jwks_client.get_signing_key_from_jwt(token).key
            else:
                key = self.secret
            return jwt.decode(
                token,
                key,
                algorithms=self.algorithms,
                audience=self.audience,
                issuer=self.issuer,
                options={"verify_aud": self.audience is not None},
            )
        except jwt.PyJWTError as e:
            raise AuthenticationError(f"Invalid bearer token: {e}") from e


def unauthorized(conn: HTTPConnection, exc: Exception) -> Response:
    logger.debug("Rejected request to %s: %s", conn.url.path, exc)
    return Response(status_code=401, headers={"WWW-Authenticate": "Bearer"})


def install_authentication(app: Starlette, settings: Settings) -> None:
    """Put the bearer token gate in front of every route of ``app``."""
    app.add_middleware(
        AuthenticationMiddleware,
        backend=JWTBearerBackend(settings),
        on_error=unauthorized,
    )
