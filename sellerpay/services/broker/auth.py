"""Request authentication gate backed by Clerk session tokens."""

from typing import Any, Protocol

import jwt
from starlette.requests import Request

from sellerpay.common.config import Settings
from sellerpay.common.errors import UnauthenticatedError
from sellerpay.common.logging import logger

SESSION_COOKIE = "__session"


class AuthGate(Protocol):
    async def authenticate(self, request: Request) -> dict[str, Any]: ...


def _extract_token(request: Request) -> str | None:
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return request.cookies.get(SESSION_COOKIE) or None


class ClerkAuthGate:
    """Networkless verification of Clerk session JWTs.

    Clerk signs session tokens with RS256; the instance public key (PEM) is
    configured as `CLERK_JWT_KEY`. When `authorized_parties` is non-empty the
    token's `azp` claim must match one of them.
    """

    def __init__(self, jwt_key: str, authorized_parties: list[str] | None = None, leeway: float = 5.0) -> None:
        # Keys pasted into .env files usually carry escaped newlines.
        self.jwt_key = jwt_key.replace("\\n", "\n")
        self.authorized_parties = list(authorized_parties or [])
        self.leeway = leeway

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClerkAuthGate":
        return cls(settings.clerk_jwt_key, settings.clerk_authorized_parties)

    async def authenticate(self, request: Request) -> dict[str, Any]:
        token = _extract_token(request)
        if token is None:
            raise UnauthenticatedError()
        if not self.jwt_key:
            logger.error("CLERK_JWT_KEY is not configured; rejecting request")
            raise UnauthenticatedError()
        try:
            claims = jwt.decode(
                token,
                self.jwt_key,
                algorithms=["RS256"],
                leeway=self.leeway,
                options={"require": ["exp", "sub"]},
            )
        except jwt.PyJWTError as exc:
            logger.warning("session token rejected: %s", exc)
            raise UnauthenticatedError() from exc
        if self.authorized_parties and claims.get("azp") not in self.authorized_parties:
            logger.warning("session token azp not authorized azp=%s", claims.get("azp"))
            raise UnauthenticatedError()
        return claims
