from dataclasses import dataclass, field
from typing import Any

from jose import JWTError, jwt
from starlette.requests import Request

from app.core.config import Settings, get_settings


ANONYMOUS_SUBJECT = "anonymous"


@dataclass
class AuthUser:
    sub: str
    roles: list[str] = field(default_factory=list)

    @property
    def is_anonymous(self) -> bool:
        return self.sub == ANONYMOUS_SUBJECT

    def has_role(self, role: str) -> bool:
        return role in self.roles


def _bearer_token(request: Request) -> str:
    auth_header = request.headers.get("authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return token.strip()


def decode_token(token: str, settings: Settings) -> dict[str, Any] | None:
    """Claims of a valid HS256 token, or None when it does not verify."""

    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


async def get_current_user(request: Request) -> AuthUser:
    token = _bearer_token(request)
    claims = decode_token(token, get_settings()) if token else None
    if claims is None:
        return AuthUser(sub=ANONYMOUS_SUBJECT, roles=["guest"])

    subject = str(claims.get("sub") or ANONYMOUS_SUBJECT)
    roles = claims.get("roles", ["user"])
    if not isinstance(roles, list):
        roles = ["user"]
    context = getattr(request.state, "context", None)
    if context is not None:
        context.user_id = subject
    return AuthUser(sub=subject, roles=[str(role) for role in roles])
