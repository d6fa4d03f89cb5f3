"""JWT token issuance and verification.

Two tiers of token, each with its own secret and lifetime:
- Access token: short-lived (15 min by default), carries {id, email,
  username}; never stored, verified purely by signature + expiry.
- Refresh token: long-lived (10 days by default), carries {id}; stored on
  the user row so it can be rotated and revoked.

Every token also gets iat and a random jti, so two tokens issued for the
same user in the same second are still different strings.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt

from vidtube.config import Settings


class TokenError(Exception):
    """Raised when token verification fails."""


class ExpiredTokenError(TokenError):
    pass


class InvalidSignatureError(TokenError):
    """Bad signature, wrong secret, or a malformed token."""


@dataclass(frozen=True)
class UserClaims:
    id: uuid.UUID
    email: str
    username: str


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class TokenService:
    """Signs and verifies access/refresh tokens for one Settings instance."""

    def __init__(self, settings: Settings):
        self.access_secret = settings.access_token_secret
        self.refresh_secret = settings.refresh_token_secret
        self.algorithm = settings.jwt_algorithm
        self.access_lifetime = timedelta(minutes=settings.access_token_expire_minutes)
        self.refresh_lifetime = timedelta(days=settings.refresh_token_expire_days)

    def _encode(self, claims: dict[str, Any], secret: str, lifetime: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            **claims,
            "iat": now,
            "exp": now + lifetime,
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def issue_access_token(
        self, user: UserClaims, lifetime: Optional[timedelta] = None
    ) -> str:
        return self._encode(
            {"id": str(user.id), "email": user.email, "username": user.username},
            self.access_secret,
            lifetime if lifetime is not None else self.access_lifetime,
        )

    def issue_refresh_token(
        self, user_id: uuid.UUID, lifetime: Optional[timedelta] = None
    ) -> str:
        return self._encode(
            {"id": str(user_id)},
            self.refresh_secret,
            lifetime if lifetime is not None else self.refresh_lifetime,
        )

    def issue_pair(self, user: UserClaims) -> TokenPair:
        return TokenPair(
            access_token=self.issue_access_token(user),
            refresh_token=self.issue_refresh_token(user.id),
        )

    def verify(self, token: str, secret: str) -> dict[str, Any]:
        """Verify and decode a token.

        Returns the claims dict on success. Raises ExpiredTokenError or
        InvalidSignatureError on failure.
        """
        try:
            return jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "id"]},
            )
        except jwt.ExpiredSignatureError:
            raise ExpiredTokenError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise InvalidSignatureError(f"Invalid token: {e}")

    def verify_access(self, token: str) -> dict[str, Any]:
        return self.verify(token, self.access_secret)

    def verify_refresh(self, token: str) -> dict[str, Any]:
        return self.verify(token, self.refresh_secret)


def claims_user_id(claims: dict[str, Any]) -> uuid.UUID:
    """Pull the user id out of verified claims."""
    try:
        return uuid.UUID(str(claims["id"]))
    except (KeyError, ValueError) as e:
        raise InvalidSignatureError(f"Invalid token subject: {e}")
