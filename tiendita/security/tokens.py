"""Issuing and validating session JWTs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import time
from typing import Any, Callable

import jwt

from ..config import Settings
from ..domain.errors import TokenExpiredError, TokenInvalidError

_ALGORITHM = "HS256"
_REQUIRED_CLAIMS = ["accountId", "email", "iat", "exp"]


@dataclass(slots=True, frozen=True)
class SessionToken:
    """Encoded token handed to the client along with its lifetime."""

    token: str
    expires_in: int


@dataclass(slots=True, frozen=True)
class SessionClaims:
    """Decoded claims of a verified session token."""

    account_id: int
    email: str
    issued_at: datetime
    expires_at: datetime


class SessionTokenIssuer:
    """Stateless, signed, time-bounded session credentials.

    Tokens are never stored server-side; rotating ``secret`` invalidates every
    token issued before the rotation.
    """

    def __init__(
        self,
        secret: str,
        *,
        ttl_seconds: int = 3600,
        issuer: str | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise ValueError("token signing secret must not be empty")
        self._secret = secret
        self._ttl = ttl_seconds
        self._issuer = issuer
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> "SessionTokenIssuer":
        return cls(settings.jwt_secret, ttl_seconds=settings.jwt_ttl_seconds, issuer=settings.jwt_issuer)

    def issue(self, account_id: int, email: str) -> SessionToken:
        """Create a signed JWT carrying the account id and email at issuance time.

        Parameters
        ----------
        account_id:
            Identifier of the authenticated account, embedded as ``accountId`` and ``sub``.
        email:
            Email address the account authenticated with.

        Returns
        -------
        SessionToken
            The encoded JWT and its TTL in seconds.
        """

        now = int(self._clock())
        payload: dict[str, Any] = {
            "sub": str(account_id),
            "accountId": account_id,
            "email": email,
            "iat": now,
            "exp": now + self._ttl,
        }
        if self._issuer:
            payload["iss"] = self._issuer

        token = jwt.encode(payload, self._secret, algorithm=_ALGORITHM)
        return SessionToken(token=token, expires_in=self._ttl)

    def verify(self, token: str) -> SessionClaims:
        """Check signature and expiry of ``token`` and return its claims.

        Raises
        ------
        TokenExpiredError
            The signature is valid but ``exp`` has passed.
        TokenInvalidError
            The token is malformed, tampered with, signed by another key or issuer,
            or missing a required claim.
        """

        options: dict[str, Any] = {"require": list(_REQUIRED_CLAIMS)}
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[_ALGORITHM],
                issuer=self._issuer,
                options=options,
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError("token expired") from exc
        except jwt.PyJWTError as exc:
            raise TokenInvalidError("token invalid") from exc

        try:
            return SessionClaims(
                account_id=int(payload["accountId"]),
                email=str(payload["email"]),
                issued_at=datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc),
                expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
            )
        except (TypeError, ValueError) as exc:
            raise TokenInvalidError("token claims malformed") from exc
