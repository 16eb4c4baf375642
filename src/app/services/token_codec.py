"""
Token Codec

Signs and verifies access/refresh tokens. Pure: never touches a store.
"""

import logging
import secrets
from datetime import UTC, datetime, timedelta
from typing import Callable, Optional

from jose import JWTError, jwt
from jose.utils import base64url_decode, base64url_encode
from pydantic import BaseModel

from libs.result import Error, Result, Return
from src.domain.base import utc_now
from src.domain.entities import TokenKind

logger = logging.getLogger(__name__)


class TokenClaims(BaseModel):
    """Claims carried by a verified token"""

    kind: TokenKind
    session_id: str
    user_id: str
    version: int
    issued_at: datetime
    expires_at: datetime
    token_id: str


def _from_timestamp(value: int) -> datetime:
    return datetime.fromtimestamp(value, UTC).replace(tzinfo=None)


def _is_canonical(token: str) -> bool:
    """True if the token is three base64url segments in their one canonical spelling."""
    segments = token.split(".")
    if len(segments) != 3:
        return False
    try:
        for segment in segments:
            raw = segment.encode("ascii")
            # Unused trailing bits in the last character must be zero
            if base64url_encode(base64url_decode(raw)) != raw:
                return False
    except ValueError:
        return False
    return True


class TokenCodec:
    """
    JWT codec for session credentials.

    Claims: kind, sid (session id), sub (user id), ver (refresh token
    version), iat, exp, jti. Expiry is checked here against the injected
    clock rather than by python-jose, so verification and the session store
    agree on "now".
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = utc_now,
    ):
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        self.secret = secret
        self.algorithm = algorithm
        self.clock = clock

    @classmethod
    def from_settings(cls, settings, clock: Callable[[], datetime] = utc_now) -> "TokenCodec":
        return cls(settings.jwt_secret, settings.jwt_algorithm, clock)

    def issue(
        self,
        kind: TokenKind,
        session_id: str,
        user_id: str,
        version: int,
        ttl: timedelta,
        now: Optional[datetime] = None,
    ) -> str:
        """
        Issue a signed token expiring at now + ttl.

        Args:
            kind: access or refresh
            session_id: Session the token is bound to
            user_id: Owning principal
            version: Session refresh_token_version at issuance
            ttl: Lifetime of the token
            now: Issuance time (defaults to the codec clock)

        Returns:
            Compact JWT string
        """
        issued_at = now or self.clock()
        payload = {
            "kind": TokenKind(kind).value,
            "sid": session_id,
            "sub": str(user_id),
            "ver": int(version),
            "iat": issued_at,
            "exp": issued_at + ttl,
            "jti": secrets.token_urlsafe(12),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(
        self,
        token: str,
        expected_kind: TokenKind,
        now: Optional[datetime] = None,
    ) -> Result[TokenClaims]:
        """
        Verify signature, expiry and kind, in that order.

        Returns:
            Result with TokenClaims, or Error INVALID_SIGNATURE, TOKEN_EXPIRED
            or KIND_MISMATCH
        """
        if not _is_canonical(token):
            return Return.err(Error("INVALID_SIGNATURE", "Token signature is invalid"))

        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"verify_exp": False, "verify_aud": False},
            )
        except JWTError as exc:
            logger.debug(f"Token rejected: {exc}")
            return Return.err(Error("INVALID_SIGNATURE", "Token signature is invalid"))

        try:
            claims = TokenClaims(
                kind=TokenKind(payload["kind"]),
                session_id=payload["sid"],
                user_id=payload["sub"],
                version=payload["ver"],
                issued_at=_from_timestamp(payload["iat"]),
                expires_at=_from_timestamp(payload["exp"]),
                token_id=payload.get("jti", ""),
            )
        except (KeyError, TypeError, ValueError):
            return Return.err(Error("INVALID_SIGNATURE", "Token claims are malformed"))

        if claims.expires_at < (now or self.clock()):
            return Return.err(Error("TOKEN_EXPIRED", "Token has expired"))

        if claims.kind != TokenKind(expected_kind):
            return Return.err(
                Error(
                    "KIND_MISMATCH",
                    f"Expected a {TokenKind(expected_kind).value} token",
                )
            )

        return Return.ok(claims)
