"""
Validate Access Use Case

Stateless access-token check used on every gateway request.
"""

from datetime import datetime
from typing import Callable

from libs.result import Result
from src.app.services.token_codec import TokenClaims, TokenCodec
from src.domain.base import utc_now
from src.domain.entities import TokenKind


class ValidateAccessUseCase:
    """
    Use case for access-token validation.

    Business Rules:
    - Signature + expiry + kind only; the session store is never consulted
    - Revocation becomes visible once the access token expires
    """

    def __init__(self, token_codec: TokenCodec, clock: Callable[[], datetime] = utc_now):
        self.token_codec = token_codec
        self.clock = clock

    async def execute(self, access_token: str) -> Result[TokenClaims]:
        return self.token_codec.verify(access_token, TokenKind.access, now=self.clock())
