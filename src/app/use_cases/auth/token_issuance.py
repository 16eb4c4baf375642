from datetime import datetime

from src.app.services.token_codec import TokenCodec
from src.domain.entities import Session, TokenKind
from .dtos import AuthResponse, SessionInfo


def issue_auth_response(
    token_codec: TokenCodec, session: Session, now: datetime
) -> AuthResponse:
    """Mint an access/refresh pair bound to the session's current refresh_token_version."""
    access_ttl = session.access_token_expires_at - now
    refresh_ttl = session.refresh_token_expires_at - now

    access_token = token_codec.issue(
        TokenKind.access,
        session.id,
        session.user_id,
        session.refresh_token_version,
        access_ttl,
        now=now,
    )
    refresh_token = token_codec.issue(
        TokenKind.refresh,
        session.id,
        session.user_id,
        session.refresh_token_version,
        refresh_ttl,
        now=now,
    )

    return AuthResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=int(access_ttl.total_seconds()),
        refresh_expires_in=int(refresh_ttl.total_seconds()),
        session_id=session.id,
        user_id=session.user_id,
        session=SessionInfo.from_entity(session),
    )
