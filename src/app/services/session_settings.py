"""
Session Settings

Immutable lifecycle configuration, built once at start-up from ApplicationConfig.
"""

from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


def _whole_seconds(value: datetime) -> datetime:
    # JWT exp is an integer timestamp; stored expiries must match it exactly
    return value.replace(microsecond=0)


class SessionSettings(BaseModel):
    """
    Durations and signing parameters consumed by the session lifecycle.

    Business Rules:
    - access_token_ttl must not exceed refresh_token_ttl
    - refresh_token_sliding renews the refresh window on every rotation;
      when False the window stays fixed from login
    - session_max_age, when set, caps the refresh window from created_at
    """

    model_config = ConfigDict(frozen=True)

    jwt_secret: str = Field(..., min_length=1)
    jwt_algorithm: str = "HS256"
    access_token_ttl: timedelta = timedelta(minutes=15)
    refresh_token_ttl: timedelta = timedelta(days=7)
    refresh_lease_ttl: timedelta = timedelta(seconds=10)
    refresh_token_sliding: bool = True
    session_max_age: Optional[timedelta] = None
    sweep_interval: timedelta = timedelta(minutes=5)
    sweep_grace: timedelta = timedelta(0)

    @model_validator(mode="after")
    def check_durations(self) -> "SessionSettings":
        for name in ("access_token_ttl", "refresh_token_ttl", "refresh_lease_ttl", "sweep_interval"):
            if getattr(self, name) <= timedelta(0):
                raise ValueError(f"{name} must be positive")
        if self.access_token_ttl > self.refresh_token_ttl:
            raise ValueError("access_token_ttl must not exceed refresh_token_ttl")
        if self.session_max_age is not None and self.session_max_age <= timedelta(0):
            raise ValueError("session_max_age must be positive")
        if self.sweep_grace < timedelta(0):
            raise ValueError("sweep_grace must not be negative")
        return self

    @classmethod
    def from_config(cls, config) -> "SessionSettings":
        max_age = getattr(config, "SESSION_MAX_AGE_SECONDS", None)
        return cls(
            jwt_secret=config.JWT_SECRET,
            jwt_algorithm=config.JWT_ALGORITHM,
            access_token_ttl=timedelta(seconds=config.ACCESS_TOKEN_TTL_SECONDS),
            refresh_token_ttl=timedelta(seconds=config.REFRESH_TOKEN_TTL_SECONDS),
            refresh_lease_ttl=timedelta(seconds=config.REFRESH_LEASE_TTL_SECONDS),
            refresh_token_sliding=config.REFRESH_TOKEN_SLIDING,
            session_max_age=timedelta(seconds=int(max_age)) if max_age else None,
            sweep_interval=timedelta(seconds=config.SWEEP_INTERVAL_SECONDS),
            sweep_grace=timedelta(seconds=config.SWEEP_GRACE_SECONDS),
        )

    def refresh_expiry(
        self,
        now: datetime,
        created_at: datetime,
        current: Optional[datetime] = None,
    ) -> datetime:
        """Refresh window end for a new session (current=None) or a rotation."""
        if current is not None and not self.refresh_token_sliding:
            expires_at = current
        else:
            expires_at = now + self.refresh_token_ttl
        if self.session_max_age is not None:
            expires_at = min(expires_at, created_at + self.session_max_age)
        return _whole_seconds(expires_at)

    def access_expiry(self, now: datetime, refresh_expires_at: datetime) -> datetime:
        return _whole_seconds(min(now + self.access_token_ttl, refresh_expires_at))
