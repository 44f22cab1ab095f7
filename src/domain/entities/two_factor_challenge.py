"""
TwoFactorChallenge Entity

Pending login for a user with 2FA enabled.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utcnow


class TwoFactorChallenge(SQLModel, table=True):
    """
    TwoFactorChallenge entity - short-lived token issued after the password step.

    Business Rules:
    - Not a session: grants nothing except the right to submit a 2FA code
    - Token stored as SHA-256 hash
    - Single-use: consumed when the session is created
    - Expires after 5 minutes; burned after too many wrong codes
    """

    __tablename__ = "two_factor_challenges"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: UUID = Field(foreign_key="users.id", nullable=False, index=True)
    token_hash: str = Field(unique=True, max_length=64)

    remember_me: bool = Field(default=False)
    ip_address: Optional[str] = Field(default=None, max_length=45)
    user_agent: Optional[str] = Field(default=None, max_length=500)

    failed_attempts: int = Field(default=0)
    consumed_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Timestamps
    expires_at: datetime = Field(sa_column=Column(DateTime))
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (Index("idx_two_factor_challenge_expires_at", "expires_at"),)

    def is_usable(self, now: Optional[datetime] = None) -> bool:
        return self.consumed_at is None and self.expires_at > (now or utcnow())
