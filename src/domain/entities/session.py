"""
Session Entity

One authenticated device/browser binding.
"""

from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utcnow


class Session(SQLModel, table=True):
    """
    Session entity - opaque bearer session.

    Business Rules:
    - Token is 256+ bits of randomness; only its SHA-256 hash is stored
    - Valid while is_active and expires_at is in the future
    - Revocation is monotonic (is_active only goes true -> false)
    - Remember-me sessions last 30 days, others 24 hours
    - Flagged for refresh when less than 25% of its lifetime remains
    """

    __tablename__ = "sessions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: UUID = Field(foreign_key="users.id", nullable=False, index=True)
    token_hash: str = Field(unique=True, max_length=64)  # SHA-256 output

    ip_address: Optional[str] = Field(default=None, max_length=45)
    user_agent: Optional[str] = Field(default=None, max_length=500)

    is_active: bool = Field(default=True)
    revoked_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Timestamps
    expires_at: datetime = Field(sa_column=Column(DateTime))
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_session_expires_at", "expires_at"),
        Index("idx_session_user_active", "user_id", "is_active"),
    )

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        return self.is_active and self.expires_at > (now or utcnow())

    def time_remaining(self, now: Optional[datetime] = None) -> timedelta:
        if not self.is_valid(now):
            return timedelta(0)
        return self.expires_at - (now or utcnow())

    def needs_refresh(self, threshold: float = 0.25, now: Optional[datetime] = None) -> bool:
        if not self.is_valid(now):
            return False
        total = self.expires_at - self.created_at
        return self.time_remaining(now) < total * threshold
