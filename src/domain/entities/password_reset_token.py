"""
PasswordResetToken Entity

Secure password reset tokens.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utcnow


class PasswordResetToken(SQLModel, table=True):
    """
    PasswordResetToken entity - secure password reset tokens.

    Business Rules:
    - Token is SHA-256 hash of a 512-bit random string; plaintext never stored
    - Expires after a short TTL (15 minutes by default)
    - Single-use: is_used flips once, used_at recorded, never reversed
    - Issuing a new token invalidates all unused tokens of the user
    - ip_address / user_agent are bound for optional strict checks
    """

    __tablename__ = "password_reset_tokens"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: UUID = Field(foreign_key="users.id", index=True)
    token_hash: str = Field(unique=True, max_length=64)  # SHA-256 output

    ip_address: Optional[str] = Field(default=None, max_length=45)
    user_agent: Optional[str] = Field(default=None, max_length=500)

    is_used: bool = Field(default=False)
    used_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Timestamps
    expires_at: datetime = Field(sa_column=Column(DateTime))
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_password_reset_expires_at", "expires_at"),
        Index("idx_password_reset_user_id", "user_id"),
        Index("idx_password_reset_is_used", "is_used"),
    )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) >= self.expires_at

    def time_to_expiry_ms(self, now: Optional[datetime] = None) -> int:
        remaining = self.expires_at - (now or utcnow())
        return max(0, int(remaining.total_seconds() * 1000))
