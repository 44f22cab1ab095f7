"""
User Entity

Account record holding the password hash and the embedded 2FA credential.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, JSON, SQLModel

from src.domain.base import utcnow
from .enums import TwoFactorState, UserStatus


class User(SQLModel, table=True):
    """
    User entity - an account that can authenticate.

    Business Rules:
    - Email must be unique, stored lower-cased
    - Email verification required before login
    - Password stored as bcrypt hash
    - TOTP secret stored encrypted (Fernet), never in plaintext
    - Backup codes stored only as SHA-256 hashes, each single-use
    - two_factor_version guards every 2FA write (optimistic concurrency)
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=255)
    password_hash: str = Field(max_length=60)  # Bcrypt output is 60 chars

    status: UserStatus = Field(default=UserStatus.active)
    email_verified: bool = Field(default=False)

    # Two-factor credential
    two_factor_enabled: bool = Field(default=False)
    two_factor_secret_encrypted: Optional[str] = Field(default=None, max_length=255)
    backup_code_hashes: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    two_factor_version: int = Field(default=0)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    last_login_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_user_email_verified", "email_verified"),
        Index("idx_user_two_factor_enabled", "two_factor_enabled"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.active

    @property
    def two_factor_state(self) -> TwoFactorState:
        if self.two_factor_enabled:
            return TwoFactorState.enabled
        if self.two_factor_secret_encrypted:
            return TwoFactorState.pending_verification
        return TwoFactorState.unset
