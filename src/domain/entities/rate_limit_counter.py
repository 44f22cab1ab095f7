"""
RateLimitCounter Entity

Sliding-window request counter per (identity, action).
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from src.domain.base import utcnow


class RateLimitCounter(SQLModel, table=True):
    """
    RateLimitCounter entity - request counter for an email or IP identity.

    Business Rules:
    - (identity, action) is unique
    - Window resets to a count of 1 once it has elapsed
    - Exceeding the ceiling sets blocked_until beyond the window end
    """

    __tablename__ = "rate_limit_counters"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    identity: str = Field(max_length=255)
    action: str = Field(max_length=100)  # e.g., "password_reset:email"

    request_count: int = Field(default=1)
    window_start: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    blocked_until: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_rate_limit_identity_action", "identity", "action", unique=True),
        Index("idx_rate_limit_window_start", "window_start"),
        Index("idx_rate_limit_blocked_until", "blocked_until"),
    )
