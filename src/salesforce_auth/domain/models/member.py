"""
Member model.

Members are pre-existing local accounts. Salesforce sign-in only ever maps
an identity onto a member; it never creates one.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from salesforce_auth.domain.models.base import Base


def _utc_now() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


class Member(Base):
    """Local member account."""

    __tablename__ = "members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    first_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    surname: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # SSO tracking
    sso_provider: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    sso_subject_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)

    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utc_now,
        onupdate=_utc_now,
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<Member(id={self.id}, email={self.email})>"
