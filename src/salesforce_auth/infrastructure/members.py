"""Member lookup for Salesforce sign-in.

Maps a Salesforce identity onto an existing member by exact email match
and records the SSO login against that member.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from salesforce_auth.domain.models import Member

logger = logging.getLogger(__name__)

SSO_PROVIDER = "salesforce"


class MemberStore:
    """Member queries backed by a SQLAlchemy session."""

    def __init__(self, db: AsyncSession):
        """Initialize member store

        Args:
            db: Async database session
        """
        self.db = db

    async def get_by_email(self, email: str) -> Optional[Member]:
        """Get the first member whose email matches exactly

        Args:
            email: Email address returned by Salesforce

        Returns:
            Member if found, None otherwise
        """
        if not email:
            return None

        result = await self.db.execute(
            select(Member).where(Member.email == email).order_by(Member.id).limit(1)
        )
        return result.scalar_one_or_none()

    async def record_login(self, member: Member, identity: dict[str, Any]) -> Member:
        """Stamp a successful Salesforce login on the member

        Args:
            member: Member being logged in
            identity: Salesforce identity response

        Returns:
            The updated member
        """
        member.last_login_at = datetime.now(timezone.utc)
        member.sso_provider = SSO_PROVIDER

        subject = identity.get("user_id")
        if subject:
            member.sso_subject_id = str(subject)

        await self.db.commit()
        await self.db.refresh(member)

        logger.info(f"Recorded Salesforce login for member {member.id}")
        return member
