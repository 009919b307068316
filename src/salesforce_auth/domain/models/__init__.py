"""Domain models for the Salesforce SSO bridge"""

from salesforce_auth.domain.models.base import Base
from salesforce_auth.domain.models.member import Member

__all__ = [
    "Base",
    "Member",
]
