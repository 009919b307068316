"""Salesforce single sign-on.

Sends users to Salesforce to sign in and logs in the local member whose
email matches the Salesforce identity.
"""

from .errors import (
    AuthorisationDenied,
    InvalidAuthorisationResponse,
    InvalidIdentityResponse,
    MemberNotFound,
    SalesforceAuthError,
)
from .salesforce import SalesforceAuth, on_identify

__all__ = [
    "SalesforceAuth",
    "on_identify",
    "SalesforceAuthError",
    "AuthorisationDenied",
    "InvalidAuthorisationResponse",
    "InvalidIdentityResponse",
    "MemberNotFound",
]
