"""Salesforce authentication errors.

Each error carries a short machine-readable code (``error``) alongside the
human-readable message; the API layer returns both to the client.
"""

from typing import Optional


class SalesforceAuthError(Exception):
    """Salesforce authentication failed."""

    error = "salesforce_auth_failed"
    default_message = "Salesforce authentication failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthorisationDenied(SalesforceAuthError):
    """Salesforce redirected back with an error instead of a code."""

    error = "authorisation_denied"
    default_message = "Salesforce authorisation was denied"


class InvalidAuthorisationResponse(SalesforceAuthError):
    """Token endpoint returned no usable identity URL or access token."""

    error = "invalid_authorisation_response"
    default_message = "An invalid authorisation response was returned"


class InvalidIdentityResponse(SalesforceAuthError):
    """Identity endpoint returned no usable email."""

    error = "invalid_identity_response"
    default_message = "An invalid identity response was returned"


class MemberNotFound(SalesforceAuthError):
    """No local member matches the Salesforce email."""

    error = "member_not_found"

    def __init__(self, email: str):
        self.email = email
        super().__init__(f'No member was found for the Salesforce email "{email}"')
