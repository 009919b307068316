"""Salesforce Sign-In Routes.

Key Endpoints:
- GET /salesforce-auth/login: Redirect the user to Salesforce
- GET /salesforce-auth/callback: Salesforce callback handler
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from salesforce_auth.config.settings import get_settings
from salesforce_auth.core.auth import (
    AuthorisationDenied,
    InvalidAuthorisationResponse,
    SalesforceAuth,
)
from salesforce_auth.core.urls import absolute_base_url
from salesforce_auth.infrastructure.database import get_db

router = APIRouter(prefix="/salesforce-auth", tags=["salesforce-auth"])
logger = logging.getLogger(__name__)


def get_salesforce_auth(request: Request) -> SalesforceAuth:
    """Build the Salesforce auth flow for the current site."""
    settings = get_settings()
    base_url = absolute_base_url(settings.base_url, str(request.base_url))
    return SalesforceAuth.from_settings(settings, base_url)


@router.get("/login")
async def login(
    redirect: Optional[str] = Query(None, description="URL to return to after login"),
    remember: bool = Query(False, description="Remember the login beyond the browser session"),
    salesforce: SalesforceAuth = Depends(get_salesforce_auth)
) -> RedirectResponse:
    """Start Salesforce sign-in.

    Args:
        redirect: URL to return to after login
        remember: Whether to remember the login

    Returns:
        Redirect to the Salesforce authorization page
    """
    logger.info(f"Salesforce login initiated: redirect={redirect}, remember={remember}")
    return salesforce.authenticate(redirect, remember)


@router.get("/callback")
async def callback(
    code: Optional[str] = Query(None, description="Authorization code from Salesforce"),
    state: Optional[str] = Query(None, description="State blob from /login"),
    error: Optional[str] = Query(None, description="Error code when authorisation failed"),
    error_description: Optional[str] = Query(None, description="Error detail from Salesforce"),
    salesforce: SalesforceAuth = Depends(get_salesforce_auth),
    db: AsyncSession = Depends(get_db)
) -> RedirectResponse:
    """Handle the Salesforce callback.

    Exchanges the authorization code, logs in the matching member and
    redirects onward.

    Raises:
        SalesforceAuthError: If authentication fails at any step
    """
    if error:
        logger.warning(f"Salesforce authorisation denied: {error}")
        raise AuthorisationDenied(error_description or f"Salesforce authorisation failed: {error}")

    if not code:
        raise InvalidAuthorisationResponse()

    return await salesforce.callback(code, state, db)
