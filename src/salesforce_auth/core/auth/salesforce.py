"""Salesforce OAuth 2.0 sign-in.

Redirects the user to Salesforce for consent, exchanges the returned
authorization code for an access token, reads the user's email from the
Salesforce identity URL and logs in the member with that email.

Example Configuration:
    SALESFORCE_CLIENT_ID=3MVG9...
    SALESFORCE_CLIENT_SECRET=xxx
    BASE_URL=https://www.example.com/
    DEFAULT_LOGIN_DEST=/dashboard
"""

import inspect
import json
import logging
from typing import Any, Awaitable, Callable, Optional, Union
from urllib.parse import urlencode

import httpx
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from salesforce_auth.config.settings import Settings
from salesforce_auth.core.auth.errors import (
    InvalidAuthorisationResponse,
    InvalidIdentityResponse,
    MemberNotFound,
)
from salesforce_auth.core.auth.login import log_in
from salesforce_auth.core.auth.state import LoginState, decode_state
from salesforce_auth.core.urls import is_site_url, join_links
from salesforce_auth.domain.models import Member
from salesforce_auth.infrastructure.members import MemberStore

logger = logging.getLogger(__name__)

AUTH_URL = "https://login.salesforce.com/services/oauth2/authorize"
TOKEN_URL = "https://login.salesforce.com/services/oauth2/token"
CALLBACK_PATH = "salesforce-auth/callback"

IdentifyHook = Callable[[Member, dict], Union[None, Awaitable[None]]]

# Hooks run after every successful Salesforce login
IDENTIFY_HOOKS: list[IdentifyHook] = []


def on_identify(hook: IdentifyHook) -> IdentifyHook:
    """Register a hook called with ``(member, identity)`` after login.

    Hooks may be plain functions or coroutines, e.g. to copy profile fields
    from the Salesforce identity onto the member. They run before the login
    is recorded, so a failing hook aborts the sign-in and nothing is saved.
    """
    IDENTIFY_HOOKS.append(hook)
    return hook


class SalesforceAuth:
    """Salesforce authentication flow for a single connected app."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        base_url: str,
        auth_url: str = AUTH_URL,
        token_url: str = TOKEN_URL,
        scope: str = "id",
        default_login_dest: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        identify_hooks: Optional[list[IdentifyHook]] = None
    ):
        """Initialize Salesforce auth.

        Args:
            client_id: Salesforce connected app client ID
            client_secret: Salesforce connected app client secret
            base_url: Absolute base URL of this site
            auth_url: Salesforce authorization endpoint
            token_url: Salesforce token endpoint
            scope: OAuth scope to request
            default_login_dest: Where to go after login when no redirect is given
            timeout: Timeout for calls to Salesforce, in seconds
            transport: Optional httpx transport (used by tests)
            identify_hooks: Post-login hooks (default: registered hooks)
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.base_url = base_url
        self.auth_url = auth_url
        self.token_url = token_url
        self.scope = scope
        self.default_login_dest = default_login_dest
        self.timeout = timeout
        self._transport = transport
        self._identify_hooks = IDENTIFY_HOOKS if identify_hooks is None else identify_hooks

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        base_url: str,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "SalesforceAuth":
        """Build from application settings."""
        return cls(
            client_id=settings.salesforce_client_id,
            client_secret=settings.salesforce_client_secret,
            base_url=base_url,
            auth_url=settings.salesforce_auth_url,
            token_url=settings.salesforce_token_url,
            scope=settings.salesforce_scope,
            default_login_dest=settings.default_login_dest,
            timeout=settings.salesforce_timeout_seconds,
            transport=transport,
        )

    def get_client_id(self) -> str:
        return self.client_id

    def get_client_secret(self) -> str:
        return self.client_secret

    def get_redirect_url(self) -> str:
        """Get the URL Salesforce sends the user back to."""
        return join_links(self.base_url, CALLBACK_PATH)

    def get_auth_url(self, state: Any = None) -> str:
        """Get the URL to send the user to for authentication.

        Args:
            state: JSON-serializable value round-tripped through Salesforce

        Returns:
            Salesforce authorization URL
        """
        params = {
            "response_type": "code",
            "client_id": self.get_client_id(),
            "redirect_uri": self.get_redirect_url(),
            "scope": self.scope,
            "state": json.dumps(state),
        }
        return join_links(self.auth_url, "?" + urlencode(params))

    def authenticate(self, redirect: Optional[str], remember: bool = False) -> RedirectResponse:
        """Start an authentication by redirecting to Salesforce.

        Args:
            redirect: URL to return to after login
            remember: Whether to remember the user's login

        Returns:
            Redirect response to the Salesforce authorization URL
        """
        state = LoginState(redirect=redirect, remember=remember)
        return RedirectResponse(self.get_auth_url(state.model_dump()), status_code=302)

    async def callback(self, code: str, state: Optional[str], db: AsyncSession) -> RedirectResponse:
        """Complete authentication with the authorization code from Salesforce.

        Args:
            code: Authorization code from the callback
            state: State blob from the callback
            db: Database session for the member lookup

        Returns:
            Redirect response onward, carrying the login cookie

        Raises:
            InvalidAuthorisationResponse: If the token exchange fails
            InvalidIdentityResponse: If the identity lookup fails
            MemberNotFound: If no member has the Salesforce email
        """
        tokens = await self._exchange_code(code)
        identity = await self._fetch_identity(tokens["id"], tokens["access_token"])

        email = identity["email"]
        members = MemberStore(db)
        member = await members.get_by_email(email)

        if not member:
            logger.warning(f"Salesforce login rejected: no member for {email}")
            raise MemberNotFound(email)

        login_state = decode_state(state)
        response = RedirectResponse(self._login_destination(login_state.redirect), status_code=302)

        log_in(member, response, remember=login_state.remember)
        await self._run_identify_hooks(member, identity)
        await members.record_login(member, identity)

        logger.info(f"Salesforce login successful: member={member.id}, remember={login_state.remember}")
        return response

    async def _exchange_code(self, code: str) -> dict:
        """Exchange the authorization code for an access token and identity URL."""
        data = {
            "code": code,
            "grant_type": "authorization_code",
            "client_id": self.get_client_id(),
            "client_secret": self.get_client_secret(),
            "redirect_uri": self.get_redirect_url(),
        }

        try:
            async with self._client() as client:
                response = await client.post(
                    self.token_url,
                    data=data,
                    headers={"Accept": "application/json"}
                )
        except httpx.HTTPError as e:
            logger.error(f"Salesforce token request failed: {e}")
            raise InvalidAuthorisationResponse() from e

        tokens = _json_object(response)
        if (
            not tokens
            or not isinstance(tokens.get("id"), str)
            or not tokens["id"]
            or not tokens.get("access_token")
        ):
            error = tokens.get("error") if tokens else None
            logger.error(f"Salesforce token exchange failed: status={response.status_code}, error={error}")
            raise InvalidAuthorisationResponse()

        return tokens

    async def _fetch_identity(self, identity_url: str, access_token: str) -> dict:
        """Fetch the user's identity from the Salesforce identity URL."""
        try:
            async with self._client() as client:
                response = await client.get(
                    identity_url,
                    params={"oauth_token": access_token},
                    headers={"Accept": "application/json"}
                )
        except httpx.HTTPError as e:
            logger.error(f"Salesforce identity request failed: {e}")
            raise InvalidIdentityResponse() from e

        identity = _json_object(response)
        if not identity or not isinstance(identity.get("email"), str) or not identity["email"]:
            logger.error(f"Salesforce identity lookup failed: status={response.status_code}")
            raise InvalidIdentityResponse()

        return identity

    def _login_destination(self, redirect: Optional[str]) -> str:
        """Pick where to send the member after login."""
        if redirect:
            if is_site_url(redirect, self.base_url):
                return redirect
            logger.warning(f"Ignoring off-site login redirect: {redirect}")

        if self.default_login_dest:
            return self.default_login_dest

        return self.base_url

    async def _run_identify_hooks(self, member: Member, identity: dict) -> None:
        for hook in self._identify_hooks:
            result = hook(member, identity)
            if inspect.isawaitable(result):
                await result

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self.timeout)


def _json_object(response: httpx.Response) -> Optional[dict]:
    """Decode a JSON object body, or None if the body is anything else."""
    try:
        body = response.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None
