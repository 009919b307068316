"""State parameter round-tripped through Salesforce.

The state blob carries where to send the user after login and whether the
login should persist beyond the browser session.
"""

import json
import logging
from typing import Any, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class LoginState(BaseModel):
    """Decoded login state."""
    redirect: Optional[str] = None
    remember: bool = False


def decode_state(raw: Optional[str]) -> LoginState:
    """Decode the state returned by Salesforce.

    Never raises: missing or malformed state yields the empty state, and a
    non-string redirect is dropped.

    Args:
        raw: State query parameter from the callback

    Returns:
        LoginState with redirect and remember flag
    """
    if not raw:
        return LoginState()

    try:
        data: Any = json.loads(raw)
    except ValueError:
        logger.warning("Ignoring malformed Salesforce state parameter")
        return LoginState()

    if not isinstance(data, dict):
        return LoginState()

    redirect = data.get("redirect")
    return LoginState(
        redirect=redirect if isinstance(redirect, str) and redirect else None,
        remember=bool(data.get("remember")),
    )
