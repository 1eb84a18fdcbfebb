import hmac

from fastapi import Header

from clioboard.config import get_settings
from clioboard.exceptions import AuthenticationError
from clioboard.models.common import Actor


def resolve_actor(agent_key: str | None) -> Actor:
    """'agent' for a matching agent key, 'user' when none is presented."""
    if not agent_key:
        return "user"
    expected = get_settings().agent_api_key
    if not expected or not hmac.compare_digest(agent_key.strip(), expected):
        raise AuthenticationError("Invalid agent key")
    return "agent"


def get_actor(x_agent_key: str | None = Header(default=None)) -> Actor:
    return resolve_actor(x_agent_key)
