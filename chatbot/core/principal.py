"""The acting user of a request."""

from dataclasses import dataclass
from typing import Literal

from chatbot.core.config import settings

PrincipalType = Literal["guest", "regular"]


@dataclass(frozen=True)
class Principal:
    id: str
    email: str
    type: PrincipalType = "regular"


def default_principal() -> Principal:
    return Principal(id=settings.default_user_id, email=settings.default_user_email)


async def get_principal() -> Principal:
    """Dependency resolving the acting user.

    There is no authentication yet, so every request acts as the configured
    default user. Override this dependency to plug in a real source.
    """
    return default_principal()
