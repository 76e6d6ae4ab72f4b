"""Auth resolver interfaces."""

from __future__ import annotations

from abc import ABC, abstractmethod

# Personal API tokens carry this prefix; OAuth access tokens do not.
PERSONAL_TOKEN_PREFIX = "pk_"


class TokenResolver(ABC):
    """Source of the value sent verbatim in ClickUp's ``Authorization`` header."""

    @abstractmethod
    async def resolve(self) -> str:
        """Return a non-empty ClickUp API token or raise ``AuthenticationError``."""
