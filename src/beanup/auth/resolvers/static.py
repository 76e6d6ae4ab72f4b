"""Token taken from the ``token`` field of ``beanup.json``."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from beanup.auth.base import PERSONAL_TOKEN_PREFIX, TokenResolver
from beanup.contracts.exceptions import AuthenticationError

_LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class StaticTokenResolver(TokenResolver):
    token: str

    async def resolve(self) -> str:
        token = self.token.strip()
        if not token:
            raise AuthenticationError('auth is "token" but the ClickUp token in beanup.json is empty')
        if not token.startswith(PERSONAL_TOKEN_PREFIX):
            _LOG.debug("Configured token has no %s prefix, using it as an OAuth access token", PERSONAL_TOKEN_PREFIX)
        return token
