"""Environment token resolver."""

from __future__ import annotations

import os

from beanup.auth.base import TokenResolver
from beanup.contracts.exceptions import AuthenticationError

TOKEN_ENV_VAR = "CLICKUP_TOKEN"


class EnvTokenResolver(TokenResolver):
    def __init__(self, env_var: str = TOKEN_ENV_VAR) -> None:
        self._env_var = env_var

    async def resolve(self) -> str:
        token = (os.getenv(self._env_var) or "").strip()
        if not token:
            raise AuthenticationError(f"{self._env_var} is not set or empty")
        return token
