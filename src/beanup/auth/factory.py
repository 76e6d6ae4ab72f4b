"""Token resolver factory."""

from __future__ import annotations

from beanup.auth.base import TokenResolver
from beanup.auth.resolvers.env import EnvTokenResolver
from beanup.auth.resolvers.static import StaticTokenResolver
from beanup.contracts.config import BeanUpConfig
from beanup.contracts.exceptions import ConfigError

RESOLVERS: dict[str, type[TokenResolver]] = {
    "env": EnvTokenResolver,
    "token": StaticTokenResolver,
}


def create_token_resolver(config: BeanUpConfig) -> TokenResolver:
    auth_mode = config.auth
    if auth_mode not in RESOLVERS:
        raise ConfigError(f"Unknown auth mode: {auth_mode}")
    if auth_mode == "env":
        return EnvTokenResolver()
    return StaticTokenResolver(token=config.token or "")
