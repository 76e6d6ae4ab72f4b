"""Concrete token resolvers."""

from beanup.auth.resolvers.env import EnvTokenResolver
from beanup.auth.resolvers.static import StaticTokenResolver

__all__ = ["EnvTokenResolver", "StaticTokenResolver"]
