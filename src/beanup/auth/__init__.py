"""Auth module public exports."""

from beanup.auth.base import TokenResolver
from beanup.auth.factory import create_token_resolver

__all__ = ["TokenResolver", "create_token_resolver"]
