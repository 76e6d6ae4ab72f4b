"""Task-tracker providers."""

from beanup.providers.clickup import ClickUpClient

__all__ = ["ClickUpClient"]
