"""ClickUp provider."""

from beanup.providers.clickup._retrying_transport import RetryingTransport, RetryPolicy
from beanup.providers.clickup.client import ClickUpClient
from beanup.providers.clickup.failures import FailureClass, classify_failure

__all__ = ["ClickUpClient", "FailureClass", "RetryPolicy", "RetryingTransport", "classify_failure"]
