"""Item source: the ``beans`` CLI."""

from beanup.beans.client import BeansClient, CompletedProcess, ExtensionDataOp

__all__ = ["BeansClient", "CompletedProcess", "ExtensionDataOp"]
