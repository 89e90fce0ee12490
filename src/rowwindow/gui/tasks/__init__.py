"""Background task helpers for the Qt integration."""

from .provider_worker import ProviderCallWorker, QtTaskRunner

__all__ = ["ProviderCallWorker", "QtTaskRunner"]
