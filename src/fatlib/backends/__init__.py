"""Native build backends."""

from fatlib.backends.base import BackendRequest, BuildBackend
from fatlib.backends.configure_make import ConfigureMakeBackend

__all__ = ["BackendRequest", "BuildBackend", "ConfigureMakeBackend"]
