"""API package for the runtime status surface."""

from .application import create_api_application

__all__ = ["create_api_application"]
