"""HTTP transport for pipeline runs."""

from .app import app, start_server

__all__ = ["app", "start_server"]
