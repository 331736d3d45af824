"""Web server and browser UI."""

from .server import app, start_server

__all__ = ["app", "start_server"]
