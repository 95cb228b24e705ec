"""Web interface module for the iCal feed and import endpoint."""

from .server import create_app, run_server

__all__ = ["create_app", "run_server"]
