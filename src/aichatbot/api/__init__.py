"""HTTP admin API for aichatbot."""

from .app import create_app, get_services

__all__ = ["create_app", "get_services"]
