"""Middleware module - ASGI middleware for the API."""

from .logging_middleware import RequestLoggingMiddleware

__all__ = ['RequestLoggingMiddleware']
