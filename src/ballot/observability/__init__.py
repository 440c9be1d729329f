"""Observability — structured logging."""

from ballot.observability.logging import configure_structlog

__all__ = ["configure_structlog"]
