from __future__ import annotations

from loguru import logger


def log_backend_error(context: str, exc: Exception) -> None:
    logger.error("Backend error in {}: {}", context, exc)


def log_diagnostic(context: str, exc: Exception) -> None:
    """Development-only detail for errors already reported to the caller."""
    logger.debug("{} failed: {!r}", context, exc)
