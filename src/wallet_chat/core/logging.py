"""Logging setup shared by the API process and scripts."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s level=%(levelname)s logger=%(name)s %(message)s"


def configure_logging(level: str = "INFO", name: str = "wallet_chat") -> logging.Logger:
    """Attach a console handler to the application logger.

    Args:
        level: Level name such as ``"INFO"`` or ``"DEBUG"``.
        name: Root of the logger hierarchy to configure.

    Returns:
        The configured logger. Calling this twice does not add a second handler.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level.upper())

    if not any(getattr(handler, "_wallet_chat", False) for handler in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._wallet_chat = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    return logger


def short_address(address: str | None) -> str:
    """Return a truncated wallet address suitable for log lines."""
    if not address:
        return "-"
    return f"{address[:12]}..." if len(address) > 12 else address
