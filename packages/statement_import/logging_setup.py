"""Logging helpers shared by every ``statement_import`` module.

Library code only ever asks for a named logger through :func:`get_logger`
(``"statement_import.parse"``, ``"statement_import.merchant.pipeline"``...).
Handlers are attached in exactly one place, :func:`configure_logging`, which
entry points such as the CLI call at startup. Until then the package root
logger carries a ``NullHandler`` so embedding applications see no output
unless they opt in.

Pipeline stages log one line per call in a ``stage:event key=value`` shape and
never log transaction descriptions or amounts.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "statement_import"
_LEVEL_ENV = "STATEMENT_IMPORT_LOG_LEVEL"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_CONFIGURED = False
# The handler installed by configure_logging, so reset_logging removes only ours.
_HANDLER: logging.Handler | None = None


def _level_from_name(name: str) -> int | None:
    name = name.strip().upper()
    if name.isdigit():
        return int(name)
    return logging.getLevelNamesMapping().get(name)


def resolve_level(level: int | str | None = None) -> int:
    """Turn ``level`` into a numeric logging level.

    ``None`` or an unknown name falls back to ``STATEMENT_IMPORT_LOG_LEVEL``
    and then to ``INFO``.
    """

    if isinstance(level, int):
        return level
    if level is not None:
        numeric = _level_from_name(level)
        if numeric is not None:
            return numeric
    env_numeric = _level_from_name(os.getenv(_LEVEL_ENV, ""))
    return env_numeric if env_numeric is not None else logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> None:
    """Attach a single ``StreamHandler`` to the package root logger.

    Parameters
    ----------
    level:
        ``int`` or level name, resolved by :func:`resolve_level`.
    fmt:
        Optional format string for the handler.
    stream:
        Destination stream; ``sys.stderr`` when omitted.

    Calling this more than once is a no-op until :func:`reset_logging`.
    """

    global _CONFIGURED, _HANDLER
    if _CONFIGURED:
        return

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in [h for h in pkg_logger.handlers if isinstance(h, logging.NullHandler)]:
        pkg_logger.removeHandler(h)

    numeric = resolve_level(level)
    _HANDLER = logging.StreamHandler(stream if stream is not None else sys.stderr)
    _HANDLER.setLevel(numeric)
    _HANDLER.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))

    pkg_logger.setLevel(numeric)
    pkg_logger.addHandler(_HANDLER)
    pkg_logger.propagate = False
    _CONFIGURED = True


def reset_logging() -> None:
    """Undo :func:`configure_logging` and make the package silent again."""

    global _CONFIGURED, _HANDLER
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _HANDLER is not None:
        pkg_logger.removeHandler(_HANDLER)
        _HANDLER = None
    pkg_logger.setLevel(logging.NOTSET)
    pkg_logger.propagate = True
    _CONFIGURED = False
    if not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())


def get_logger(name: str) -> logging.Logger:
    """Return ``logging.getLogger(name)``, keeping the package silent until configured."""

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "reset_logging", "resolve_level"]
