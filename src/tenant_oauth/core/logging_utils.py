# TenantAuth - Multi-tenant OAuth 2.0 Authorization Server
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Central logging utilities.

Every module obtains its logger through :func:`get_logger` so that the root
logger is configured exactly once, whichever entry point (uvicorn, Alembic,
pytest) imported the package first.
"""

from __future__ import annotations

import logging
from typing import Final

from beartype import beartype

__all__: Final = [
    "configure_logging",
    "get_logger",
]

_DEFAULT_LOG_FORMAT: Final = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_ROOT_LOGGER_NAME: Final = "tenant_oauth"
_is_configured: bool = False


@beartype
def configure_logging(
    *, level: int | str | None = None, fmt: str = _DEFAULT_LOG_FORMAT
) -> None:
    """Configure the root logger exactly once.

    Later calls only adjust the package logger level, so the application
    factory can apply ``Settings.log_level`` after an import already ran the
    default configuration.
    """
    global _is_configured
    if _is_configured:
        if level is not None:
            logging.getLogger(_ROOT_LOGGER_NAME).setLevel(level)
        return

    logging.basicConfig(level=level or logging.INFO, format=fmt)
    if level is not None:
        logging.getLogger(_ROOT_LOGGER_NAME).setLevel(level)
    _is_configured = True


@beartype
def get_logger(name: str | None = None, *, level: int | None = None) -> logging.Logger:
    """Return a module-scoped logger that is guaranteed to be configured."""
    configure_logging()
    logger = logging.getLogger(name or _ROOT_LOGGER_NAME)
    if level is not None:
        logger.setLevel(level)
    return logger
