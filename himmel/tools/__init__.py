#    __init__.py
#        Small helpers used across the project
#
#   - License : MIT - See LICENSE file.
#   - Project :  Himmel (ELF and core dump analyzer)
#
#   Copyright (c) 2025 Himmel Developers

__all__ = [
    'format_exception',
    'log_exception',
]

import traceback
import logging

from himmel.tools.typing import *


def format_exception(e: BaseException) -> str:
    return ''.join(traceback.format_exception(type(e), e, e.__traceback__))


def log_exception(logger: logging.Logger,
                  exc: BaseException,
                  msg: Optional[str] = None,
                  str_level: Optional[int] = logging.ERROR,
                  traceback_level: Optional[int] = logging.DEBUG) -> None:
    """Log an exception message at ``str_level`` and its stack trace at ``traceback_level``.
    Passing ``None`` for a level disables that part"""
    if str_level is not None:
        if logger.isEnabledFor(str_level):
            if msg is not None:
                error_str = f"{msg}\n  Underlying error: {exc}"
            else:
                error_str = str(exc)
            logger.log(str_level, error_str)

    if traceback_level is not None:
        if logger.isEnabledFor(traceback_level):
            logger.log(traceback_level, format_exception(exc))
