#    logging.py
#        Log levels and logging setup shared by the analysis engine and the CLI
#
#   - License : MIT - See LICENSE file.
#   - Project :  Himmel (ELF and core dump analyzer)
#
#   Copyright (c) 2025 Himmel Developers

__all__ = [
    'DUMPDATA_LOGLEVEL',
    'configure_logging'
]

import logging

from himmel.tools.typing import *

# Used to trace every DIE visited by the DWARF walker. Very verbose.
DUMPDATA_LOGLEVEL = logging.DEBUG - 1
logging.addLevelName(DUMPDATA_LOGLEVEL, "DUMPDATA")


def configure_logging(level_str: str, logfile: Optional[str] = None, disabled_loggers: Optional[str] = None) -> int:
    """Configure the root logger from textual options. Returns the numeric log level applied.

    :param level_str: Name of the level, case insensitive (``debug``, ``info``, ``dumpdata``, ...)
    :param logfile: Write the logs to this file instead of stderr
    :param disabled_loggers: Comma separated list of logger names to silence
    """
    level_name = level_str.strip().upper()
    logging_level = logging.getLevelName(level_name)
    if not isinstance(logging_level, int):
        raise ValueError(f"Unknown log level {level_str}")

    format_string = ""
    if logging_level <= logging.DEBUG:
        format_string += "%(relativeCreated)s "
    format_string += '[%(levelname)s] <%(name)s> %(message)s'
    logging.basicConfig(level=logging_level, filename=logfile, format=format_string)

    if disabled_loggers is not None:
        for logger_name in disabled_loggers.split(','):
            if logger_name.strip():
                logging.getLogger(logger_name.strip()).disabled = True

    return logging_level
