#    typing.py
#        Some typing helpers
#
#   - License : MIT - See LICENSE file.
#   - Project :  Himmel (ELF and core dump analyzer)
#
#   Copyright (c) 2025 Himmel Developers

__all__ = ['Self', 'List', 'Set', 'Dict', 'Union', 'Optional', 'Any', 'cast', 'Iterable', 'Iterator',
           'Sequence', 'Callable', 'TypedDict', 'Literal', 'BinaryIO',
           'TypeVar', 'TYPE_CHECKING', 'Generator', 'Tuple', 'Type']

import sys

if sys.version_info >= (3, 11):
    from typing import Self
else:
    # setup.py installs typing_extensions on python < 3.11
    from typing_extensions import Self

from typing import (
    List,
    Set,
    Dict,
    Union,
    Optional,
    Any,
    cast,
    Iterable,
    Iterator,
    Sequence,
    Callable,
    TypedDict,
    Literal,
    BinaryIO,
    TypeVar,
    TYPE_CHECKING,
    Generator,
    Tuple,
    Type,
)
