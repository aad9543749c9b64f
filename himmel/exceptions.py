#    exceptions.py
#        Errors reported to the caller of an analysis
#
#   - License : MIT - See LICENSE file.
#   - Project :  Himmel (ELF and core dump analyzer)
#
#   Copyright (c) 2025 Himmel Developers

__all__ = [
    'AnalysisError',
    'InputUnreadableError',
    'NotAnElfBinaryError',
    'NotACoreDumpError',
    'AnalysisFailedError',
]

from himmel.tools.typing import *

if TYPE_CHECKING:
    from himmel.core.analysis_result import AnalysisResult


class AnalysisError(Exception):
    """Base class of the errors that abort the analysis of a single input file"""

    ROLE_ELF = 'elf'
    ROLE_CORE = 'core'

    role: str
    """Which input failed. ``elf`` or ``core``"""
    source: str
    """The path of the input, or ``<bytes>`` when the data was given in memory"""

    def __init__(self, msg: str, role: str = ROLE_ELF, source: str = '<bytes>') -> None:
        super().__init__(msg)
        self.role = role
        self.source = source

    def __str__(self) -> str:
        return f"[{self.role}] {self.source}: {super().__str__()}"


class InputUnreadableError(AnalysisError):
    pass


class NotAnElfBinaryError(AnalysisError):
    pass


class NotACoreDumpError(AnalysisError):
    pass


class AnalysisFailedError(Exception):
    """Raised when at least one supplied input could not be analyzed.
    The analyses that succeeded are still available in ``partial_result``"""

    failures: List[AnalysisError]
    partial_result: "AnalysisResult"

    def __init__(self, failures: List[AnalysisError], partial_result: "AnalysisResult") -> None:
        super().__init__('; '.join([str(failure) for failure in failures]))
        self.failures = failures
        self.partial_result = partial_result
