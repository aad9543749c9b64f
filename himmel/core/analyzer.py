#    analyzer.py
#        Entry points of the analysis. Combines the structural facts of an ELF file with its
#        debug symbols, and analyzes core dumps.
#
#   - License : MIT - See LICENSE file.
#   - Project :  Himmel (ELF and core dump analyzer)
#
#   Copyright (c) 2025 Himmel Developers

__all__ = [
    'analyze_elf_from_bytes',
    'analyze_coredump_from_bytes',
    'analyze_files_from_bytes',
    'analyze_elf',
    'analyze_coredump',
    'analyze_files',
    'extract_dwarf_symbols',
    'to_json',
]

import logging
import functools

from himmel.core.analysis_result import *
from himmel.core.bintools.elf_structure_reader import ElfStructureReader
from himmel.core.bintools.dwarf_section_loader import DwarfSectionLoader
from himmel.core.bintools.die_tree_walker import DieTreeWalker
from himmel.core.bintools.coredump_note_reader import CoredumpNoteReader
from himmel.exceptions import *
from himmel import tools

from himmel.tools.typing import *

BYTES_SOURCE = '<bytes>'

# (source name, data getter)
InputGetter = Tuple[str, Callable[[], bytes]]

logger = logging.getLogger('analyzer')


def extract_dwarf_symbols(reader: ElfStructureReader) -> DwarfSymbols:
    """Run the DWARF stage over an already opened ELF file. Empty when there is no debug information"""
    dwarfinfo = DwarfSectionLoader(reader).make_dwarfinfo()
    if dwarfinfo is None:
        logger.debug(f"{reader.source}: No debug information")
        return DwarfSymbols()
    return DieTreeWalker(dwarfinfo).walk()


def analyze_elf_from_bytes(data: bytes, with_dwarf: bool = True, source: str = BYTES_SOURCE) -> ElfInfo:
    """Analyze an ELF object held in memory.

    :param data: The content of the ELF file
    :param with_dwarf: When ``False``, only the headers are read and the symbol lists are left empty
    :param source: Name of the input used in the error messages

    :raise NotAnElfBinaryError: If the data is not an ELF object
    """
    reader = ElfStructureReader(data, role=AnalysisError.ROLE_ELF, source=source)
    facts = reader.get_binary_facts()

    symbols: Optional[DwarfSymbols] = None
    if with_dwarf:
        try:
            symbols = extract_dwarf_symbols(reader)
        except Exception as e:
            # The debug symbols only decorate the result. The structural facts stand on their own
            tools.log_exception(logger, e, f"{source}: Failed to read the debug symbols", str_level=logging.WARNING)
            symbols = None

    return ElfInfo.from_facts(facts, symbols)


def analyze_coredump_from_bytes(data: bytes, source: str = BYTES_SOURCE) -> CoredumpInfo:
    """Analyze a core dump held in memory.

    :raise NotAnElfBinaryError: If the data is not an ELF object
    :raise NotACoreDumpError: If the data is an ELF object, but not a core dump
    """
    reader = ElfStructureReader(data, role=AnalysisError.ROLE_CORE, source=source)
    return CoredumpNoteReader(reader).get_coredump_info()


def _analyze_inputs(elf_input: Optional[InputGetter],
                    core_input: Optional[InputGetter],
                    with_dwarf: bool) -> AnalysisResult:
    """Run each supplied analysis independently. Reading an input is part of its analysis"""
    failures: List[AnalysisError] = []
    elf_info: Optional[ElfInfo] = None
    coredump_info: Optional[CoredumpInfo] = None

    if elf_input is not None:
        source, get_data = elf_input
        try:
            elf_info = analyze_elf_from_bytes(get_data(), with_dwarf=with_dwarf, source=source)
        except AnalysisError as e:
            failures.append(e)

    if core_input is not None:
        source, get_data = core_input
        try:
            coredump_info = analyze_coredump_from_bytes(get_data(), source=source)
        except AnalysisError as e:
            failures.append(e)

    result = AnalysisResult(elf_info=elf_info, coredump_info=coredump_info)
    if len(failures) > 0:
        raise AnalysisFailedError(failures, partial_result=result)
    return result


def analyze_files_from_bytes(elf_data: Optional[bytes] = None,
                             core_data: Optional[bytes] = None,
                             with_dwarf: bool = True) -> AnalysisResult:
    """Analyze an ELF file and/or a core dump held in memory. An input that is not given
    leaves its part of the result to ``None``.

    :raise AnalysisFailedError: If any of the given inputs cannot be analyzed. The analyses that
        succeeded are available in ``partial_result``
    """
    elf_input: Optional[InputGetter] = None
    core_input: Optional[InputGetter] = None
    if elf_data is not None:
        elf_input = (BYTES_SOURCE, functools.partial(bytes, elf_data))
    if core_data is not None:
        core_input = (BYTES_SOURCE, functools.partial(bytes, core_data))
    return _analyze_inputs(elf_input, core_input, with_dwarf)


def _read_file(path: str, role: str) -> bytes:
    try:
        with open(path, 'rb') as f:
            return f.read()
    except OSError as e:
        kind = 'ELF' if role == AnalysisError.ROLE_ELF else 'core dump'
        raise InputUnreadableError(f"Failed to read {kind} file. {e.strerror or e}", role=role, source=path)


def analyze_elf(path: str, with_dwarf: bool = True) -> ElfInfo:
    """Analyze the ELF file at ``path``

    :raise InputUnreadableError: If the file cannot be read
    :raise NotAnElfBinaryError: If the file is not an ELF object
    """
    data = _read_file(path, AnalysisError.ROLE_ELF)
    return analyze_elf_from_bytes(data, with_dwarf=with_dwarf, source=path)


def analyze_coredump(path: str) -> CoredumpInfo:
    data = _read_file(path, AnalysisError.ROLE_CORE)
    return analyze_coredump_from_bytes(data, source=path)


def analyze_files(elf_path: Optional[str] = None,
                  core_path: Optional[str] = None,
                  with_dwarf: bool = True) -> AnalysisResult:
    """Same as :func:`analyze_files_from_bytes` with inputs read from the filesystem"""
    elf_input: Optional[InputGetter] = None
    core_input: Optional[InputGetter] = None
    if elf_path is not None:
        elf_input = (elf_path, functools.partial(_read_file, elf_path, AnalysisError.ROLE_ELF))
    if core_path is not None:
        core_input = (core_path, functools.partial(_read_file, core_path, AnalysisError.ROLE_CORE))
    return _analyze_inputs(elf_input, core_input, with_dwarf)


def to_json(result: AnalysisResult) -> str:
    return result.to_json()
