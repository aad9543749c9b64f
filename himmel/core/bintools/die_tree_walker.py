#    die_tree_walker.py
#        Walks every compile unit of a DWARF tree and dispatches the entries of interest
#        to the SymbolExtractor.
#
#   - License : MIT - See LICENSE file.
#   - Project :  Himmel (ELF and core dump analyzer)
#
#   Copyright (c) 2025 Himmel Developers

__all__ = ['DieTreeWalker', 'DieTreeEntry']

from elftools.dwarf.dwarfinfo import DWARFInfo
from elftools.dwarf.compileunit import CompileUnit
from elftools.dwarf.die import DIE

import logging
from dataclasses import dataclass

from himmel.core.analysis_result import *
from himmel.core.basic_types import *
from himmel.core.bintools.dwarf_definitions import *
from himmel.core.bintools.symbol_extractor import SymbolExtractor
from himmel.core.logging import DUMPDATA_LOGLEVEL
from himmel import tools

from himmel.tools.typing import *


@dataclass(frozen=True)
class DieTreeEntry:
    """(Immutable struct) A DIE reached by the tree walk"""
    die: DIE
    depth: int
    """0 for the unit top DIE"""
    in_subprogram: bool
    """``True`` if one of the ancestors is a subprogram"""


class DieTreeWalker:
    """Visit all the DIEs of all the compile units, in pre-order, without recursion.
    The tree depth is bounded only by the DWARF data, the call stack is not involved."""

    SUPPORTED_DWARF_VERSIONS = (2, 3, 4, 5)

    dwarfinfo: Optional[DWARFInfo]
    extractor: SymbolExtractor
    logger: logging.Logger

    _functions: List[FunctionInfo]
    _variables: List[VariableInfo]
    _types: List[TypeInfo]
    _version_warning_written: bool

    def __init__(self, dwarfinfo: Optional[DWARFInfo], extractor: Optional[SymbolExtractor] = None) -> None:
        self.dwarfinfo = dwarfinfo
        self.extractor = extractor if extractor is not None else SymbolExtractor()
        self.logger = logging.getLogger(self.__class__.__name__)
        self._reset()

    def _reset(self) -> None:
        self._functions = []
        self._variables = []
        self._types = []
        self._version_warning_written = False
        self.extractor.type_cache.clear()

    def walk(self) -> DwarfSymbols:
        """Extract the functions, global variables and types of every compile unit.
        An entry that cannot be extracted is skipped. A unit that cannot be decoded is abandoned
        where the problem is found, and the walk continues with the next unit."""
        self._reset()
        if self.dwarfinfo is None:
            return DwarfSymbols()

        for cu in self.iter_units():
            self._check_version(cu)
            try:
                for entry in self.iter_unit_entries(cu):
                    self._process_entry(entry)
            except Exception as e:
                tools.log_exception(self.logger, e, f"Cannot decode the compile unit at offset 0x{cu.cu_offset:x}. Skipping the rest of it", str_level=logging.WARNING)

        symbols = DwarfSymbols(
            functions=tuple(self._functions),
            variables=tuple(self._variables),
            types=tuple(self._types)
        )
        self.logger.debug(f"Found {len(symbols.functions)} functions, {len(symbols.variables)} variables and {len(symbols.types)} types")
        return symbols

    def iter_units(self) -> Generator[CompileUnit, None, None]:
        """Yields the compile units in order. Stops at the first unit header that cannot be decoded"""
        if self.dwarfinfo is None:
            return

        cu_iterator = self.dwarfinfo.iter_CUs()
        while True:
            try:
                cu = next(cu_iterator)
            except StopIteration:
                break
            except Exception as e:
                tools.log_exception(self.logger, e, "Cannot decode a compile unit header. Stopping the enumeration", str_level=logging.WARNING)
                break
            yield cu

    @classmethod
    def iter_unit_entries(cls, cu: CompileUnit) -> Generator[DieTreeEntry, None, None]:
        """Pre-order depth first traversal of a compile unit, starting with its top DIE.
        Errors in the DIE stream are propagated to the caller."""
        top_die = cu.get_top_DIE()
        yield DieTreeEntry(die=top_die, depth=0, in_subprogram=False)

        # Each level of the stack: (children iterator, depth of the children, children are within a subprogram)
        stack: List[Tuple[Iterator[DIE], int, bool]] = []
        if top_die.has_children:
            stack.append((top_die.iter_children(), 1, DieTag.from_die(top_die) == DieTag.subprogram))

        while len(stack) > 0:
            children, depth, in_subprogram = stack[-1]
            child = next(children, None)
            if child is None:
                stack.pop()
                continue

            yield DieTreeEntry(die=child, depth=depth, in_subprogram=in_subprogram)

            if child.has_children:
                child_in_subprogram = in_subprogram or DieTag.from_die(child) == DieTag.subprogram
                stack.append((child.iter_children(), depth + 1, child_in_subprogram))

    def _check_version(self, cu: CompileUnit) -> None:
        version = cu.header['version']
        if version not in self.SUPPORTED_DWARF_VERSIONS:
            if not self._version_warning_written:
                self._version_warning_written = True
                self.logger.warning(f"DWARF format version {version} is not supported, output may be incomplete")

    def _log_process_entry(self, entry: DieTreeEntry) -> None:
        if self.logger.isEnabledFor(DUMPDATA_LOGLEVEL):  # pragma: no cover
            pad = '|  ' * entry.depth + '|--'
            self.logger.log(DUMPDATA_LOGLEVEL, f"{pad}{SymbolExtractor.make_name_for_log(entry.die)}")

    def _process_entry(self, entry: DieTreeEntry) -> None:
        self._log_process_entry(entry)
        tag = DieTag.from_die(entry.die)
        if tag is None:
            return

        try:
            if tag == DieTag.subprogram:
                self._functions.append(self.extractor.extract_function(entry.die))
            elif tag == DieTag.variable:
                # Locals are only reachable through their function. They are not listed
                if not entry.in_subprogram:
                    self._variables.append(self.extractor.extract_variable(entry.die, VariableScope.GLOBAL))
            elif tag in (DieTag.structure_type, DieTag.union_type, DieTag.enumeration_type):
                self._types.append(self.extractor.extract_type(entry.die))
        except Exception as e:
            tools.log_exception(self.logger, e, f"Skipping {SymbolExtractor.make_name_for_log(entry.die)}", str_level=logging.WARNING)
