#    dwarf_section_loader.py
#        Finds the DWARF debug sections of an ELF object and exposes them as byte slices
#        ready to be consumed by pyelftools.
#
#   - License : MIT - See LICENSE file.
#   - Project :  Himmel (ELF and core dump analyzer)
#
#   Copyright (c) 2025 Himmel Developers

__all__ = ['DwarfSectionLoader']

from elftools.dwarf.dwarfinfo import DWARFInfo, DwarfConfig, DebugSectionDescriptor

import io
import zlib
import logging

from himmel.core.bintools.elf_structure_reader import ElfStructureReader
from himmel import tools

from himmel.tools.typing import *


class DwarfSectionLoader:
    """Loads debug sections by name. An absent section and a section that cannot be
    decompressed are both reported as an empty byte string, which means "no debug information"."""

    ZDEBUG_MAGIC = b'ZLIB'
    ZDEBUG_HEADER_SIZE = 12
    # Section name -> DWARFInfo argument that receives it
    DWARF_SECTIONS: Dict[str, str] = {
        '.debug_info': 'debug_info_sec',
        '.debug_aranges': 'debug_aranges_sec',
        '.debug_abbrev': 'debug_abbrev_sec',
        '.debug_frame': 'debug_frame_sec',
        '.eh_frame': 'eh_frame_sec',
        '.debug_str': 'debug_str_sec',
        '.debug_loc': 'debug_loc_sec',
        '.debug_ranges': 'debug_ranges_sec',
        '.debug_line': 'debug_line_sec',
        '.debug_pubtypes': 'debug_pubtypes_sec',
        '.debug_pubnames': 'debug_pubnames_sec',
        '.debug_addr': 'debug_addr_sec',
        '.debug_str_offsets': 'debug_str_offsets_sec',
        '.debug_line_str': 'debug_line_str_sec',
        '.debug_loclists': 'debug_loclists_sec',
        '.debug_rnglists': 'debug_rnglists_sec',
        '.debug_sup': 'debug_sup_sec',
        '.gnu_debugaltlink': 'gnu_debugaltlink_sec',
        '.debug_types': 'debug_types_sec',
    }

    # pyelftools fails on a string lookup when these are absent. An empty table is handled gracefully
    ALWAYS_PROVIDED = ('.debug_info', '.debug_abbrev', '.debug_str', '.debug_line_str')

    reader: ElfStructureReader
    logger: logging.Logger
    _cache: Dict[str, bytes]

    def __init__(self, reader: ElfStructureReader) -> None:
        self.reader = reader
        self.logger = logging.getLogger(self.__class__.__name__)
        self._cache = {}

    def load(self, name: str) -> bytes:
        """Return the content of a debug section such as ``.debug_info``, decompressed. Empty if not available"""
        if name not in self._cache:
            self._cache[name] = self._load_no_cache(name)
        return self._cache[name]

    def _load_no_cache(self, name: str) -> bytes:
        section = self.reader.get_section_by_name(name)
        if section is not None:
            return self._read_section_data(section, name, compressed_zdebug=False)

        if name.startswith('.debug_'):
            # Legacy GNU compression. .debug_info becomes .zdebug_info
            zname = '.z' + name[1:]
            section = self.reader.get_section_by_name(zname)
            if section is not None:
                return self._read_section_data(section, zname, compressed_zdebug=True)

        return b''

    def _read_section_data(self, section: Any, name: str, compressed_zdebug: bool) -> bytes:
        if section['sh_type'] == 'SHT_NOBITS':
            # Sections stripped to a separate debug file keep their header, without content.
            self.logger.debug(f"Section {name} has no content in the file")
            return b''

        try:
            data = bytes(section.data())    # pyelftools decompresses SHF_COMPRESSED sections
            if compressed_zdebug:
                data = self._inflate_zdebug(data)
        except Exception as e:
            tools.log_exception(self.logger, e, f"Cannot read section {name}. Treated as absent", str_level=logging.WARNING)
            return b''

        return data

    def _inflate_zdebug(self, data: bytes) -> bytes:
        if len(data) < self.ZDEBUG_HEADER_SIZE or data[0:4] != self.ZDEBUG_MAGIC:
            raise ValueError("Bad .zdebug header")
        expected_size = int.from_bytes(data[4:12], byteorder='big')
        inflated = zlib.decompress(data[self.ZDEBUG_HEADER_SIZE:])
        if len(inflated) != expected_size:
            raise ValueError(f"Decompressed size mismatch. Expected {expected_size}, got {len(inflated)}")
        return inflated

    def has_debug_info(self) -> bool:
        return len(self.load('.debug_info')) > 0

    @classmethod
    def get_section_names(cls) -> List[str]:
        """The sections given to pyelftools, in argument order"""
        return list(cls.DWARF_SECTIONS.keys())

    def make_dwarfinfo(self) -> Optional[DWARFInfo]:
        """Build a pyelftools DWARFInfo from the loaded sections. ``None`` when there is no debug information.
        DWARF fields are always interpreted as little-endian."""
        if not self.has_debug_info():
            return None

        sections: Dict[str, Optional[DebugSectionDescriptor]] = {}
        for name in self.get_section_names():
            data = self.load(name)
            param_name = self.DWARF_SECTIONS[name]
            if len(data) == 0 and name not in self.ALWAYS_PROVIDED:
                sections[param_name] = None
            else:
                sections[param_name] = DebugSectionDescriptor(
                    stream=io.BytesIO(data),
                    name=name,
                    global_offset=0,
                    size=len(data),
                    address=0
                )

        config = DwarfConfig(
            little_endian=True,
            machine_arch=self.reader.elffile.get_machine_arch(),
            default_address_size=self.reader.get_address_size()
        )

        return DWARFInfo(config=config, **sections)
