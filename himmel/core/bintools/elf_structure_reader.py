#    elf_structure_reader.py
#        Decodes the ELF header, the section header table and the program header table
#        of an in-memory binary.
#
#   - License : MIT - See LICENSE file.
#   - Project :  Himmel (ELF and core dump analyzer)
#
#   Copyright (c) 2025 Himmel Developers

__all__ = ['ElfStructureReader']

from elftools.common.exceptions import ELFError
from elftools.elf.elffile import ELFFile
from elftools.elf.sections import Section
from elftools.elf.segments import Segment

import io
import logging

from himmel.core.analysis_result import BinaryFacts
from himmel.core.basic_types import *
from himmel.exceptions import AnalysisError, NotAnElfBinaryError
from himmel import tools

from himmel.tools.typing import *


class ElfStructureReader:
    """Reads the structural tables of an ELF object held in memory.
    The buffer is only read, never copied nor modified."""

    ELF_MAGIC = b'\x7fELF'
    EI_NIDENT = 16
    EI_CLASS = 4
    EI_DATA = 5
    ELFCLASS32 = 1
    ELFCLASS64 = 2
    ELFDATA2LSB = 1
    ELFDATA2MSB = 2
    MIN_HEADER_SIZE: Dict[int, int] = {
        ELFCLASS32: 52,
        ELFCLASS64: 64
    }
    SHN_UNDEF = 0
    SHN_XINDEX = 0xffff
    UNNAMED_SECTION = 'unnamed'

    data: bytes
    role: str
    source: str
    elffile: ELFFile
    endianness: Endianness
    logger: logging.Logger
    _sections: Optional[List[Tuple[int, str, Optional[Section]]]]
    _sections_by_name: Dict[str, Section]

    def __init__(self, data: bytes, role: str = AnalysisError.ROLE_ELF, source: str = '<bytes>') -> None:
        self.logger = logging.getLogger(self.__class__.__name__)
        self.data = bytes(data)
        self.role = role
        self.source = source
        self._sections = None
        self._sections_by_name = {}
        self.endianness = self._check_identification()

        try:
            self.elffile = ELFFile(io.BytesIO(self.data))
        except Exception as e:
            # pyelftools reports most problems as ELFError, but a corrupted header can also trip its struct parser
            raise NotAnElfBinaryError(f"File is not a valid ELF binary. {e}", role=self.role, source=self.source)

    def _fail(self, msg: str) -> NotAnElfBinaryError:
        return NotAnElfBinaryError(msg, role=self.role, source=self.source)

    def _check_identification(self) -> Endianness:
        """Validates the ``e_ident`` bytes before handing the buffer to pyelftools. Returns the endianness"""
        if len(self.data) < self.EI_NIDENT:
            raise self._fail(f"File is not a valid ELF binary. Too small ({len(self.data)} bytes)")

        if self.data[0:4] != self.ELF_MAGIC:
            raise self._fail("File is not a valid ELF binary. Bad magic")

        elfclass = self.data[self.EI_CLASS]
        if elfclass not in self.MIN_HEADER_SIZE:
            raise self._fail(f"File is not a valid ELF binary. Invalid EI_CLASS {elfclass}")

        if len(self.data) < self.MIN_HEADER_SIZE[elfclass]:
            raise self._fail(f"File is not a valid ELF binary. Header is truncated ({len(self.data)} bytes)")

        eidata = self.data[self.EI_DATA]
        if eidata == self.ELFDATA2LSB:
            return Endianness.Little
        if eidata == self.ELFDATA2MSB:
            return Endianness.Big
        raise self._fail(f"File is not a valid ELF binary. Invalid EI_DATA {eidata}")

    def get_architecture(self) -> Architecture:
        return Architecture.from_machine(self.elffile['e_machine'])

    def get_file_kind(self) -> FileKind:
        return FileKind.from_elf_type(self.elffile['e_type'])

    def get_entry_point(self) -> int:
        return int(self.elffile['e_entry'])

    def get_address_size(self) -> int:
        """Size in bytes of an address for this ELF class"""
        return int(self.elffile.elfclass) // 8

    def _get_shstrtab_size(self) -> Optional[int]:
        """Size of the section name string table. ``None`` if there is none or if it cannot be read"""
        try:
            shstrndx = int(self.elffile['e_shstrndx'])
            if shstrndx == self.SHN_XINDEX:
                shstrndx = int(self.elffile.get_section(0)['sh_link'])
            if shstrndx == self.SHN_UNDEF:
                return None
            return int(self.elffile.get_section(shstrndx)['sh_size'])
        except Exception as e:
            tools.log_exception(self.logger, e, "Cannot read the section name string table", str_level=logging.WARNING)
            return None

    def _read_section_table(self) -> List[Tuple[int, str, Optional[Section]]]:
        entries: List[Tuple[int, str, Optional[Section]]] = []
        try:
            nb_sections = self.elffile.num_sections()
        except Exception as e:
            tools.log_exception(self.logger, e, "Cannot read the number of sections", str_level=logging.WARNING)
            return entries

        shstrtab_size = self._get_shstrtab_size() if nb_sections > 0 else None
        for i in range(nb_sections):
            try:
                section = self.elffile.get_section(i)
                # pyelftools gives an empty name for an offset outside of the string table
                sh_name = int(section['sh_name'])
                if shstrtab_size is None or sh_name >= shstrtab_size:
                    raise ELFError(f"Name offset 0x{sh_name:x} of section #{i} is outside of the string table")
                name = section.name
                if not isinstance(name, str):
                    raise ELFError(f"Bad name for section #{i}")
            except Exception as e:
                tools.log_exception(self.logger, e, f"Cannot read section #{i}", str_level=logging.WARNING)
                entries.append((i, self.UNNAMED_SECTION, None))
                continue

            entries.append((i, name, section))
        return entries

    def iter_sections(self) -> Generator[Tuple[int, str, Optional[Section]], None, None]:
        """Yields ``(index, name, section)`` for each entry of the section header table.
        A section that cannot be decoded, or whose name cannot be found, is reported as ``unnamed`` with no section object.
        The table is decoded on the first call only"""
        if self._sections is None:
            self._sections = self._read_section_table()
            self._sections_by_name = {}
            for _, name, section in self._sections:
                if section is not None and name not in self._sections_by_name:
                    self._sections_by_name[name] = section

        for entry in self._sections:
            yield entry

    def get_section_names(self) -> Tuple[str, ...]:
        return tuple([name for _, name, _ in self.iter_sections()])

    def get_section_by_name(self, name: str) -> Optional[Section]:
        """Return the first section with the given name. ``None`` if there is none"""
        if self._sections is None:
            for _ in self.iter_sections():
                pass
        return self._sections_by_name.get(name, None)

    def iter_segments(self) -> Generator[Segment, None, None]:
        """Yields each program header that can be decoded, in table order"""
        try:
            nb_segments = self.elffile.num_segments()
        except Exception as e:
            tools.log_exception(self.logger, e, "Cannot read the number of segments", str_level=logging.WARNING)
            return

        for i in range(nb_segments):
            try:
                segment = self.elffile.get_segment(i)
            except Exception as e:
                tools.log_exception(self.logger, e, f"Cannot read program header #{i}", str_level=logging.WARNING)
                continue
            yield segment

    def get_binary_facts(self) -> BinaryFacts:
        facts = BinaryFacts(
            architecture=self.get_architecture(),
            file_kind=self.get_file_kind(),
            endianness=self.endianness,
            entry_point=self.get_entry_point(),
            sections=self.get_section_names()
        )
        self.logger.debug(f"{self.source}: {facts.architecture.value} {facts.file_kind.value} {facts.endianness.value}, {len(facts.sections)} sections")
        return facts
