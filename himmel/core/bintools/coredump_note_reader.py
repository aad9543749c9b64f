#    coredump_note_reader.py
#        Extracts the per-thread NOTE data of an ELF core dump
#
#   - License : MIT - See LICENSE file.
#   - Project :  Himmel (ELF and core dump analyzer)
#
#   Copyright (c) 2025 Himmel Developers

__all__ = ['CoredumpNoteReader']

import logging

from himmel.core.analysis_result import ThreadInfo, CoredumpInfo
from himmel.core.basic_types import *
from himmel.core.bintools.elf_structure_reader import ElfStructureReader
from himmel.exceptions import NotACoreDumpError
from himmel import tools

from himmel.tools.typing import *


class CoredumpNoteReader:
    """Each PT_NOTE segment of a core dump is reported as a thread holding the raw bytes
    of the segment. The notes are not decoded."""

    PLACEHOLDER_REGISTERS_SIZE = 64

    reader: ElfStructureReader
    logger: logging.Logger

    def __init__(self, reader: ElfStructureReader) -> None:
        self.reader = reader
        self.logger = logging.getLogger(self.__class__.__name__)

        file_kind = reader.get_file_kind()
        if file_kind != FileKind.core_dump:
            raise NotACoreDumpError(f"File is not a core dump. Object type is {file_kind.value}", role=reader.role, source=reader.source)

    def iter_note_slices(self) -> Generator[bytes, None, None]:
        """Yields the content of each PT_NOTE segment that lies within the file and is not empty"""
        data = self.reader.data
        for segment in self.reader.iter_segments():
            try:
                if segment['p_type'] != 'PT_NOTE':
                    continue
                start = int(segment['p_offset'])
                end = start + int(segment['p_filesz'])
            except Exception as e:
                tools.log_exception(self.logger, e, "Cannot read a program header", str_level=logging.WARNING)
                continue

            if end > len(data):
                self.logger.warning(f"NOTE segment [0x{start:x}, 0x{end:x}) goes past the end of the file (0x{len(data):x} bytes). Skipped")
                continue

            if end == start:
                self.logger.debug(f"Empty NOTE segment at offset 0x{start:x}")
                continue

            yield data[start:end]

    def read_threads(self) -> Tuple[ThreadInfo, ...]:
        threads: List[ThreadInfo] = []
        for note_data in self.iter_note_slices():
            threads.append(ThreadInfo(thread_id=len(threads), registers=note_data))

        if len(threads) == 0:
            self.logger.info("No usable NOTE segment. Reporting a single thread with empty registers")
            threads.append(ThreadInfo(thread_id=0, registers=bytes(self.PLACEHOLDER_REGISTERS_SIZE)))

        return tuple(threads)

    def get_coredump_info(self) -> CoredumpInfo:
        return CoredumpInfo(
            architecture=self.reader.get_architecture(),
            threads=self.read_threads()
        )
