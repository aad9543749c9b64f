#    test_coredump_note_reader.py
#        Test the extraction of the threads of a core dump
#
#   - License : MIT - See LICENSE file.
#   - Project :  Himmel (ELF and core dump analyzer)
#
#   Copyright (c) 2025 Himmel Developers

from test import HimmelUnitTest
from test.elf_builder import *
from himmel.core.bintools.elf_structure_reader import ElfStructureReader
from himmel.core.bintools.coredump_note_reader import CoredumpNoteReader
from himmel.core.analysis_result import ThreadInfo
from himmel.core.basic_types import *
from himmel.exceptions import NotACoreDumpError, AnalysisError


def make_reader(builder: ElfBuilder) -> CoredumpNoteReader:
    return CoredumpNoteReader(ElfStructureReader(builder.build(), role=AnalysisError.ROLE_CORE, source='core'))


class TestCoredumpNoteReader(HimmelUnitTest):

    def test_not_a_core_dump(self):
        for e_type in (ET_EXEC, ET_DYN, ET_REL, 0):
            with self.subTest(e_type=e_type):
                builder = ElfBuilder(e_type=e_type)
                builder.add_segment(PT_NOTE, b'\x01' * 16)
                with self.assertRaises(NotACoreDumpError) as cm:
                    make_reader(builder)
                self.assertEqual(cm.exception.role, 'core')
                self.assertEqual(cm.exception.source, 'core')

    def test_single_note(self):
        note = bytes(range(1, 201))
        builder = ElfBuilder(e_type=ET_CORE, e_machine=EM_AARCH64)
        builder.add_segment(PT_NOTE, note)
        info = make_reader(builder).get_coredump_info()

        self.assertEqual(info.architecture, Architecture.aarch64)
        self.assertEqual(info.threads, (ThreadInfo(thread_id=0, registers=note),))

    def test_multiple_notes_in_order(self):
        builder = ElfBuilder(e_type=ET_CORE)
        builder.add_segment(PT_LOAD, b'\xAA' * 32)
        builder.add_segment(PT_NOTE, b'\x01' * 10)
        builder.add_segment(PT_LOAD, b'\xBB' * 32)
        builder.add_segment(PT_NOTE, b'\x02' * 20)
        builder.add_segment(PT_NOTE, b'\x03' * 30)
        threads = make_reader(builder).read_threads()

        self.assertEqual([t.thread_id for t in threads], [0, 1, 2])
        self.assertEqual(threads[0].registers, b'\x01' * 10)
        self.assertEqual(threads[1].registers, b'\x02' * 20)
        self.assertEqual(threads[2].registers, b'\x03' * 30)

    def test_no_note_gives_placeholder(self):
        builder = ElfBuilder(e_type=ET_CORE)
        builder.add_segment(PT_LOAD, b'\xAA' * 32)
        threads = make_reader(builder).read_threads()
        self.assertEqual(threads, (ThreadInfo(thread_id=0, registers=bytes(64)),))

        threads = make_reader(ElfBuilder(e_type=ET_CORE)).read_threads()
        self.assertEqual(threads, (ThreadInfo(thread_id=0, registers=bytes(64)),))

    def test_truncated_note_is_skipped(self):
        builder = ElfBuilder(e_type=ET_CORE)
        builder.add_segment_header(PT_NOTE, p_offset=0x40, p_filesz=0x100000)
        builder.add_segment_header(PT_NOTE, p_offset=0x100000, p_filesz=4)
        reader = make_reader(builder)

        with self.assertLogs('CoredumpNoteReader', level='WARNING'):
            threads = reader.read_threads()
        self.assertEqual(threads, (ThreadInfo(thread_id=0, registers=bytes(64)),))

    def test_ids_are_assigned_to_usable_notes_only(self):
        builder = ElfBuilder(e_type=ET_CORE)
        builder.add_segment_header(PT_NOTE, p_offset=0, p_filesz=0x100000)
        builder.add_segment(PT_NOTE, b'')
        builder.add_segment(PT_NOTE, b'\x55' * 8)
        threads = make_reader(builder).read_threads()

        self.assertEqual(threads, (ThreadInfo(thread_id=0, registers=b'\x55' * 8),))

    def test_note_ending_at_end_of_file(self):
        builder = ElfBuilder(e_type=ET_CORE)
        data = builder.build()
        # A note that covers exactly the last 8 bytes of the file
        builder = ElfBuilder(e_type=ET_CORE)
        builder.add_segment_header(PT_NOTE, p_offset=len(data) + 56 - 8, p_filesz=8)
        data = builder.build()
        self.assertEqual(len(data), 64 + 56)

        reader = CoredumpNoteReader(ElfStructureReader(data))
        threads = reader.read_threads()
        self.assertEqual(threads, (ThreadInfo(thread_id=0, registers=data[-8:]),))


if __name__ == '__main__':
    import unittest
    unittest.main()
