#    test_cli.py
#        Test the Command Line Interface
#
#   - License : MIT - See LICENSE file.
#   - Project :  Himmel (ELF and core dump analyzer)
#
#   Copyright (c) 2025 Himmel Developers

import os
import tempfile
import json
import sys
from io import StringIO

import himmel
from himmel.cli import CLI
from test import HimmelUnitTest
from test.elf_builder import *


class RedirectStdout:
    def __enter__(self):
        self.old_stdout = sys.stdout
        sys.stdout = self.mystdout = StringIO()
        return self

    def __exit__(self, *args):
        sys.stdout = self.old_stdout

    def read(self):
        return self.mystdout.getvalue()


def make_elf() -> bytes:
    dwarf = DwarfBuilder()
    dwarf.add_unit(Die(DW.TAG_compile_unit, [], children=[
        Die(DW.TAG_subprogram, [
            (DW.AT_name, DW.FORM_string, 'main'),
            (DW.AT_low_pc, DW.FORM_addr, 0x1000),
            (DW.AT_high_pc, DW.FORM_data4, 0x20),
        ]),
    ]))
    builder = ElfBuilder(e_entry=0x1000)
    builder.add_section('.text', b'\x90' * 16)
    builder.add_dwarf(dwarf)
    return builder.build()


def make_core() -> bytes:
    builder = ElfBuilder(e_type=ET_CORE)
    builder.add_segment(PT_NOTE, b'\x01\x02\x03\x04')
    return builder.build()


class TestCLI(HimmelUnitTest):

    def write_file(self, dirname: str, filename: str, data: bytes) -> str:
        path = os.path.join(dirname, filename)
        with open(path, 'wb') as f:
            f.write(data)
        return path

    def test_version(self):
        cli = CLI()
        with RedirectStdout() as stdout:
            code = cli.run(['version', '--format', 'short'])
        self.assertEqual(code, 0)
        self.assertEqual(stdout.read().strip(), himmel.__version__)

        with RedirectStdout() as stdout:
            code = cli.run(['version'])
        self.assertEqual(code, 0)
        self.assertIn(f"Himmel v{himmel.__version__}", stdout.read())

    def test_unknown_command(self):
        cli = CLI()
        with RedirectStdout() as stdout:
            code = cli.run(['bogus'])
        self.assertEqual(code, 1)
        self.assertIn('analyze', stdout.read())   # Help lists the commands

        with self.assertRaises(ValueError):
            cli.run(['bogus'], except_failed=True)

    def test_help(self):
        cli = CLI()
        with RedirectStdout() as stdout:
            code = cli.run(['--help'])
        self.assertEqual(code, 0)
        help_text = stdout.read()
        self.assertIn('analyze', help_text)
        self.assertIn('version', help_text)

    def test_analyze_to_file(self):
        with tempfile.TemporaryDirectory() as tempdirname:
            elf_path = self.write_file(tempdirname, 'program.elf', make_elf())
            core_path = self.write_file(tempdirname, 'program.core', make_core())
            output = os.path.join(tempdirname, 'output.json')

            cli = CLI()
            code = cli.run(['analyze', '--elf', elf_path, '--core', core_path, '--output', output], except_failed=True)
            self.assertEqual(code, 0)
            with open(output, 'r') as f:
                result = json.loads(f.read())

        self.assertEqual(result['elf_info']['architecture'], 'x86_64')
        self.assertEqual(result['elf_info']['entry_point'], 0x1000)
        self.assertEqual(result['elf_info']['file_type'], 'executable')
        self.assertIn('.text', result['elf_info']['sections'])
        self.assertEqual(len(result['elf_info']['functions']), 1)
        self.assertEqual(result['elf_info']['functions'][0]['name'], 'main')
        self.assertEqual(result['elf_info']['functions'][0]['size'], 0x20)
        self.assertEqual(result['coredump_info']['threads'], [{'thread_id': 0, 'registers': [1, 2, 3, 4]}])

    def test_analyze_to_stdout(self):
        with tempfile.TemporaryDirectory() as tempdirname:
            elf_path = self.write_file(tempdirname, 'program.elf', make_elf())
            cli = CLI()
            with RedirectStdout() as stdout:
                code = cli.run(['analyze', '--elf', elf_path, '--no-dwarf'], except_failed=True)

        self.assertEqual(code, 0)
        result = json.loads(stdout.read())
        self.assertIsNone(result['coredump_info'])
        self.assertEqual(result['elf_info']['functions'], [])
        self.assertEqual(result['elf_info']['variables'], [])
        self.assertEqual(result['elf_info']['types'], [])

    def test_analyze_relative_to_workdir(self):
        with tempfile.TemporaryDirectory() as tempdirname:
            self.write_file(tempdirname, 'program.core', make_core())
            cli = CLI(tempdirname)
            code = cli.run(['analyze', '--core', 'program.core', '--output', 'out.json'])
            self.assertEqual(code, 0)
            with open(os.path.join(tempdirname, 'out.json'), 'r') as f:
                result = json.loads(f.read())
        self.assertIsNone(result['elf_info'])
        self.assertEqual(result['coredump_info']['architecture'], 'x86_64')

    def test_analyze_nothing(self):
        cli = CLI()
        with self.assertLogs('CLI', level='ERROR'):
            code = cli.run(['analyze'])
        self.assertEqual(code, 1)

    def test_analyze_bad_files(self):
        with tempfile.TemporaryDirectory() as tempdirname:
            not_elf = self.write_file(tempdirname, 'not_elf.bin', b'hello')
            missing = os.path.join(tempdirname, 'missing.elf')
            output = os.path.join(tempdirname, 'output.json')

            cli = CLI()
            for path in (not_elf, missing):
                with self.subTest(path=path):
                    with self.assertLogs('Analyze', level='ERROR'):
                        code = cli.run(['analyze', '--elf', path, '--output', output])
                    self.assertEqual(code, 1)
                    self.assertFalse(os.path.exists(output))

    def test_analyze_partial_failure(self):
        with tempfile.TemporaryDirectory() as tempdirname:
            elf_path = self.write_file(tempdirname, 'program.elf', make_elf())
            not_a_core = self.write_file(tempdirname, 'not_a_core.bin', make_minimal_header())
            output = os.path.join(tempdirname, 'output.json')

            cli = CLI()
            with self.assertLogs('Analyze', level='ERROR'):
                code = cli.run(['analyze', '--elf', elf_path, '--core', not_a_core, '--output', output])
            self.assertEqual(code, 1)
            with open(output, 'r') as f:
                result = json.loads(f.read())

        self.assertIsNotNone(result['elf_info'])
        self.assertIsNone(result['coredump_info'])

    def test_bad_log_level(self):
        cli = CLI()
        with RedirectStdout():
            code = cli.run(['version', '--loglevel', 'not_a_level'])
        self.assertEqual(code, 1)


if __name__ == '__main__':
    import unittest
    unittest.main()
