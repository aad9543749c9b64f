#    test_analysis_result.py
#        Test the analysis records, their validation and their JSON serialization
#
#   - License : MIT - See LICENSE file.
#   - Project :  Himmel (ELF and core dump analyzer)
#
#   Copyright (c) 2025 Himmel Developers

import json

from test import HimmelUnitTest
from himmel.core.analysis_result import *
from himmel.core.basic_types import *


def make_elf_info() -> ElfInfo:
    member = MemberInfo(name='next', offset=8, type_info=UNRESOLVED_TYPE)
    struct = TypeInfo(name='node', size=16, kind=TypeKind.struct, members=(member,))
    param = VariableInfo(name='argc', address=None, offset=None, type_info=UNRESOLVED_TYPE, scope=VariableScope.PARAMETER)
    return ElfInfo(
        architecture=Architecture.x86_64,
        entry_point=0x401000,
        sections=('', '.text', '.debug_info', '.shstrtab'),
        file_type=FileKind.executable,
        endianness=Endianness.Little,
        functions=(
            FunctionInfo(name='main', address=0x401100, size=0x40, parameters=(param,), return_type=RETURN_TYPE),
            FunctionInfo(name='<unknown>', address=0, size=None, parameters=(), return_type=None),
        ),
        variables=(
            VariableInfo(name='counter', address=0x601040, offset=None, type_info=UNRESOLVED_TYPE, scope=VariableScope.GLOBAL),
            VariableInfo(name='ext', address=None, offset=None, type_info=VOID_TYPE, scope=VariableScope.GLOBAL),
        ),
        types=(struct, TypeInfo(name='<anonymous>', size=None, kind=TypeKind.union)),
    )


def make_coredump_info() -> CoredumpInfo:
    return CoredumpInfo(
        architecture=Architecture.aarch64,
        threads=(ThreadInfo(thread_id=0, registers=b'\x00\x01\xff'), ThreadInfo(thread_id=1, registers=bytes(64)))
    )


class TestAnalysisResult(HimmelUnitTest):

    def test_round_trip(self):
        for result in [
            AnalysisResult(),
            AnalysisResult(elf_info=make_elf_info()),
            AnalysisResult(coredump_info=make_coredump_info()),
            AnalysisResult(elf_info=make_elf_info(), coredump_info=make_coredump_info()),
        ]:
            with self.subTest(result=result):
                self.assertEqual(AnalysisResult.from_json(result.to_json()), result)
                self.assertEqual(AnalysisResult.from_json(result.to_json().encode('utf8')), result)
                self.assertEqual(AnalysisResult.from_dict(result.to_dict()), result)

    def test_absent_vs_empty(self):
        result = AnalysisResult(elf_info=ElfInfo(
            architecture=Architecture.unknown,
            entry_point=0,
            sections=(),
            file_type=FileKind.unknown,
            endianness=Endianness.Big
        ))
        d = json.loads(result.to_json())
        self.assertIsNone(d['coredump_info'])
        self.assertEqual(d['elf_info']['sections'], [])
        self.assertEqual(d['elf_info']['functions'], [])
        self.assertEqual(d['elf_info']['variables'], [])
        self.assertEqual(d['elf_info']['types'], [])

        parsed = AnalysisResult.from_json(result.to_json())
        self.assertIsNone(parsed.coredump_info)
        self.assertIsNotNone(parsed.elf_info)
        self.assertEqual(parsed.elf_info.functions, ())

    def test_wire_format(self):
        d = json.loads(AnalysisResult(elf_info=make_elf_info(), coredump_info=make_coredump_info()).to_json())

        self.assertEqual(list(d.keys()), ['elf_info', 'coredump_info'])
        elf = d['elf_info']
        self.assertEqual(list(elf.keys()), ['architecture', 'entry_point', 'sections', 'file_type', 'endianness', 'functions', 'variables', 'types'])
        self.assertEqual(elf['architecture'], 'x86_64')
        self.assertEqual(elf['entry_point'], 4198400)
        self.assertEqual(elf['file_type'], 'executable')
        self.assertEqual(elf['endianness'], 'little_endian')

        main = elf['functions'][0]
        self.assertEqual(list(main.keys()), ['name', 'address', 'size', 'parameters', 'return_type'])
        self.assertEqual(main['return_type'], {'name': '<return_type>', 'size': None, 'kind': 'unknown', 'members': []})
        self.assertEqual(main['parameters'][0]['scope'], 'parameter')
        self.assertIsNone(elf['functions'][1]['return_type'])
        self.assertIsNone(elf['functions'][1]['size'])

        var = elf['variables'][0]
        self.assertEqual(list(var.keys()), ['name', 'address', 'offset', 'type_info', 'scope'])
        self.assertEqual(var['scope'], 'global')
        self.assertIsNone(var['offset'])
        self.assertEqual(elf['variables'][1]['type_info']['name'], 'void')

        node = elf['types'][0]
        self.assertEqual(node['kind'], 'struct')
        self.assertEqual(node['members'][0], {'name': 'next', 'offset': 8, 'type_info': {'name': 'unknown', 'size': None, 'kind': 'basic', 'members': []}})

        core = d['coredump_info']
        self.assertEqual(core['architecture'], 'aarch64')
        self.assertEqual(core['threads'][0], {'thread_id': 0, 'registers': [0, 1, 255]})
        self.assertEqual(core['threads'][1]['registers'], [0] * 64)

    def test_to_json_is_deterministic(self):
        result = AnalysisResult(elf_info=make_elf_info(), coredump_info=make_coredump_info())
        self.assertEqual(result.to_json(), result.to_json())
        self.assertEqual(result.to_json(), AnalysisResult.from_json(result.to_json()).to_json())
        self.assertIn('\n    "elf_info"', result.to_json())     # 4 spaces indent

    def test_from_dict_rejects_malformed(self):
        good = AnalysisResult(elf_info=make_elf_info(), coredump_info=make_coredump_info()).to_dict()

        with self.assertRaises(TypeError):
            AnalysisResult.from_dict([])

        bad = json.loads(json.dumps(good))
        del bad['elf_info']['entry_point']
        with self.assertRaises(ValueError):
            AnalysisResult.from_dict(bad)

        bad = json.loads(json.dumps(good))
        bad['elf_info']['architecture'] = 'z80'
        with self.assertRaises(ValueError):
            AnalysisResult.from_dict(bad)

        bad = json.loads(json.dumps(good))
        bad['elf_info']['functions'] = 'main'
        with self.assertRaises(TypeError):
            AnalysisResult.from_dict(bad)

        bad = json.loads(json.dumps(good))
        bad['coredump_info']['threads'] = []
        with self.assertRaises(ValueError):
            AnalysisResult.from_dict(bad)

        bad = json.loads(json.dumps(good))
        bad['coredump_info']['threads'][0]['registers'] = [256]
        with self.assertRaises(ValueError):
            AnalysisResult.from_dict(bad)

    def test_validation(self):
        with self.assertRaises(TypeError):
            TypeInfo(name=1, size=None, kind=TypeKind.basic)
        with self.assertRaises(ValueError):
            TypeInfo(name='t', size=-1, kind=TypeKind.basic)
        with self.assertRaises(TypeError):
            TypeInfo(name='t', size=None, kind='basic')
        with self.assertRaises(TypeError):
            TypeInfo(name='t', size=None, kind=TypeKind.struct, members=[])
        with self.assertRaises(ValueError):
            FunctionInfo(name='f', address=-1, size=None, parameters=(), return_type=None)
        with self.assertRaises(ValueError):
            ThreadInfo(thread_id=-1, registers=b'')
        with self.assertRaises(TypeError):
            ThreadInfo(thread_id=0, registers=bytearray())
        with self.assertRaises(ValueError):
            CoredumpInfo(architecture=Architecture.arm, threads=())

    def test_records_are_immutable(self):
        info = make_elf_info()
        with self.assertRaises(Exception):
            info.entry_point = 0
        self.assertIsInstance(info.functions, tuple)

    def test_from_facts(self):
        facts = BinaryFacts(
            architecture=Architecture.riscv,
            file_kind=FileKind.shared_object,
            endianness=Endianness.Little,
            entry_point=0x10,
            sections=('', '.text')
        )
        info = ElfInfo.from_facts(facts)
        self.assertEqual(info.architecture, Architecture.riscv)
        self.assertEqual(info.file_type, FileKind.shared_object)
        self.assertEqual(info.sections, ('', '.text'))
        self.assertEqual(info.functions, ())

        symbols = DwarfSymbols(types=(TypeInfo(name='t', size=1, kind=TypeKind.basic),))
        info = ElfInfo.from_facts(facts, symbols)
        self.assertEqual(info.types, symbols.types)
        self.assertEqual(info.entry_point, 0x10)


if __name__ == '__main__':
    import unittest
    unittest.main()
