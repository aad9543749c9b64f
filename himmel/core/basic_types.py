#    basic_types.py
#        Contains the enumerations used project-wide. The value of each member is the string
#        written in the analysis output.
#
#   - License : MIT - See LICENSE file.
#   - Project :  Himmel (ELF and core dump analyzer)
#
#   Copyright (c) 2025 Himmel Developers

__all__ = [
    'Architecture',
    'FileKind',
    'Endianness',
    'TypeKind',
    'VariableScope'
]

from enum import Enum

from himmel.tools.typing import *


class Architecture(Enum):
    """(Enum) The CPU architecture a binary is compiled for"""

    x86_64 = 'x86_64'
    i386 = 'i386'
    aarch64 = 'aarch64'
    arm = 'arm'
    riscv = 'riscv'
    unknown = 'unknown'

    @classmethod
    def from_machine(cls, e_machine: Union[str, int]) -> "Architecture":
        """Maps the ELF ``e_machine`` field, either as the pyelftools name or as a raw code.
        Unsupported machines gives ``unknown``"""
        return _MACHINE_MAP.get(e_machine, cls.unknown)


class FileKind(Enum):
    """(Enum) The ELF object type"""

    executable = 'executable'
    shared_object = 'shared_object'
    relocatable = 'relocatable'
    core_dump = 'core_dump'
    unknown = 'unknown'

    @classmethod
    def from_elf_type(cls, e_type: Union[str, int]) -> "FileKind":
        """Maps the ELF ``e_type`` field, either as the pyelftools name or as a raw code."""
        return _ELF_TYPE_MAP.get(e_type, cls.unknown)


class Endianness(Enum):
    """(Enum) Represent an data storage endianness"""

    Little = 'little_endian'
    """Litle endian. 0x12345678 is stored as 78 56 34 12 """

    Big = 'big_endian'
    """Big endian. 0x12345678 is stored as 12 34 56 78 """


class TypeKind(Enum):
    """(Enum) The family of a type described by the debug symbols"""

    basic = 'basic'
    struct = 'struct'
    enum = 'enum'
    union = 'union'
    pointer = 'pointer'
    array = 'array'
    unknown = 'unknown'


class VariableScope(Enum):
    """(Enum) Where a variable lives"""

    GLOBAL = 'global'
    LOCAL = 'local'
    PARAMETER = 'parameter'


_MACHINE_MAP: Dict[Union[str, int], Architecture] = {
    'EM_X86_64': Architecture.x86_64,
    'EM_386': Architecture.i386,
    'EM_AARCH64': Architecture.aarch64,
    'EM_ARM': Architecture.arm,
    'EM_RISCV': Architecture.riscv,
    62: Architecture.x86_64,
    3: Architecture.i386,
    183: Architecture.aarch64,
    40: Architecture.arm,
    243: Architecture.riscv,
}

_ELF_TYPE_MAP: Dict[Union[str, int], FileKind] = {
    'ET_EXEC': FileKind.executable,
    'ET_DYN': FileKind.shared_object,
    'ET_REL': FileKind.relocatable,
    'ET_CORE': FileKind.core_dump,
    2: FileKind.executable,
    3: FileKind.shared_object,
    1: FileKind.relocatable,
    4: FileKind.core_dump,
}
