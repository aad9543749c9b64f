#    analysis_result.py
#        The values produced by an analysis: binary facts, debug symbols, core dump threads.
#        Also handles their lossless conversion to/from JSON
#
#   - License : MIT - See LICENSE file.
#   - Project :  Himmel (ELF and core dump analyzer)
#
#   Copyright (c) 2025 Himmel Developers

__all__ = [
    'BinaryFacts',
    'TypeInfo',
    'MemberInfo',
    'VariableInfo',
    'FunctionInfo',
    'DwarfSymbols',
    'ElfInfo',
    'ThreadInfo',
    'CoredumpInfo',
    'AnalysisResult',
    'UNRESOLVED_TYPE',
    'VOID_TYPE',
    'RETURN_TYPE',
]

import json
from dataclasses import dataclass, field

from himmel.core.basic_types import *
from himmel.core import validation
from himmel.tools.typing import *

MAX_U64 = 0xFFFFFFFFFFFFFFFF


class TypeInfoDict(TypedDict):
    name: str
    size: Optional[int]
    kind: str
    members: List["MemberInfoDict"]


class MemberInfoDict(TypedDict):
    name: str
    offset: int
    type_info: TypeInfoDict


class VariableInfoDict(TypedDict):
    name: str
    address: Optional[int]
    offset: Optional[int]
    type_info: TypeInfoDict
    scope: str


class FunctionInfoDict(TypedDict):
    name: str
    address: int
    size: Optional[int]
    parameters: List[VariableInfoDict]
    return_type: Optional[TypeInfoDict]


class ElfInfoDict(TypedDict):
    architecture: str
    entry_point: int
    sections: List[str]
    file_type: str
    endianness: str
    functions: List[FunctionInfoDict]
    variables: List[VariableInfoDict]
    types: List[TypeInfoDict]


class ThreadInfoDict(TypedDict):
    thread_id: int
    registers: List[int]


class CoredumpInfoDict(TypedDict):
    architecture: str
    threads: List[ThreadInfoDict]


class AnalysisResultDict(TypedDict):
    elf_info: Optional[ElfInfoDict]
    coredump_info: Optional[CoredumpInfoDict]


def _get_key(d: Any, key: str) -> Any:
    if not isinstance(d, dict):
        raise TypeError(f"Expected an object while reading \"{key}\". Got {d.__class__.__name__}")
    if key not in d:
        raise ValueError(f"Missing field \"{key}\"")
    return d[key]


def _get_list(d: Any, key: str) -> List[Any]:
    val = _get_key(d, key)
    if not isinstance(val, list):
        raise TypeError(f"Field \"{key}\" must be a list")
    return val


@dataclass(frozen=True)
class BinaryFacts:
    """(Immutable struct) What the ELF header and section table tell about a binary"""

    architecture: Architecture
    """CPU architecture deduced from ``e_machine``"""
    file_kind: FileKind
    """Object type deduced from ``e_type``"""
    endianness: Endianness
    """Byte order deduced from ``EI_DATA``"""
    entry_point: int
    """Value of ``e_entry``"""
    sections: Tuple[str, ...]
    """Section names in on-disk order. ``unnamed`` where the name could not be read"""

    def __post_init__(self) -> None:
        validation.assert_type(self.architecture, 'architecture', Architecture)
        validation.assert_type(self.file_kind, 'file_kind', FileKind)
        validation.assert_type(self.endianness, 'endianness', Endianness)
        validation.assert_int_range(self.entry_point, 'entry_point', minval=0, maxval=MAX_U64)
        validation.assert_tuple_of(self.sections, 'sections', str)


@dataclass(frozen=True)
class TypeInfo:
    """(Immutable struct) A type found in the debug symbols"""

    name: str
    """Name of the type. ``<anonymous>`` if the type has no name"""
    size: Optional[int]
    """Size in bytes. ``None`` if not available"""
    kind: TypeKind
    """Family of the type"""
    members: Tuple["MemberInfo", ...] = field(default_factory=tuple)
    """Members of a struct or union. Always empty for other kinds"""

    def __post_init__(self) -> None:
        validation.assert_type(self.name, 'name', str)
        validation.assert_int_range_if_not_none(self.size, 'size', minval=0, maxval=MAX_U64)
        validation.assert_type(self.kind, 'kind', TypeKind)
        validation.assert_tuple_of(self.members, 'members', MemberInfo)

    def to_dict(self) -> TypeInfoDict:
        return {
            'name': self.name,
            'size': self.size,
            'kind': self.kind.value,
            'members': [member.to_dict() for member in self.members]
        }

    @classmethod
    def from_dict(cls, d: TypeInfoDict) -> "TypeInfo":
        return cls(
            name=_get_key(d, 'name'),
            size=_get_key(d, 'size'),
            kind=TypeKind(_get_key(d, 'kind')),
            members=tuple([MemberInfo.from_dict(member) for member in _get_list(d, 'members')])
        )


@dataclass(frozen=True)
class MemberInfo:
    """(Immutable struct) A member of a struct or an union"""

    name: str
    """Name of the member. ``<unknown>`` if not available"""
    offset: int
    """Byte offset from the start of the enclosing aggregate"""
    type_info: TypeInfo
    """Type of the member. Always a shallow placeholder, never resolved"""

    def __post_init__(self) -> None:
        validation.assert_type(self.name, 'name', str)
        validation.assert_int_range(self.offset, 'offset', minval=0, maxval=MAX_U64)
        validation.assert_type(self.type_info, 'type_info', TypeInfo)

    def to_dict(self) -> MemberInfoDict:
        return {
            'name': self.name,
            'offset': self.offset,
            'type_info': self.type_info.to_dict()
        }

    @classmethod
    def from_dict(cls, d: MemberInfoDict) -> "MemberInfo":
        return cls(
            name=_get_key(d, 'name'),
            offset=_get_key(d, 'offset'),
            type_info=TypeInfo.from_dict(_get_key(d, 'type_info'))
        )


@dataclass(frozen=True)
class VariableInfo:
    """(Immutable struct) A global variable or a function parameter"""

    name: str
    """Name of the variable. ``<unknown>`` if not available"""
    address: Optional[int]
    """Absolute address. Only set when the location is a plain ``DW_OP_addr``"""
    offset: Optional[int]
    """Register or frame relative offset. Never decoded, always ``None``"""
    type_info: TypeInfo
    """Shallow placeholder of the variable type"""
    scope: VariableScope
    """Where the variable lives"""

    def __post_init__(self) -> None:
        validation.assert_type(self.name, 'name', str)
        validation.assert_int_range_if_not_none(self.address, 'address', minval=0, maxval=MAX_U64)
        validation.assert_type_or_none(self.offset, 'offset', int)
        validation.assert_type(self.type_info, 'type_info', TypeInfo)
        validation.assert_type(self.scope, 'scope', VariableScope)

    def to_dict(self) -> VariableInfoDict:
        return {
            'name': self.name,
            'address': self.address,
            'offset': self.offset,
            'type_info': self.type_info.to_dict(),
            'scope': self.scope.value
        }

    @classmethod
    def from_dict(cls, d: VariableInfoDict) -> "VariableInfo":
        return cls(
            name=_get_key(d, 'name'),
            address=_get_key(d, 'address'),
            offset=_get_key(d, 'offset'),
            type_info=TypeInfo.from_dict(_get_key(d, 'type_info')),
            scope=VariableScope(_get_key(d, 'scope'))
        )


@dataclass(frozen=True)
class FunctionInfo:
    """(Immutable struct) A function found in the debug symbols"""

    name: str
    """Name of the function. ``<unknown>`` if not available"""
    address: int
    """Entry address (``DW_AT_low_pc``). 0 if not available"""
    size: Optional[int]
    """Size of the code in bytes. ``None`` if not available"""
    parameters: Tuple[VariableInfo, ...]
    """Formal parameters in declaration order"""
    return_type: Optional[TypeInfo]
    """Shallow placeholder of the return type. ``None`` for a function without return type"""

    def __post_init__(self) -> None:
        validation.assert_type(self.name, 'name', str)
        validation.assert_int_range(self.address, 'address', minval=0, maxval=MAX_U64)
        validation.assert_int_range_if_not_none(self.size, 'size', minval=0, maxval=MAX_U64)
        validation.assert_tuple_of(self.parameters, 'parameters', VariableInfo)
        validation.assert_type_or_none(self.return_type, 'return_type', TypeInfo)

    def to_dict(self) -> FunctionInfoDict:
        return {
            'name': self.name,
            'address': self.address,
            'size': self.size,
            'parameters': [param.to_dict() for param in self.parameters],
            'return_type': self.return_type.to_dict() if self.return_type is not None else None
        }

    @classmethod
    def from_dict(cls, d: FunctionInfoDict) -> "FunctionInfo":
        return_type = _get_key(d, 'return_type')
        return cls(
            name=_get_key(d, 'name'),
            address=_get_key(d, 'address'),
            size=_get_key(d, 'size'),
            parameters=tuple([VariableInfo.from_dict(param) for param in _get_list(d, 'parameters')]),
            return_type=TypeInfo.from_dict(return_type) if return_type is not None else None
        )


@dataclass(frozen=True)
class DwarfSymbols:
    """(Immutable struct) Everything extracted from the DWARF debugging symbols"""

    functions: Tuple[FunctionInfo, ...] = field(default_factory=tuple)
    variables: Tuple[VariableInfo, ...] = field(default_factory=tuple)
    types: Tuple[TypeInfo, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        validation.assert_tuple_of(self.functions, 'functions', FunctionInfo)
        validation.assert_tuple_of(self.variables, 'variables', VariableInfo)
        validation.assert_tuple_of(self.types, 'types', TypeInfo)


@dataclass(frozen=True)
class ElfInfo:
    """(Immutable struct) Analysis of an ELF file: the binary facts decorated with the debug symbols"""

    architecture: Architecture
    entry_point: int
    sections: Tuple[str, ...]
    file_type: FileKind
    endianness: Endianness
    functions: Tuple[FunctionInfo, ...] = field(default_factory=tuple)
    variables: Tuple[VariableInfo, ...] = field(default_factory=tuple)
    types: Tuple[TypeInfo, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        validation.assert_type(self.architecture, 'architecture', Architecture)
        validation.assert_int_range(self.entry_point, 'entry_point', minval=0, maxval=MAX_U64)
        validation.assert_tuple_of(self.sections, 'sections', str)
        validation.assert_type(self.file_type, 'file_type', FileKind)
        validation.assert_type(self.endianness, 'endianness', Endianness)
        validation.assert_tuple_of(self.functions, 'functions', FunctionInfo)
        validation.assert_tuple_of(self.variables, 'variables', VariableInfo)
        validation.assert_tuple_of(self.types, 'types', TypeInfo)

    @classmethod
    def from_facts(cls, facts: BinaryFacts, symbols: Optional[DwarfSymbols] = None) -> "ElfInfo":
        """Build the ELF analysis from the base facts. The debug symbols only add to it"""
        if symbols is None:
            symbols = DwarfSymbols()
        return cls(
            architecture=facts.architecture,
            entry_point=facts.entry_point,
            sections=facts.sections,
            file_type=facts.file_kind,
            endianness=facts.endianness,
            functions=symbols.functions,
            variables=symbols.variables,
            types=symbols.types
        )

    def to_dict(self) -> ElfInfoDict:
        return {
            'architecture': self.architecture.value,
            'entry_point': self.entry_point,
            'sections': list(self.sections),
            'file_type': self.file_type.value,
            'endianness': self.endianness.value,
            'functions': [function.to_dict() for function in self.functions],
            'variables': [variable.to_dict() for variable in self.variables],
            'types': [typeinfo.to_dict() for typeinfo in self.types]
        }

    @classmethod
    def from_dict(cls, d: ElfInfoDict) -> "ElfInfo":
        return cls(
            architecture=Architecture(_get_key(d, 'architecture')),
            entry_point=_get_key(d, 'entry_point'),
            sections=tuple(_get_list(d, 'sections')),
            file_type=FileKind(_get_key(d, 'file_type')),
            endianness=Endianness(_get_key(d, 'endianness')),
            functions=tuple([FunctionInfo.from_dict(x) for x in _get_list(d, 'functions')]),
            variables=tuple([VariableInfo.from_dict(x) for x in _get_list(d, 'variables')]),
            types=tuple([TypeInfo.from_dict(x) for x in _get_list(d, 'types')])
        )


@dataclass(frozen=True)
class ThreadInfo:
    """(Immutable struct) A thread found in a core dump"""

    thread_id: int
    """Sequential number given in discovery order, starting at 0"""
    registers: bytes
    """Raw content of the NOTE segment. Not decoded"""

    def __post_init__(self) -> None:
        validation.assert_int_range(self.thread_id, 'thread_id', minval=0)
        validation.assert_type(self.registers, 'registers', bytes)

    def to_dict(self) -> ThreadInfoDict:
        return {
            'thread_id': self.thread_id,
            'registers': list(self.registers)
        }

    @classmethod
    def from_dict(cls, d: ThreadInfoDict) -> "ThreadInfo":
        return cls(
            thread_id=_get_key(d, 'thread_id'),
            registers=bytes(_get_list(d, 'registers'))
        )


@dataclass(frozen=True)
class CoredumpInfo:
    """(Immutable struct) Analysis of a core dump"""

    architecture: Architecture
    threads: Tuple[ThreadInfo, ...]
    """Never empty"""

    def __post_init__(self) -> None:
        validation.assert_type(self.architecture, 'architecture', Architecture)
        validation.assert_tuple_of(self.threads, 'threads', ThreadInfo)
        if len(self.threads) == 0:
            raise ValueError("A core dump has at least one thread")

    def to_dict(self) -> CoredumpInfoDict:
        return {
            'architecture': self.architecture.value,
            'threads': [thread.to_dict() for thread in self.threads]
        }

    @classmethod
    def from_dict(cls, d: CoredumpInfoDict) -> "CoredumpInfo":
        return cls(
            architecture=Architecture(_get_key(d, 'architecture')),
            threads=tuple([ThreadInfo.from_dict(x) for x in _get_list(d, 'threads')])
        )


@dataclass(frozen=True)
class AnalysisResult:
    """(Immutable struct) The output of an analysis. A field is ``None`` when its input was not supplied"""

    elf_info: Optional[ElfInfo] = None
    coredump_info: Optional[CoredumpInfo] = None

    def __post_init__(self) -> None:
        validation.assert_type_or_none(self.elf_info, 'elf_info', ElfInfo)
        validation.assert_type_or_none(self.coredump_info, 'coredump_info', CoredumpInfo)

    def to_dict(self) -> AnalysisResultDict:
        return {
            'elf_info': self.elf_info.to_dict() if self.elf_info is not None else None,
            'coredump_info': self.coredump_info.to_dict() if self.coredump_info is not None else None
        }

    @classmethod
    def from_dict(cls, d: AnalysisResultDict) -> "AnalysisResult":
        if not isinstance(d, dict):
            raise TypeError("An analysis result must be an object")
        elf_info = d.get('elf_info', None)
        coredump_info = d.get('coredump_info', None)
        return cls(
            elf_info=ElfInfo.from_dict(elf_info) if elf_info is not None else None,
            coredump_info=CoredumpInfo.from_dict(coredump_info) if coredump_info is not None else None
        )

    def to_json(self, indent: Optional[int] = 4) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_json(cls, json_str: Union[str, bytes]) -> "AnalysisResult":
        if isinstance(json_str, bytes):
            json_str = json_str.decode('utf8')
        return cls.from_dict(json.loads(json_str))


# Shallow placeholders for type references. A reference is never followed, which guarantees
# termination on self-referential type graphs.
UNRESOLVED_TYPE = TypeInfo(name='unknown', size=None, kind=TypeKind.basic)
VOID_TYPE = TypeInfo(name='void', size=None, kind=TypeKind.basic)
RETURN_TYPE = TypeInfo(name='<return_type>', size=None, kind=TypeKind.unknown)
