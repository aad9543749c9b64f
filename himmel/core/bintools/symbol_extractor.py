#    symbol_extractor.py
#        Turns a single DIE, with its direct children, into a function, variable or type record.
#
#   - License : MIT - See LICENSE file.
#   - Project :  Himmel (ELF and core dump analyzer)
#
#   Copyright (c) 2025 Himmel Developers

__all__ = ['SymbolExtractor']

from elftools.dwarf.die import DIE, AttributeValue

import logging

from himmel.core.analysis_result import *
from himmel.core.basic_types import *
from himmel.core.bintools.dwarf_definitions import *
from himmel import tools

from himmel.tools.typing import *


class SymbolExtractor:
    """Extract one record per DIE. Type references are never followed: a referenced type is
    represented by a shared placeholder, so extraction terminates on any type graph, cyclic or not.

    One instance is meant to be used for a single walk. It holds a type cache keyed by the
    location of the type DIE, that is discarded with the instance.
    """
    UNKNOWN_NAME = '<unknown>'
    ANONYMOUS_NAME = '<anonymous>'

    DW_OP_addr = 0x03
    ADDR_EXPRESSION_SIZE = 9    # DW_OP_addr + 8 bytes operand

    TYPE_KIND_MAP: Dict[str, TypeKind] = {
        'DW_TAG_structure_type': TypeKind.struct,
        'DW_TAG_union_type': TypeKind.union,
        'DW_TAG_enumeration_type': TypeKind.enum,
        'DW_TAG_base_type': TypeKind.basic,
        'DW_TAG_pointer_type': TypeKind.pointer,
        'DW_TAG_array_type': TypeKind.array,
    }

    type_cache: Dict[Tuple[int, int], TypeInfo]
    logger: logging.Logger

    def __init__(self) -> None:
        self.type_cache = {}
        self.logger = logging.getLogger(self.__class__.__name__)

    @classmethod
    def get_unit_offset(cls, die: DIE) -> int:
        """Offset of the DIE relative to the beginning of its compile unit"""
        return int(die.offset - die.cu.cu_offset)

    @classmethod
    def make_name_for_log(cls, die: Optional[DIE]) -> str:
        if die is None:
            return "<None>"
        try:
            name = cls.get_name(die, default='')
        except Exception:
            name = ''
        return f'{die.tag} <{die.offset:x}> "{name}"'

    @classmethod
    def get_name(cls, die: DIE, default: str) -> str:
        """Reads DW_AT_name, either inline or from the string table. ``default`` if absent or of an unexpected form"""
        attr = die.attributes.get(Attrs.DW_AT_name, None)
        if attr is None or attr.form not in Forms.STRING:
            return default

        if isinstance(attr.value, bytes):
            return attr.value.decode('utf8', errors='replace')
        if isinstance(attr.value, str):
            return attr.value
        return default  # Unresolvable string table offset

    @classmethod
    def get_low_pc(cls, die: DIE) -> int:
        attr = die.attributes.get(Attrs.DW_AT_low_pc, None)
        if attr is None or attr.form not in Forms.ADDRESS:
            return 0
        return int(attr.value)

    @classmethod
    def get_unsigned_constant(cls, attr: AttributeValue) -> Optional[int]:
        """Value of an attribute in a plain numeric form. ``None`` for other forms and for negative values"""
        if attr.form not in Forms.CONSTANT:
            return None
        value = int(attr.value)
        if value < 0:
            return None
        return value

    @classmethod
    def get_code_size(cls, die: DIE, low_pc: int) -> Optional[int]:
        """DW_AT_high_pc is either an address (DWARF 2/3) or a size relative to low_pc (DWARF 4+)"""
        attr = die.attributes.get(Attrs.DW_AT_high_pc, None)
        if attr is None:
            return None

        if attr.form in Forms.ADDRESS:
            return max(int(attr.value) - low_pc, 0)

        return cls.get_unsigned_constant(attr)

    @classmethod
    def get_byte_size(cls, die: DIE) -> Optional[int]:
        attr = die.attributes.get(Attrs.DW_AT_byte_size, None)
        if attr is None:
            return None
        return cls.get_unsigned_constant(attr)

    @classmethod
    def get_location_address(cls, die: DIE) -> Optional[int]:
        """Decode DW_AT_location only when it is exactly ``DW_OP_addr <8 bytes little-endian>``.
        Any other expression gives ``None``"""
        attr = die.attributes.get(Attrs.DW_AT_location, None)
        if attr is None or attr.form not in Forms.EXPRESSION:
            return None

        if not isinstance(attr.value, (list, tuple, bytes, bytearray)):
            return None

        expression = bytes(attr.value)
        if len(expression) != cls.ADDR_EXPRESSION_SIZE:
            return None

        if expression[0] != cls.DW_OP_addr:
            return None

        return int.from_bytes(expression[1:cls.ADDR_EXPRESSION_SIZE], byteorder='little')

    @classmethod
    def get_member_offset(cls, die: DIE) -> int:
        """DW_AT_data_member_location as a plain constant. A location expression or an absent attribute gives 0"""
        attr = die.attributes.get(Attrs.DW_AT_data_member_location, None)
        if attr is None:
            return 0
        offset = cls.get_unsigned_constant(attr)
        return offset if offset is not None else 0

    @classmethod
    def has_unit_type_reference(cls, die: DIE) -> bool:
        attr = die.attributes.get(Attrs.DW_AT_type, None)
        return attr is not None and attr.form in Forms.UNIT_REFERENCE

    @classmethod
    def iter_children_with_tag(cls, die: DIE, tag: DieTag) -> Generator[DIE, None, None]:
        """Direct children of a DIE having the given tag, in declaration order"""
        if not die.has_children:
            return
        for child in die.iter_children():
            if DieTag.from_die(child) == tag:
                yield child

    def extract_function(self, die: DIE) -> FunctionInfo:
        low_pc = self.get_low_pc(die)

        parameters: List[VariableInfo] = []
        for child in self.iter_children_with_tag(die, DieTag.formal_parameter):
            try:
                parameters.append(self.extract_variable(child, VariableScope.PARAMETER))
            except Exception as e:
                tools.log_exception(self.logger, e, f"Skipping parameter {self.make_name_for_log(child)}", str_level=logging.WARNING)

        return FunctionInfo(
            name=self.get_name(die, default=self.UNKNOWN_NAME),
            address=low_pc,
            size=self.get_code_size(die, low_pc),
            parameters=tuple(parameters),
            return_type=RETURN_TYPE if self.has_unit_type_reference(die) else None
        )

    def extract_variable(self, die: DIE, scope: VariableScope) -> VariableInfo:
        return VariableInfo(
            name=self.get_name(die, default=self.UNKNOWN_NAME),
            address=self.get_location_address(die),
            offset=None,
            type_info=UNRESOLVED_TYPE if Attrs.DW_AT_type in die.attributes else VOID_TYPE,
            scope=scope
        )

    def extract_type(self, die: DIE) -> TypeInfo:
        cache_key = (int(die.cu.cu_offset), self.get_unit_offset(die))
        if cache_key in self.type_cache:
            return self.type_cache[cache_key]

        kind = self.TYPE_KIND_MAP.get(die.tag, TypeKind.unknown)

        members: List[MemberInfo] = []
        if kind in (TypeKind.struct, TypeKind.union):
            for child in self.iter_children_with_tag(die, DieTag.member):
                try:
                    members.append(self.extract_member(child))
                except Exception as e:
                    tools.log_exception(self.logger, e, f"Skipping member {self.make_name_for_log(child)}", str_level=logging.WARNING)

        typeinfo = TypeInfo(
            name=self.get_name(die, default=self.ANONYMOUS_NAME),
            size=self.get_byte_size(die),
            kind=kind,
            members=tuple(members)
        )
        self.type_cache[cache_key] = typeinfo
        return typeinfo

    def extract_member(self, die: DIE) -> MemberInfo:
        return MemberInfo(
            name=self.get_name(die, default=self.UNKNOWN_NAME),
            offset=self.get_member_offset(die),
            type_info=UNRESOLVED_TYPE
        )
