#    dwarf_definitions.py
#        DWARF tags, attributes and forms understood by the symbol extraction
#
#   - License : MIT - See LICENSE file.
#   - Project :  Himmel (ELF and core dump analyzer)
#
#   Copyright (c) 2025 Himmel Developers

__all__ = ['DieTag', 'Attrs', 'Forms']

from enum import Enum

from himmel.tools.typing import *

if TYPE_CHECKING:
    from elftools.dwarf.die import DIE


class DieTag(Enum):
    """The closed set of DIE tags the extraction acts on. Any other tag is ignored"""
    subprogram = 'DW_TAG_subprogram'
    formal_parameter = 'DW_TAG_formal_parameter'
    variable = 'DW_TAG_variable'
    structure_type = 'DW_TAG_structure_type'
    union_type = 'DW_TAG_union_type'
    enumeration_type = 'DW_TAG_enumeration_type'
    member = 'DW_TAG_member'

    @classmethod
    def from_die(cls, die: "DIE") -> Optional["DieTag"]:
        return _TAG_LOOKUP.get(die.tag, None)


_TAG_LOOKUP: Dict[str, DieTag] = dict([(tag.value, tag) for tag in DieTag])


class Attrs:
    DW_AT_name = 'DW_AT_name'
    DW_AT_low_pc = 'DW_AT_low_pc'
    DW_AT_high_pc = 'DW_AT_high_pc'
    DW_AT_byte_size = 'DW_AT_byte_size'
    DW_AT_type = 'DW_AT_type'
    DW_AT_location = 'DW_AT_location'
    DW_AT_data_member_location = 'DW_AT_data_member_location'


class Forms:
    # Forms whose value pyelftools resolves to the bytes of a string
    STRING = frozenset([
        'DW_FORM_string',
        'DW_FORM_strp',
        'DW_FORM_line_strp',
        'DW_FORM_strx',
        'DW_FORM_strx1',
        'DW_FORM_strx2',
        'DW_FORM_strx3',
        'DW_FORM_strx4',
    ])

    ADDRESS = frozenset(['DW_FORM_addr'])

    # Plain numeric forms. A negative sdata or implicit_const value is not a valid size or offset
    CONSTANT = frozenset([
        'DW_FORM_data1',
        'DW_FORM_data2',
        'DW_FORM_data4',
        'DW_FORM_data8',
        'DW_FORM_udata',
        'DW_FORM_sdata',
        'DW_FORM_implicit_const',
    ])

    # A DWARF expression, either as exprloc (DWARF 4+) or as a block (DWARF 2/3)
    EXPRESSION = frozenset([
        'DW_FORM_exprloc',
        'DW_FORM_block',
        'DW_FORM_block1',
        'DW_FORM_block2',
        'DW_FORM_block4',
    ])

    # References relative to the start of the compile unit
    UNIT_REFERENCE = frozenset([
        'DW_FORM_ref1',
        'DW_FORM_ref2',
        'DW_FORM_ref4',
        'DW_FORM_ref8',
        'DW_FORM_ref_udata',
    ])
