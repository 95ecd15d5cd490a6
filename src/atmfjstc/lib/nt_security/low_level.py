"""
Enums and flags that are useful during binary parsing but rarely used otherwise.
"""

from enum import Enum, IntEnum, IntFlag
from typing import Dict, Optional, Type, TypeVar

from atmfjstc.lib.nt_security.errors import UnknownAceTypeError


FlagT = TypeVar('FlagT', bound=IntFlag)


def truncate_flags(flag_cls: Type[FlagT], value: int) -> FlagT:
    """
    Converts a raw int to a flag set, silently dropping any bits that do not correspond to a known flag.
    """
    known_bits = 0
    for member in flag_cls.__members__.values():
        known_bits |= member.value

    return flag_cls(value & known_bits)


class NTSdControlFlags(IntFlag):
    OWNER_DEFAULTED = 0x0001
    GROUP_DEFAULTED = 0x0002

    DACL_PRESENT = 0x0004
    DACL_DEFAULTED = 0x0008

    SACL_PRESENT = 0x0010
    SACL_DEFAULTED = 0x0020

    DACL_AUTO_INHERIT_REQ = 0x0100
    SACL_AUTO_INHERIT_REQ = 0x0200
    DACL_AUTO_INHERITED = 0x0400
    SACL_AUTO_INHERITED = 0x0800
    DACL_PROTECTED = 0x1000
    SACL_PROTECTED = 0x2000

    RM_CONTROL_VALID = 0x4000
    SELF_RELATIVE = 0x8000


class NTSdOffsetOrder(Enum):
    """
    The order in which the SACL and DACL offsets appear in the security descriptor header.

    Documentation sources disagree on this. The on-disk data produced by NTFS (e.g. in ``$Secure``) and the
    self-relative descriptors returned by the Windows API store the SACL offset first, so this is the default.
    """
    SACL_FIRST = 'sacl_first'
    DACL_FIRST = 'dacl_first'


class NTAceShape(Enum):
    """
    The payload layouts an ACE can have.
    """
    BASIC = 'basic'
    OBJECT = 'object'
    UNHANDLED = 'unhandled'


class NTAceType(IntEnum):
    ACCESS_ALLOWED = 0x00
    ACCESS_DENIED = 0x01
    SYSTEM_AUDIT = 0x02
    SYSTEM_ALARM = 0x03
    ACCESS_ALLOWED_COMPOUND = 0x04
    ACCESS_ALLOWED_OBJECT = 0x05
    ACCESS_DENIED_OBJECT = 0x06
    SYSTEM_AUDIT_OBJECT = 0x07
    SYSTEM_ALARM_OBJECT = 0x08
    ACCESS_ALLOWED_CALLBACK = 0x09
    ACCESS_DENIED_CALLBACK = 0x0a
    ACCESS_ALLOWED_CALLBACK_OBJECT = 0x0b
    ACCESS_DENIED_CALLBACK_OBJECT = 0x0c
    SYSTEM_AUDIT_CALLBACK = 0x0d
    SYSTEM_ALARM_CALLBACK = 0x0e
    SYSTEM_AUDIT_CALLBACK_OBJECT = 0x0f
    SYSTEM_ALARM_CALLBACK_OBJECT = 0x10
    SYSTEM_MANDATORY_LABEL = 0x11

    @property
    def shape(self) -> NTAceShape:
        return _ACE_SHAPES[self]

    @property
    def is_basic(self) -> bool:
        return self.shape == NTAceShape.BASIC

    @property
    def is_object(self) -> bool:
        return self.shape == NTAceShape.OBJECT


_ACE_SHAPES: Dict[NTAceType, NTAceShape] = {
    NTAceType.ACCESS_ALLOWED: NTAceShape.BASIC,
    NTAceType.ACCESS_DENIED: NTAceShape.BASIC,
    NTAceType.SYSTEM_AUDIT: NTAceShape.BASIC,
    NTAceType.SYSTEM_ALARM: NTAceShape.BASIC,
    NTAceType.ACCESS_ALLOWED_CALLBACK: NTAceShape.BASIC,
    NTAceType.ACCESS_DENIED_CALLBACK: NTAceShape.BASIC,
    NTAceType.SYSTEM_AUDIT_CALLBACK: NTAceShape.BASIC,
    NTAceType.SYSTEM_ALARM_CALLBACK: NTAceShape.BASIC,
    NTAceType.SYSTEM_MANDATORY_LABEL: NTAceShape.BASIC,

    NTAceType.ACCESS_ALLOWED_OBJECT: NTAceShape.OBJECT,
    NTAceType.ACCESS_DENIED_OBJECT: NTAceShape.OBJECT,
    NTAceType.SYSTEM_AUDIT_OBJECT: NTAceShape.OBJECT,
    NTAceType.SYSTEM_ALARM_OBJECT: NTAceShape.OBJECT,
    NTAceType.ACCESS_ALLOWED_CALLBACK_OBJECT: NTAceShape.OBJECT,
    NTAceType.ACCESS_DENIED_CALLBACK_OBJECT: NTAceShape.OBJECT,
    NTAceType.SYSTEM_AUDIT_CALLBACK_OBJECT: NTAceShape.OBJECT,
    NTAceType.SYSTEM_ALARM_CALLBACK_OBJECT: NTAceShape.OBJECT,

    # Layout is not publicly documented
    NTAceType.ACCESS_ALLOWED_COMPOUND: NTAceShape.UNHANDLED,
}


def decode_nt_ace_type(raw_type: int, position: Optional[int] = None) -> NTAceType:
    """
    Converts a raw ACE type byte to a `NTAceType`.

    Args:
        raw_type: The type byte, as read from the ACE header.
        position: The position of the ACE in the data, if known. It is only used in the text of exceptions.

    Raises:
        UnknownAceTypeError: If the byte does not correspond to any known ACE type. Note that such ACEs cannot be
            skipped safely, as there is no telling whether their size field means the same thing.
    """
    try:
        return NTAceType(raw_type)
    except ValueError:
        raise UnknownAceTypeError(raw_type, position) from None


class NTAceFlags(IntFlag):
    OBJECT_INHERIT = 0x01
    CONTAINER_INHERIT = 0x02
    NO_PROPAGATE_INHERIT = 0x04
    INHERIT_ONLY = 0x08
    INHERITED = 0x10
    SUCCESSFUL_ACCESS = 0x40
    FAILED_ACCESS = 0x80


class NTObjectAceFlags(IntFlag):
    OBJECT_TYPE_PRESENT = 0x01
    INHERITED_OBJECT_TYPE_PRESENT = 0x02
