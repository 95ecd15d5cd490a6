"""
Tables for the bits in an NT ACCESS_MASK, as stored in ACEs.

The upper 16 bits of a mask (standard, generic etc. rights) mean the same thing for every kind of object. The lower 16
bits are "specific rights" whose meaning depends on what the security descriptor protects (a file, a registry key, an
Active Directory object...), which cannot be determined from the descriptor itself. The caller must thus indicate the
appropriate `NTRightsDomain` when asking for rights to be named.
"""

from enum import Enum, IntFlag
from typing import Dict, Tuple

from atmfjstc.lib.binary_utils.bit_ops import iter_set_bits


class NTStandardAccessRights(IntFlag):
    DELETE = 0x00010000
    READ_CONTROL = 0x00020000
    WRITE_DAC = 0x00040000
    WRITE_OWNER = 0x00080000
    SYNCHRONIZE = 0x00100000

    # Valid in system audit ACL entries (for auditing access to the SACL itself)
    ACCESS_SYSTEM_SECURITY = 0x01000000
    MAXIMUM_ALLOWED = 0x02000000

    GENERIC_ALL = 0x10000000
    GENERIC_EXECUTE = 0x20000000
    GENERIC_WRITE = 0x40000000
    GENERIC_READ = 0x80000000


class NTFileAccessRights(IntFlag):
    READ_DATA = 0x0001
    WRITE_DATA = 0x0002
    APPEND_DATA = 0x0004
    READ_EA = 0x0008
    WRITE_EA = 0x0010
    EXECUTE = 0x0020
    READ_ATTRIBUTES = 0x0080
    WRITE_ATTRIBUTES = 0x0100


class NTDirectoryAccessRights(IntFlag):
    LIST_DIRECTORY = 0x0001
    ADD_FILE = 0x0002
    ADD_SUBDIRECTORY = 0x0004
    READ_EA = 0x0008
    WRITE_EA = 0x0010
    TRAVERSE = 0x0020
    DELETE_CHILD = 0x0040
    READ_ATTRIBUTES = 0x0080
    WRITE_ATTRIBUTES = 0x0100


class NTRegistryKeyAccessRights(IntFlag):
    QUERY_VALUE = 0x0001
    SET_VALUE = 0x0002
    CREATE_SUB_KEY = 0x0004
    ENUMERATE_SUB_KEYS = 0x0008
    NOTIFY = 0x0010
    CREATE_LINK = 0x0020
    WOW64_64KEY = 0x0100
    WOW64_32KEY = 0x0200


class NTDirectoryServiceAccessRights(IntFlag):
    CREATE_CHILD = 0x0001
    DELETE_CHILD = 0x0002
    LIST_CHILDREN = 0x0004
    SELF = 0x0008
    READ_PROPERTY = 0x0010
    WRITE_PROPERTY = 0x0020
    DELETE_TREE = 0x0040
    LIST_OBJECT = 0x0080
    CONTROL_ACCESS = 0x0100


class NTMandatoryLabelPolicy(IntFlag):
    """
    In a SYSTEM_MANDATORY_LABEL ACE, the access mask field holds this policy instead of actual rights.
    """
    NO_WRITE_UP = 0x0001
    NO_READ_UP = 0x0002
    NO_EXECUTE_UP = 0x0004


class NTRightsDomain(Enum):
    GENERIC = 'generic'
    FILE = 'file'
    DIRECTORY = 'directory'
    REGISTRY_KEY = 'registry_key'
    DIRECTORY_SERVICE = 'directory_service'
    MANDATORY_LABEL = 'mandatory_label'


def access_rights_names(mask: int, domain: NTRightsDomain = NTRightsDomain.GENERIC) -> Tuple[str, ...]:
    """
    Lists the names of the rights set in an access mask, in ascending bit order.

    For the GENERIC domain, only the standard and generic rights are named. Bits with no name in the selected domain
    are dropped, so keep the numeric mask around if you need an exact record.
    """
    names = _NAMES_BY_DOMAIN[domain]

    return tuple(names[1 << bit] for bit in iter_set_bits(mask) if (1 << bit) in names)


def _build_names(*tables) -> Dict[int, str]:
    return {member.value: member.name for table in tables for member in table.__members__.values()}


_NAMES_BY_DOMAIN: Dict[NTRightsDomain, Dict[int, str]] = {
    NTRightsDomain.GENERIC: _build_names(NTStandardAccessRights),
    NTRightsDomain.FILE: _build_names(NTStandardAccessRights, NTFileAccessRights),
    NTRightsDomain.DIRECTORY: _build_names(NTStandardAccessRights, NTDirectoryAccessRights),
    NTRightsDomain.REGISTRY_KEY: _build_names(NTStandardAccessRights, NTRegistryKeyAccessRights),
    NTRightsDomain.DIRECTORY_SERVICE: _build_names(NTStandardAccessRights, NTDirectoryServiceAccessRights),
    NTRightsDomain.MANDATORY_LABEL: _build_names(NTMandatoryLabelPolicy),
}
