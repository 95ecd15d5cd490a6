"""
Decoder for Windows NT Security Descriptors in their binary, self-relative form.

Security descriptors hold the ownership and access control information for NTFS files, registry keys and other
securable objects. This package reads them (along with the ACLs, ACEs and SIDs they are made of) from raw data into
immutable, fully typed objects, without needing any Windows APIs. The focus is on forensics: the decoder never writes,
and it reports exactly what is stored, even when it contradicts what the control flags claim.

The decoding functions live in the `parse` submodule and the JSON-friendly serialization in `serialize`.
"""

from dataclasses import dataclass
from typing import NewType, Optional, Tuple

from atmfjstc.lib.nt_security.low_level import NTSdControlFlags, NTAceType, NTAceFlags, NTObjectAceFlags


__version__ = '0.1.0'


NTAuthority = NewType('NTAuthority', int)
"""
The 48-bit identifier authority of a SID (e.g. 5 for ``NT AUTHORITY``).
"""

NTSubAuthority = NewType('NTSubAuthority', int)


@dataclass(frozen=True, order=True)
class NTSecurityID:
    revision: int
    sub_authority_count: int
    authority: NTAuthority
    sub_authorities: Tuple[NTSubAuthority, ...]

    def __post_init__(self):
        assert 0 <= self.authority < (1 << 48)
        assert self.sub_authority_count == len(self.sub_authorities)

    def __str__(self):
        return f"S-{self.revision}-{self.authority}{''.join('-' + str(auth) for auth in self.sub_authorities)}"


@dataclass(frozen=True)
class NTGuid:
    group1: int
    group2: int
    group3: int
    group4: int
    group5: int

    def __post_init__(self):
        assert 0 <= self.group1 < (1 << 32)
        assert 0 <= self.group2 < (1 << 16)
        assert 0 <= self.group3 < (1 << 16)
        assert 0 <= self.group4 < (1 << 16)
        assert 0 <= self.group5 < (1 << 48)

    def __str__(self):
        return f"{self.group1:08X}-{self.group2:04X}-{self.group3:04X}-{self.group4:04X}-{self.group5:012X}"


@dataclass(frozen=True)
class NTAceData:
    """
    Base for the payload of an ACE. Which subclass is used depends only on the ACE type, never on the payload itself.
    """


@dataclass(frozen=True)
class NTAceBasicData(NTAceData):
    access_rights: int
    sid: NTSecurityID
    application_data: bytes = b''
    """Whatever follows the SID in the payload, e.g. the conditional expression of a callback ACE."""


@dataclass(frozen=True)
class NTAceObjectData(NTAceData):
    access_rights: int
    object_flags: NTObjectAceFlags
    object_type: Optional[NTGuid]
    inherited_object_type: Optional[NTGuid]
    sid: NTSecurityID
    application_data: bytes = b''

    def __post_init__(self):
        assert (self.object_type is not None) == (NTObjectAceFlags.OBJECT_TYPE_PRESENT in self.object_flags)
        assert (self.inherited_object_type is not None) == \
            (NTObjectAceFlags.INHERITED_OBJECT_TYPE_PRESENT in self.object_flags)


@dataclass(frozen=True)
class NTAceUnhandledData(NTAceData):
    raw_data: bytes


@dataclass(frozen=True)
class NTAce:
    ace_type: NTAceType
    ace_flags: NTAceFlags
    size: int
    """Total size of the ACE as stored, including the 4-byte header."""
    data: NTAceData

    @property
    def is_inherited(self) -> bool:
        return NTAceFlags.INHERITED in self.ace_flags


@dataclass(frozen=True)
class NTAcl:
    revision: int
    padding1: int
    size: int
    count: int
    padding2: int
    entries: Tuple[NTAce, ...]

    def __post_init__(self):
        assert self.count == len(self.entries)


@dataclass(frozen=True)
class NTSecDescHeader:
    revision: int
    padding: int
    control_flags: NTSdControlFlags
    owner_sid_offset: int
    group_sid_offset: int
    sacl_offset: int
    dacl_offset: int


@dataclass(frozen=True)
class NTSecurityDescriptor:
    """
    A fully decoded security descriptor.

    Note that `dacl` and `sacl` are None if and only if the corresponding offset in the header is zero. The
    `DACL_PRESENT` and `SACL_PRESENT` control flags are *not* consulted; use `dacl_flagged_present` etc. to see what the
    header claims.
    """

    header: NTSecDescHeader
    owner: NTSecurityID
    group: NTSecurityID
    dacl: Optional[NTAcl]
    sacl: Optional[NTAcl]

    @property
    def control_flags(self) -> NTSdControlFlags:
        return self.header.control_flags

    @property
    def dacl_flagged_present(self) -> bool:
        return NTSdControlFlags.DACL_PRESENT in self.header.control_flags

    @property
    def sacl_flagged_present(self) -> bool:
        return NTSdControlFlags.SACL_PRESENT in self.header.control_flags
