"""
Decoders for security descriptors and their components.

All functions accept raw `bytes`, a binary file object, or a `BinaryReader` positioned at the start of the structure.
When given a reader or file object, they consume exactly the bytes of the structure, except for
`decode_nt_security_descriptor`, which needs to seek around and leaves the position undefined.

Any failure aborts the whole decode. Nothing is skipped or substituted, and no partial result is returned.
"""

import logging

from os import SEEK_SET
from typing import Union, BinaryIO, Optional, Tuple

from atmfjstc.lib.binary_utils.BinaryReader import BinaryReader

from atmfjstc.lib.nt_security import NTAuthority, NTSubAuthority, NTSecurityID, NTGuid, NTAceData, NTAceBasicData, \
    NTAceObjectData, NTAceUnhandledData, NTAce, NTAcl, NTSecDescHeader, NTSecurityDescriptor
from atmfjstc.lib.nt_security.errors import AceSizeTooSmallError, AclSizeMismatchError
from atmfjstc.lib.nt_security.low_level import NTSdControlFlags, NTSdOffsetOrder, NTAceType, NTAceFlags, \
    NTObjectAceFlags, decode_nt_ace_type, truncate_flags


LOG = logging.getLogger(__name__)

RawInput = Union[bytes, bytearray, memoryview, BinaryIO, BinaryReader]


def decode_nt_authority(raw_data: RawInput) -> NTAuthority:
    reader = _init_reader(raw_data)

    # The authority is a big-endian int, unlike all the others
    return NTAuthority(reader.read_fixed_size_int(6, "SID authority", big_endian=True, signed=False))


def decode_nt_sub_authority(raw_data: RawInput) -> NTSubAuthority:
    reader = _init_reader(raw_data)

    return NTSubAuthority(reader.read_fixed_size_int(4, "SID sub-authority", signed=False))


def decode_nt_sub_authority_list(raw_data: RawInput, count: int) -> Tuple[NTSubAuthority, ...]:
    """
    Decodes `count` consecutive sub-authorities. The count is not stored alongside the list, it comes from the SID
    header.
    """
    reader = _init_reader(raw_data)

    return tuple(decode_nt_sub_authority(reader) for _ in range(count))


def decode_nt_security_id(raw_data: RawInput) -> NTSecurityID:
    reader = _init_reader(raw_data)

    revision, n_sub_auth = reader.read_struct('BB', "NT SID header")

    authority = decode_nt_authority(reader)
    subauthorities = decode_nt_sub_authority_list(reader, n_sub_auth)

    return NTSecurityID(revision, n_sub_auth, authority, subauthorities)


def decode_nt_guid(raw_data: RawInput) -> NTGuid:
    reader = _init_reader(raw_data)

    group1, group2, group3 = reader.read_struct('IHH', "NT GUID, groups 1-3")

    # The last 2 parts are big-endian, unlike the previous three. Windows is weird like that.
    group4 = reader.read_fixed_size_int(2, "NT GUID group 4", big_endian=True, signed=False)
    group5 = reader.read_fixed_size_int(6, "NT GUID group 5", big_endian=True, signed=False)

    return NTGuid(group1, group2, group3, group4, group5)


def decode_nt_ace(raw_data: RawInput) -> NTAce:
    """
    Decodes an ACE: the 4-byte header, followed by a payload whose layout depends on the ACE type.

    Raises:
        UnknownAceTypeError: If the ACE type is not one of the known ones. The type is checked before anything else is
            read.
        AceSizeTooSmallError: If the declared size does not even cover the ACE header.
        BinaryReaderFormatError: If the data ends before the ACE (or any structure inside it) is complete.
    """
    reader = _init_reader(raw_data)
    position = reader.tell()

    raw_type, = reader.read_struct('B', "ACE type")
    ace_type = decode_nt_ace_type(raw_type, position)

    raw_flags, size = reader.read_struct('BH', "ACE header")

    if size < 4:
        raise AceSizeTooSmallError(position, size)

    payload = reader.read_amount(size - 4, "ACE data")

    return NTAce(
        ace_type=ace_type,
        ace_flags=truncate_flags(NTAceFlags, raw_flags),
        size=size,
        data=_decode_ace_data(ace_type, payload),
    )


def _decode_ace_data(ace_type: NTAceType, payload: bytes) -> NTAceData:
    if ace_type.is_basic:
        return decode_nt_ace_basic_data(payload)
    elif ace_type.is_object:
        return decode_nt_ace_object_data(payload)

    return NTAceUnhandledData(payload)


def decode_nt_ace_basic_data(payload: bytes) -> NTAceBasicData:
    reader = _init_reader(payload)

    access_rights, = reader.read_struct('I', "access mask")
    sid = decode_nt_security_id(reader)

    return NTAceBasicData(access_rights=access_rights, sid=sid, application_data=_read_remainder(reader))


def decode_nt_ace_object_data(payload: bytes) -> NTAceObjectData:
    reader = _init_reader(payload)

    access_rights, raw_object_flags = reader.read_struct('II', "object ACE header")
    object_flags = truncate_flags(NTObjectAceFlags, raw_object_flags)

    # Each GUID is only stored if its flag is set, so either one may be missing independently of the other
    object_type = None
    if NTObjectAceFlags.OBJECT_TYPE_PRESENT in object_flags:
        object_type = decode_nt_guid(reader)

    inherited_object_type = None
    if NTObjectAceFlags.INHERITED_OBJECT_TYPE_PRESENT in object_flags:
        inherited_object_type = decode_nt_guid(reader)

    sid = decode_nt_security_id(reader)

    return NTAceObjectData(
        access_rights=access_rights,
        object_flags=object_flags,
        object_type=object_type,
        inherited_object_type=inherited_object_type,
        sid=sid,
        application_data=_read_remainder(reader),
    )


def decode_nt_acl(raw_data: RawInput, check_size: bool = False) -> NTAcl:
    """
    Decodes an ACL: an 8-byte header followed by exactly as many ACEs as the header says.

    Args:
        raw_data: The data to decode.
        check_size: If True, verify that the ACEs fit within the size declared in the ACL header. Windows itself does
            not always keep this field accurate, so the check is off by default.

    Raises:
        AclSizeMismatchError: If `check_size` is set and the ACL header plus entries exceed the declared size.
        (any error raised by `decode_nt_ace`)
    """
    reader = _init_reader(raw_data)
    position = reader.tell()

    revision, padding1, size, n_entries, padding2 = reader.read_struct('BBHHH', "ACL header")

    LOG.debug("ACL at position %d: revision %d, %d entries", position, revision, n_entries)

    entries = tuple(decode_nt_ace(reader) for _ in range(n_entries))

    if check_size:
        actual_size = reader.tell() - position
        if actual_size > size:
            raise AclSizeMismatchError(position, size, actual_size)

    return NTAcl(
        revision=revision,
        padding1=padding1,
        size=size,
        count=n_entries,
        padding2=padding2,
        entries=entries,
    )


def decode_nt_sec_desc_header(
    raw_data: RawInput, offset_order: NTSdOffsetOrder = NTSdOffsetOrder.SACL_FIRST
) -> NTSecDescHeader:
    """
    Decodes the fixed 20-byte header of a self-relative security descriptor.

    The revision is not validated, and unknown control flag bits are dropped. Use `offset_order` to override which of
    the last two offsets is taken to be the SACL's.
    """
    reader = _init_reader(raw_data)

    revision, padding, raw_ctrl_flags, owner_offset, group_offset, first_acl_offset, second_acl_offset = \
        reader.read_struct('BBHIIII', "NT Security Descriptor header")

    if offset_order == NTSdOffsetOrder.SACL_FIRST:
        sacl_offset, dacl_offset = first_acl_offset, second_acl_offset
    else:
        dacl_offset, sacl_offset = first_acl_offset, second_acl_offset

    return NTSecDescHeader(
        revision=revision,
        padding=padding,
        control_flags=truncate_flags(NTSdControlFlags, raw_ctrl_flags),
        owner_sid_offset=owner_offset,
        group_sid_offset=group_offset,
        sacl_offset=sacl_offset,
        dacl_offset=dacl_offset,
    )


def decode_nt_security_descriptor(
    raw_data: RawInput, offset_order: NTSdOffsetOrder = NTSdOffsetOrder.SACL_FIRST, check_sizes: bool = False
) -> NTSecurityDescriptor:
    """
    Decodes a self-relative security descriptor.

    All offsets in the header are taken relative to the position where the descriptor starts, so it can be decoded
    in place from inside a larger file (e.g. an NTFS ``$Secure:$SDS`` stream), as long as the source is seekable.

    Args:
        raw_data: The data to decode. File objects and readers must be seekable.
        offset_order: Which of the two ACL offsets in the header belongs to the SACL. See `NTSdOffsetOrder`.
        check_sizes: Whether to verify the declared size of each ACL (see `decode_nt_acl`).

    Returns:
        The decoded descriptor. The DACL and SACL are None exactly when their offset in the header is zero, whatever
        the control flags may say.
    """
    reader = _init_reader(raw_data)
    base_pos = reader.tell()

    LOG.debug("Security descriptor at position %d", base_pos)

    header = decode_nt_sec_desc_header(reader, offset_order)

    def _seek_to(offset: int, what: str):
        LOG.debug("%s at position %d", what, base_pos + offset)
        reader.seek(base_pos + offset, SEEK_SET)

    def _parse_sid(offset: int, what: str) -> NTSecurityID:
        _seek_to(offset, what)
        return decode_nt_security_id(reader)

    def _parse_acl(offset: int, what: str) -> Optional[NTAcl]:
        if offset == 0:
            return None

        _seek_to(offset, what)
        return decode_nt_acl(reader, check_size=check_sizes)

    owner = _parse_sid(header.owner_sid_offset, "Owner SID")
    group = _parse_sid(header.group_sid_offset, "Group SID")

    return NTSecurityDescriptor(
        header=header,
        owner=owner,
        group=group,
        dacl=_parse_acl(header.dacl_offset, "DACL"),
        sacl=_parse_acl(header.sacl_offset, "SACL"),
    )


def _init_reader(raw_data: RawInput) -> BinaryReader:
    if isinstance(raw_data, BinaryReader):
        return raw_data
    if isinstance(raw_data, (bytearray, memoryview)):
        raw_data = bytes(raw_data)

    return BinaryReader(raw_data, big_endian=False)


def _read_remainder(reader: BinaryReader) -> bytes:
    return reader.read_at_most(reader.bytes_remaining())
