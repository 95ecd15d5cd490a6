"""
Conversion of decoded security structures to JSON-compatible data, for use by reporting tools.

The output is controlled entirely by the `NTSerializationOptions` passed in each call, so converting the same object
with the same options always gives the same result.
"""

import dataclasses
import json

from dataclasses import dataclass
from enum import IntFlag
from functools import singledispatch
from typing import Any, Dict, List, Optional, Union

from atmfjstc.lib.nt_security import NTSecurityID, NTGuid, NTAceBasicData, NTAceObjectData, NTAceUnhandledData, \
    NTAce, NTAcl, NTSecDescHeader, NTSecurityDescriptor
from atmfjstc.lib.nt_security.low_level import NTAceType
from atmfjstc.lib.nt_security.rights import NTRightsDomain, access_rights_names


@dataclass(frozen=True)
class NTSerializationOptions:
    flags_as_names: bool = True
    """Render flag sets as lists of flag names. Otherwise, they are rendered as ints."""

    ints_as_strings: bool = False
    """Render numeric fields as decimal strings, for consumers that cannot handle large ints."""

    include_header: bool = False
    """Include the security descriptor header (revision and control flags) in the output."""

    include_layout: bool = False
    """Include fields that only describe the binary layout: sizes, paddings and offsets."""

    skip_empty_acls: bool = True
    """Omit the DACL/SACL entirely if it is absent or has no entries."""

    rights_domain: NTRightsDomain = NTRightsDomain.GENERIC
    """The kind of object the descriptor protects, used to name the specific access rights."""


DEFAULT_SERIALIZATION_OPTIONS = NTSerializationOptions()


JSONNumber = Union[int, str]


@singledispatch
def to_json(item, options: NTSerializationOptions = DEFAULT_SERIALIZATION_OPTIONS) -> Any:
    """
    Converts a decoded security structure (descriptor, ACL, ACE, SID...) to plain data that can be passed to
    `json.dumps`.
    """
    raise NotImplementedError(f"Don't know how to format object of type {item.__class__.__name__}")


def to_json_text(
    item, options: NTSerializationOptions = DEFAULT_SERIALIZATION_OPTIONS, indent: Optional[int] = None
) -> str:
    return json.dumps(to_json(item, options), indent=indent)


@to_json.register(NTSecurityID)
def _(item: NTSecurityID, options: NTSerializationOptions = DEFAULT_SERIALIZATION_OPTIONS) -> str:
    return str(item)


@to_json.register(NTGuid)
def _(item: NTGuid, options: NTSerializationOptions = DEFAULT_SERIALIZATION_OPTIONS) -> str:
    return str(item)


@to_json.register(NTSecurityDescriptor)
def _(item: NTSecurityDescriptor, options: NTSerializationOptions = DEFAULT_SERIALIZATION_OPTIONS) -> dict:
    result = dict()

    if options.include_header:
        result['header'] = to_json(item.header, options)

    result['owner_sid'] = to_json(item.owner, options)
    result['group_sid'] = to_json(item.group, options)

    for key, acl in (('dacl', item.dacl), ('sacl', item.sacl)):
        if options.skip_empty_acls and ((acl is None) or (acl.count == 0)):
            continue

        result[key] = None if acl is None else to_json(acl, options)

    return result


@to_json.register(NTSecDescHeader)
def _(item: NTSecDescHeader, options: NTSerializationOptions = DEFAULT_SERIALIZATION_OPTIONS) -> dict:
    result = dict(
        revision=_number(item.revision, options),
        control_flags=_flags(item.control_flags, options),
    )

    if options.include_layout:
        result.update(
            padding=_number(item.padding, options),
            owner_sid_offset=_number(item.owner_sid_offset, options),
            group_sid_offset=_number(item.group_sid_offset, options),
            sacl_offset=_number(item.sacl_offset, options),
            dacl_offset=_number(item.dacl_offset, options),
        )

    return result


@to_json.register(NTAcl)
def _(item: NTAcl, options: NTSerializationOptions = DEFAULT_SERIALIZATION_OPTIONS) -> dict:
    result = dict(revision=_number(item.revision, options))

    if options.include_layout:
        result.update(
            padding1=_number(item.padding1, options),
            size=_number(item.size, options),
            padding2=_number(item.padding2, options),
        )

    result['count'] = _number(item.count, options)
    result['entries'] = [to_json(entry, options) for entry in item.entries]

    return result


@to_json.register(NTAce)
def _(item: NTAce, options: NTSerializationOptions = DEFAULT_SERIALIZATION_OPTIONS) -> dict:
    result = dict(
        ace_type=item.ace_type.name,
        ace_flags=_flags(item.ace_flags, options),
    )

    if options.include_layout:
        result['size'] = _number(item.size, options)

    # The "access mask" of a mandatory label is really an integrity policy
    data_options = options
    if item.ace_type == NTAceType.SYSTEM_MANDATORY_LABEL:
        data_options = dataclasses.replace(options, rights_domain=NTRightsDomain.MANDATORY_LABEL)

    result['data'] = to_json(item.data, data_options)

    return result


@to_json.register(NTAceBasicData)
def _(item: NTAceBasicData, options: NTSerializationOptions = DEFAULT_SERIALIZATION_OPTIONS) -> dict:
    result = _access_rights(item.access_rights, options)
    result['sid'] = to_json(item.sid, options)

    if len(item.application_data) > 0:
        result['application_data'] = item.application_data.hex()

    return result


@to_json.register(NTAceObjectData)
def _(item: NTAceObjectData, options: NTSerializationOptions = DEFAULT_SERIALIZATION_OPTIONS) -> dict:
    result = _access_rights(item.access_rights, options)
    result['object_flags'] = _flags(item.object_flags, options)

    if item.object_type is not None:
        result['object_type'] = to_json(item.object_type, options)
    if item.inherited_object_type is not None:
        result['inherited_object_type'] = to_json(item.inherited_object_type, options)

    result['sid'] = to_json(item.sid, options)

    if len(item.application_data) > 0:
        result['application_data'] = item.application_data.hex()

    return result


@to_json.register(NTAceUnhandledData)
def _(item: NTAceUnhandledData, options: NTSerializationOptions = DEFAULT_SERIALIZATION_OPTIONS) -> dict:
    return dict(raw_data=item.raw_data.hex())


def _number(value: int, options: NTSerializationOptions) -> JSONNumber:
    return str(value) if options.ints_as_strings else value


def _flags(value: IntFlag, options: NTSerializationOptions) -> Union[List[str], JSONNumber]:
    if not options.flags_as_names:
        return _number(int(value), options)

    return [
        member.name for member in value.__class__.__members__.values()
        if (member.value != 0) and ((value & member.value) == member.value)
    ]


def _access_rights(mask: int, options: NTSerializationOptions) -> Dict[str, Any]:
    result = dict(access_rights=_number(mask, options))

    # Names may not cover every bit, so the numeric mask is always kept
    if options.flags_as_names:
        result['access_rights_names'] = list(access_rights_names(mask, options.rights_domain))

    return result
