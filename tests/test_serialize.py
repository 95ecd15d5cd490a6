import json
import struct
import unittest

from atmfjstc.lib.nt_security.parse import decode_nt_ace, decode_nt_acl, decode_nt_security_descriptor, \
    decode_nt_security_id
from atmfjstc.lib.nt_security.rights import NTRightsDomain
from atmfjstc.lib.nt_security.serialize import NTSerializationOptions, to_json, to_json_text


LOCAL_SYSTEM_SID = bytes.fromhex('010100000000000512000000')
ADMINISTRATORS_SID = bytes.fromhex('01020000000000052000000020020000')
HIGH_INTEGRITY_SID = bytes.fromhex('010100000000001000300000')
SAMPLE_GUID = bytes.fromhex('2596845478549449a5ba3e3b0328c30d')


def _ace(ace_type: int, flags: int, payload: bytes) -> bytes:
    return struct.pack('<BBH', ace_type, flags, len(payload) + 4) + payload


def _acl(*aces: bytes) -> bytes:
    body = b''.join(aces)
    return struct.pack('<BBHHH', 2, 0, 8 + len(body), len(aces), 0) + body


SAMPLE_DACL = _acl(
    _ace(0x00, 0x03, bytes.fromhex('FF011F00') + LOCAL_SYSTEM_SID),
    _ace(0x00, 0x13, bytes.fromhex('A9001200') + ADMINISTRATORS_SID),
)
EMPTY_SACL = _acl()


def _sample_descriptor(with_sacl: bool) -> bytes:
    dacl_offset = 20
    sacl_offset = (20 + len(SAMPLE_DACL)) if with_sacl else 0
    owner_offset = 20 + len(SAMPLE_DACL) + (len(EMPTY_SACL) if with_sacl else 0)
    group_offset = owner_offset + len(ADMINISTRATORS_SID)

    return struct.pack('<BBHIIII', 1, 0, 0x8014 if with_sacl else 0x8004, owner_offset, group_offset, sacl_offset,
                       dacl_offset) + SAMPLE_DACL + (EMPTY_SACL if with_sacl else b'') + ADMINISTRATORS_SID + \
        LOCAL_SYSTEM_SID


class SecurityDescriptorToJSONTest(unittest.TestCase):
    def test_default_options(self):
        result = to_json(decode_nt_security_descriptor(_sample_descriptor(with_sacl=False)))

        self.assertEqual(list(result.keys()), ['owner_sid', 'group_sid', 'dacl'])
        self.assertEqual(result['owner_sid'], 'S-1-5-32-544')
        self.assertEqual(result['group_sid'], 'S-1-5-18')
        self.assertEqual(result['dacl']['count'], 2)
        self.assertEqual(
            result['dacl']['entries'][0],
            {
                'ace_type': 'ACCESS_ALLOWED',
                'ace_flags': ['OBJECT_INHERIT', 'CONTAINER_INHERIT'],
                'data': {
                    'access_rights': 0x1f01ff,
                    'access_rights_names': ['DELETE', 'READ_CONTROL', 'WRITE_DAC', 'WRITE_OWNER', 'SYNCHRONIZE'],
                    'sid': 'S-1-5-18',
                },
            }
        )

    def test_empty_sacl_skipped(self):
        sd = decode_nt_security_descriptor(_sample_descriptor(with_sacl=True))

        self.assertEqual(sd.sacl.count, 0)
        self.assertNotIn('sacl', to_json(sd))

    def test_empty_acls_kept_if_requested(self):
        options = NTSerializationOptions(skip_empty_acls=False)

        self.assertEqual(
            to_json(decode_nt_security_descriptor(_sample_descriptor(with_sacl=True)), options)['sacl'],
            {'revision': 2, 'count': 0, 'entries': []}
        )
        self.assertIsNone(to_json(decode_nt_security_descriptor(_sample_descriptor(with_sacl=False)), options)['sacl'])

    def test_header(self):
        sd = decode_nt_security_descriptor(_sample_descriptor(with_sacl=False))

        self.assertEqual(
            to_json(sd, NTSerializationOptions(include_header=True))['header'],
            {'revision': 1, 'control_flags': ['DACL_PRESENT', 'SELF_RELATIVE']}
        )

        options = NTSerializationOptions(include_header=True, include_layout=True, flags_as_names=False)

        self.assertEqual(
            to_json(sd, options)['header'],
            {
                'revision': 1, 'control_flags': 0x8004, 'padding': 0, 'owner_sid_offset': 72, 'group_sid_offset': 88,
                'sacl_offset': 0, 'dacl_offset': 20,
            }
        )

    def test_options_do_not_leak_between_calls(self):
        sd = decode_nt_security_descriptor(_sample_descriptor(with_sacl=False))

        as_strings = to_json(sd, NTSerializationOptions(ints_as_strings=True))
        as_ints = to_json(sd)

        self.assertEqual(as_strings['dacl']['entries'][0]['data']['access_rights'], str(0x1f01ff))
        self.assertEqual(as_ints['dacl']['entries'][0]['data']['access_rights'], 0x1f01ff)

    def test_text(self):
        sd = decode_nt_security_descriptor(_sample_descriptor(with_sacl=False))

        self.assertEqual(json.loads(to_json_text(sd, indent=2)), to_json(sd))


class AclToJSONTest(unittest.TestCase):
    def test_layout_fields(self):
        result = to_json(decode_nt_acl(SAMPLE_DACL), NTSerializationOptions(include_layout=True, flags_as_names=False))

        self.assertEqual(result['size'], len(SAMPLE_DACL))
        self.assertEqual(result['padding1'], 0)
        self.assertEqual(result['padding2'], 0)
        self.assertEqual(result['entries'][1]['ace_flags'], 0x13)
        self.assertEqual(result['entries'][1]['size'], 24)
        self.assertNotIn('access_rights_names', result['entries'][1]['data'])


class AceToJSONTest(unittest.TestCase):
    def test_rights_domain(self):
        ace = decode_nt_ace(_ace(0x00, 0, bytes.fromhex('A9001200') + ADMINISTRATORS_SID))

        self.assertEqual(
            to_json(ace, NTSerializationOptions(rights_domain=NTRightsDomain.FILE))['data']['access_rights_names'],
            ['READ_DATA', 'READ_EA', 'EXECUTE', 'READ_ATTRIBUTES', 'READ_CONTROL', 'SYNCHRONIZE']
        )

    def test_mandatory_label(self):
        ace = decode_nt_ace(_ace(0x11, 0, bytes.fromhex('01000000') + HIGH_INTEGRITY_SID))

        self.assertEqual(
            to_json(ace, NTSerializationOptions(rights_domain=NTRightsDomain.FILE))['data'],
            {'access_rights': 1, 'access_rights_names': ['NO_WRITE_UP'], 'sid': 'S-1-16-12288'}
        )

    def test_object_ace(self):
        ace = decode_nt_ace(_ace(0x05, 0, bytes.fromhex('00010000 01000000') + SAMPLE_GUID + LOCAL_SYSTEM_SID))

        self.assertEqual(
            to_json(ace, NTSerializationOptions(rights_domain=NTRightsDomain.DIRECTORY_SERVICE))['data'],
            {
                'access_rights': 0x100,
                'access_rights_names': ['CONTROL_ACCESS'],
                'object_flags': ['OBJECT_TYPE_PRESENT'],
                'object_type': '54849625-5478-4994-A5BA-3E3B0328C30D',
                'sid': 'S-1-5-18',
            }
        )

    def test_callback_data_as_hex(self):
        ace = decode_nt_ace(_ace(0x09, 0, bytes.fromhex('01000000') + LOCAL_SYSTEM_SID + b'artx'))

        self.assertEqual(to_json(ace)['data']['application_data'], '61727478')

    def test_unhandled_as_hex(self):
        ace = decode_nt_ace(_ace(0x04, 0, b'\x01\x02\xff'))

        self.assertEqual(
            to_json(ace),
            {'ace_type': 'ACCESS_ALLOWED_COMPOUND', 'ace_flags': [], 'data': {'raw_data': '0102ff'}}
        )


class MiscToJSONTest(unittest.TestCase):
    def test_sid(self):
        self.assertEqual(to_json(decode_nt_security_id(LOCAL_SYSTEM_SID)), 'S-1-5-18')

    def test_unsupported(self):
        with self.assertRaises(NotImplementedError):
            to_json(object())


if __name__ == '__main__':
    unittest.main()
