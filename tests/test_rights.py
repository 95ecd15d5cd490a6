import unittest

from atmfjstc.lib.nt_security.rights import NTRightsDomain, access_rights_names


class AccessRightsNamesTest(unittest.TestCase):
    def test_file_full_control(self):
        self.assertEqual(
            access_rights_names(0x001f01ff, NTRightsDomain.FILE),
            (
                'READ_DATA', 'WRITE_DATA', 'APPEND_DATA', 'READ_EA', 'WRITE_EA', 'EXECUTE', 'READ_ATTRIBUTES',
                'WRITE_ATTRIBUTES', 'DELETE', 'READ_CONTROL', 'WRITE_DAC', 'WRITE_OWNER', 'SYNCHRONIZE',
            )
        )

    def test_directory_names_differ(self):
        self.assertEqual(
            access_rights_names(0x00000061, NTRightsDomain.DIRECTORY),
            ('LIST_DIRECTORY', 'TRAVERSE', 'DELETE_CHILD')
        )

    def test_generic_domain_ignores_specific_bits(self):
        self.assertEqual(access_rights_names(0x100201ff), ('READ_CONTROL', 'GENERIC_ALL'))

    def test_registry_key(self):
        self.assertEqual(
            access_rights_names(0x00020019, NTRightsDomain.REGISTRY_KEY),
            ('QUERY_VALUE', 'ENUMERATE_SUB_KEYS', 'NOTIFY', 'READ_CONTROL')
        )

    def test_directory_service(self):
        self.assertEqual(
            access_rights_names(0x00000130, NTRightsDomain.DIRECTORY_SERVICE),
            ('READ_PROPERTY', 'WRITE_PROPERTY', 'CONTROL_ACCESS')
        )

    def test_mandatory_label(self):
        self.assertEqual(access_rights_names(0x00000003, NTRightsDomain.MANDATORY_LABEL), ('NO_WRITE_UP', 'NO_READ_UP'))

    def test_top_bit(self):
        self.assertEqual(access_rights_names(0x80000000), ('GENERIC_READ',))

    def test_zero(self):
        self.assertEqual(access_rights_names(0, NTRightsDomain.FILE), ())


if __name__ == '__main__':
    unittest.main()
