"""
Exceptions raised when security descriptor data does not match the expected structure.

Note that running out of data is not reported through these classes. Short reads surface unchanged as the
`BinaryReaderFormatError` subclasses raised by `BinaryReader` (`BinaryReaderMissingDataError` and
`BinaryReaderReadPastEndError`), and failures of the underlying stream as whatever the stream raises.
"""

from typing import Optional


class NTSecurityDecodeError(Exception):
    """
    Base class for the structural errors detected while decoding security descriptors, ACLs and ACEs.
    """


class UnknownAceTypeError(NTSecurityDecodeError):
    ace_type: int
    position: Optional[int]

    def __init__(self, ace_type: int, position: Optional[int] = None):
        self.ace_type = ace_type
        self.position = position

        where = f"At position {position}, found" if position is not None else "Found"

        super().__init__(f"{where} ACE of unknown type 0x{ace_type:02x}")


class AceSizeTooSmallError(NTSecurityDecodeError):
    position: int
    size: int

    def __init__(self, position: int, size: int):
        self.position = position
        self.size = size

        super().__init__(
            f"At position {position}, ACE declares a size of {size} bytes, which is less than its own 4-byte header"
        )


class AclSizeMismatchError(NTSecurityDecodeError):
    position: int
    declared_size: int
    actual_size: int

    def __init__(self, position: int, declared_size: int, actual_size: int):
        self.position = position
        self.declared_size = declared_size
        self.actual_size = actual_size

        super().__init__(
            f"ACL at position {position} declares a size of {declared_size} bytes, but its entries take up "
            f"{actual_size}"
        )
