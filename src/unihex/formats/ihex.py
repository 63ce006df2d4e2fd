# Copyright (c) 2013-2025, Andrea Zoppi
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
# 1. Redistributions of source code must retain the above copyright notice,
#    this list of conditions and the following disclaimer.
#
# 2. Redistributions in binary form must reproduce the above copyright
#    notice, this list of conditions and the following disclaimer in the
#    documentation and/or other materials provided with the distribution.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
# ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE
# LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
# CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF
# SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS
# INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
# CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE)
# ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.

r"""Intel HEX records, including the Universal Hex custom record types.

Records are handled as text lines, without line terminator, as found within
Intel HEX files.
The :class:`Record` object provides a decoded view of a single line.

See Also:
    `<https://en.wikipedia.org/wiki/Intel_HEX>`_
    `<https://github.com/microbit-foundation/spec-universal-hex>`_
"""

import enum
from typing import List
from typing import Mapping
from typing import Optional
from typing import Sequence

from ..base import AnyBytes
from ..base import FormatError
from ..base import RangeError
from ..utils import hexlify
from ..utils import unhexlify

RECORD_DATA_MAX_BYTES: int = 32
r"""Maximum data field size, in bytes.

The Intel HEX format allows up to 255 bytes; 16 and 32 bytes are the most
common lengths, and DAPLink does not support more than 32 bytes.
"""

START_CODE: str = ':'

BYTE_COUNT_STR_INDEX: int = 1
ADDRESS_STR_INDEX: int = 3
RECORD_TYPE_STR_INDEX: int = 7
DATA_STR_INDEX: int = 9
CHECKSUM_STR_LEN: int = 2

MIN_RECORD_STR_LEN: int = DATA_STR_INDEX + CHECKSUM_STR_LEN
r"""Minimum record line length, without line terminator."""

MAX_RECORD_STR_LEN: int = MIN_RECORD_STR_LEN + (RECORD_DATA_MAX_BYTES * 2)
r"""Maximum record line length, without line terminator."""

EOF_RECORD: str = ':00000001FF'

BLOCK_START_MAGIC: bytes = b'\xC0\xDE'
r"""Fixed trailer of the *Block Start* record data field."""


class RecordType(enum.IntEnum):
    r"""Intel HEX record type, including Universal Hex custom types."""

    DATA = 0x00
    r"""Binary data."""

    END_OF_FILE = 0x01
    r"""End Of File."""

    EXTENDED_SEGMENT_ADDRESS = 0x02
    r"""Extended Segment Address."""

    START_SEGMENT_ADDRESS = 0x03
    r"""Start Segment Address."""

    EXTENDED_LINEAR_ADDRESS = 0x04
    r"""Extended Linear Address."""

    START_LINEAR_ADDRESS = 0x05
    r"""Start Linear Address."""

    BLOCK_START = 0x0A
    r"""Block Start (custom): opens a board section, carries the board ID."""

    BLOCK_END = 0x0B
    r"""Block End (custom): closes a board section, data is padding."""

    PADDED_DATA = 0x0C
    r"""Padded Data (custom): data to be ignored, used for alignment."""

    CUSTOM_DATA = 0x0D
    r"""Custom Data (custom): binary data for non-legacy boards."""

    OTHER_DATA = 0x0E
    r"""Other Data (custom): data not meant to be flashed."""

    def is_custom(self) -> bool:
        r"""Tells whether this is a Universal Hex custom record type.

        Examples:
            >>> RecordType.BLOCK_START.is_custom()
            True
            >>> RecordType.DATA.is_custom()
            False
        """

        return self >= RecordType.BLOCK_START

    def is_data(self) -> bool:

        return self == RecordType.DATA

    def is_eof(self) -> bool:

        return self == RecordType.END_OF_FILE

    def is_extension(self) -> bool:
        r"""Tells whether this is an Extended Address record type.

        Examples:
            >>> RecordType.EXTENDED_LINEAR_ADDRESS.is_extension()
            True
            >>> RecordType.EXTENDED_SEGMENT_ADDRESS.is_extension()
            True
            >>> RecordType.DATA.is_extension()
            False
        """

        return ((self == RecordType.EXTENDED_SEGMENT_ADDRESS) or
                (self == RecordType.EXTENDED_LINEAR_ADDRESS))

    def is_start(self) -> bool:

        return ((self == RecordType.START_SEGMENT_ADDRESS) or
                (self == RecordType.START_LINEAR_ADDRESS))


_RECORD_TYPE_VALUES = frozenset(int(tag) for tag in RecordType)


def is_record_type_valid(tag: int) -> bool:
    r"""Tells whether `tag` is a known record type value."""

    return isinstance(tag, int) and tag in _RECORD_TYPE_VALUES


def compute_checksum(data: AnyBytes) -> int:
    r"""Computes the Intel HEX checksum.

    This is the least significant byte of the two's complement of the sum of
    all the bytes.

    Args:
        data (bytes):
            Record bytes, from the byte count up to the end of the data field.

    Returns:
        int: Checksum byte.

    Examples:
        >>> compute_checksum(b'\x00\x00\x00\x01')
        255
        >>> compute_checksum(b'')
        0
    """

    return -sum(data) & 0xFF


def _build_line(address: int, tag: int, data: AnyBytes) -> str:

    content = bytes((len(data), (address >> 8) & 0xFF, address & 0xFF, tag))
    content += bytes(data)
    return f'{START_CODE}{hexlify(content)}{compute_checksum(content):02X}'


def create_record(address: int, tag: int, data: AnyBytes) -> str:
    r"""Creates an Intel HEX record line.

    Args:
        address (int):
            The two least significant bytes of the data address.

        tag (int):
            Record type, either one of the standard types or one of the custom
            types used to build a Universal Hex.

        data (bytes):
            Data field, up to :data:`RECORD_DATA_MAX_BYTES` bytes.

    Returns:
        str: Record line, without line terminator.

    Raises:
        RangeError: `address` or data size out of range.
        FormatError: Invalid record type.

    Examples:
        >>> create_record(0xF870, RecordType.DATA, b'\0\0\0\0')
        ':04F870000000000094'
        >>> create_record(0, RecordType.BLOCK_START, b'\x99\x01\xC0\xDE')
        ':0400000A9901C0DEBA'
    """

    if not 0 <= address <= 0xFFFF:
        raise RangeError(f'Record ({tag}) address out of range: {address}')

    size = len(data)
    if size > RECORD_DATA_MAX_BYTES:
        raise RangeError(f'Record ({tag}) data has too many bytes ({size}).')

    if not is_record_type_valid(tag):
        raise FormatError(f"Record type '{tag}' is not valid.")

    return _build_line(address, tag, data)


def validate_record(line: str) -> None:
    r"""Checks the shape of a record line.

    The line must start with ``:``, and its length must be within
    :data:`MIN_RECORD_STR_LEN` and :data:`MAX_RECORD_STR_LEN`.

    Raises:
        FormatError: Invalid record shape.
    """

    if len(line) < MIN_RECORD_STR_LEN:
        raise FormatError(f'Record length too small: {line}')

    if len(line) > MAX_RECORD_STR_LEN:
        raise FormatError(f'Record length is too large: {line}')

    if line[0] != START_CODE:
        raise FormatError(f"Record does not start with a ':': {line}")


def get_record_type(line: str) -> RecordType:
    r"""Retrieves the record type of a record line.

    Only the record shape is validated, see :func:`validate_record`.

    Args:
        line (str):
            Record line.

    Returns:
        :class:`RecordType`: Record type.

    Raises:
        FormatError: Invalid record shape or type.

    Examples:
        >>> get_record_type(':00000001FF')
        <RecordType.END_OF_FILE: 1>
        >>> get_record_type(':0400000A9901C0DEBA')
        <RecordType.BLOCK_START: 10>
    """

    validate_record(line)
    tagstr = line[RECORD_TYPE_STR_INDEX:DATA_STR_INDEX]
    try:
        tag = unhexlify(tagstr)[0]
    except FormatError:
        tag = None

    if tag is None or not is_record_type_valid(tag):
        raise FormatError(f"Record type '{tagstr}' from record '{line}' is not valid.")

    return RecordType(tag)


def get_record_data(line: str) -> bytes:
    r"""Retrieves the data field of a record line.

    The data field is whatever lies between the record type and the
    checksum; a line too short to hold a data field yields no data.

    Args:
        line (str):
            Record line.

    Returns:
        bytes: Data field.

    Raises:
        FormatError: The data field is not a valid hexadecimal string.

    Examples:
        >>> get_record_data(':0400000A9903C0DEB8')
        b'\x99\x03\xc0\xde'
        >>> get_record_data(':00000001')
        b''
    """

    try:
        return unhexlify(line[DATA_STR_INDEX:-CHECKSUM_STR_LEN])
    except FormatError as exc:
        raise FormatError(f'Could not parse Intel Hex record "{line}": {exc}') from exc


def parse_record(line: str) -> 'Record':
    r"""Parses a record line into a :class:`Record` object.

    The checksum is decoded but not verified; see :meth:`Record.validate`.

    Args:
        line (str):
            Record line, without line terminator.

    Returns:
        :class:`Record`: Parsed record.

    Raises:
        FormatError: Invalid record shape, hexadecimal string, byte count, or
            record type.

    Examples:
        >>> record = parse_record(':04F870000000000094')
        >>> record.count, hex(record.address), record.tag, record.checksum
        (4, '0xf870', <RecordType.DATA: 0>, 148)
    """

    validate_record(line)
    try:
        buffer = unhexlify(line[1:])
    except FormatError as exc:
        raise FormatError(f'Could not parse Intel Hex record "{line}": {exc}') from exc

    count = buffer[0]
    address = (buffer[1] << 8) | buffer[2]
    tag = buffer[3]
    checksum_index = 4 + count
    total_length = checksum_index + 1

    if len(buffer) > total_length:
        raise FormatError(f'Parsed record "{line}" is larger than indicated by the byte count.'
                          f'\n\tExpected: {total_length}; Length: {len(buffer)}.')

    if len(buffer) < total_length:
        raise FormatError(f'Parsed record "{line}" is smaller than indicated by the byte count.'
                          f'\n\tExpected: {total_length}; Length: {len(buffer)}.')

    if not is_record_type_valid(tag):
        raise FormatError(f"Record type '{tag:02X}' from record '{line}' is not valid.")

    data = buffer[4:checksum_index]
    checksum = buffer[checksum_index]

    return Record(RecordType(tag), address=address, data=data,
                  count=count, checksum=checksum, validate=False)


def end_of_file_record() -> str:
    r"""Creates an End Of File record line.

    Examples:
        >>> end_of_file_record()
        ':00000001FF'
    """

    return EOF_RECORD


def extended_linear_address_record(address: int) -> str:
    r"""Creates an Extended Linear Address record line.

    Only the upper 16 bits of `address` are taken into account.

    Args:
        address (int):
            Full 32-bit address.

    Returns:
        str: Extended Linear Address record line.

    Raises:
        RangeError: `address` does not fit 32 bits.

    Examples:
        >>> extended_linear_address_record(0x00004321)
        ':020000040000FA'
        >>> extended_linear_address_record(0x00031234)
        ':020000040003F7'
    """

    if not 0 <= address <= 0xFFFFFFFF:
        raise RangeError(f'Extended Linear Address record is out of range: {address}')

    data = bytes(((address >> 24) & 0xFF, (address >> 16) & 0xFF))
    return create_record(0, RecordType.EXTENDED_LINEAR_ADDRESS, data)


def convert_ext_seg_to_lin_address_record(line: str) -> str:
    r"""Converts an Extended Segment Address record into a Linear one.

    The segment value is multiplied by 16 to get the linear base address,
    whose lower 16 bits must be zero to be represented by an Extended Linear
    Address record.

    Args:
        line (str):
            Extended Segment Address record line.

    Returns:
        str: Equivalent Extended Linear Address record line.

    Raises:
        FormatError: Invalid Extended Segment Address record.

    Examples:
        >>> convert_ext_seg_to_lin_address_record(':020000021000EC')
        ':020000040001F9'
    """

    try:
        record = parse_record(line)
    except FormatError as exc:
        raise FormatError(f'Invalid Extended Segment Address record {line}: {exc}') from exc

    if (record.tag != RecordType.EXTENDED_SEGMENT_ADDRESS or
            len(record.data) != 2 or record.data[1] or record.data[0] & 0x0F):
        raise FormatError(f'Invalid Extended Segment Address record {line}')

    address = record.data_to_int() << 4
    return extended_linear_address_record(address)


def block_start_record(board_id: int) -> str:
    r"""Creates a Block Start (custom) record line.

    Args:
        board_id (int):
            Board ID to embed into the record, from 0 to 0xFFFF.

    Returns:
        str: Block Start record line.

    Raises:
        RangeError: Board ID out of range.

    Examples:
        >>> block_start_record(0x9903)
        ':0400000A9903C0DEB8'
    """

    if not 0 <= board_id <= 0xFFFF:
        raise RangeError(f'Board ID out of range when creating Block Start record: {board_id}')

    data = board_id.to_bytes(2, byteorder='big') + BLOCK_START_MAGIC
    return create_record(0, RecordType.BLOCK_START, data)


def _padding_record(tag: RecordType, pad_len: int) -> str:

    if pad_len < 0:
        raise RangeError(f'Record ({tag}) padding length out of range: {pad_len}')

    return create_record(0, tag, b'\xFF' * pad_len)


_BLOCK_END_CACHE: Mapping[int, str] = {
    # Full 0x10 data records and a single Extended Linear Address record
    0x04: ':0400000BFFFFFFFFF5',
    # Ten full 0x10 data records
    0x0C: ':0C00000BFFFFFFFFFFFFFFFFFFFFFFFFF5',
}


def block_end_record(pad_len: int) -> str:
    r"""Creates a Block End (custom) record line.

    The data field is ignored by consumers, and it is used as padding.

    Args:
        pad_len (int):
            Number of ``0xFF`` padding bytes within the data field.

    Returns:
        str: Block End record line.

    Raises:
        RangeError: Padding length out of range.

    Examples:
        >>> block_end_record(0)
        ':0000000BF5'
        >>> block_end_record(4)
        ':0400000BFFFFFFFFF5'
    """

    cached = _BLOCK_END_CACHE.get(pad_len)
    if cached is not None:
        return cached
    return _padding_record(RecordType.BLOCK_END, pad_len)


def padded_data_record(pad_len: int) -> str:
    r"""Creates a Padded Data (custom) record line.

    Its data field is ignored by DAPLink, and it is used to align blocks to
    the boundary size.

    Args:
        pad_len (int):
            Number of ``0xFF`` padding bytes within the data field.

    Returns:
        str: Padded Data record line.

    Raises:
        RangeError: Padding length out of range.

    Examples:
        >>> padded_data_record(1)
        ':0100000CFFF4'
    """

    return _padding_record(RecordType.PADDED_DATA, pad_len)


def convert_record_to(line: str, tag: RecordType) -> str:
    r"""Changes the record type of a record line.

    Address and data fields are kept, while the checksum is updated.

    Args:
        line (str):
            Record line.

        tag (:class:`RecordType`):
            New record type.

    Returns:
        str: Record line with the new record type.

    Examples:
        >>> convert_record_to(':105D3000E060E3802046FFF765FF0123A1881A4653',
        ...                   RecordType.CUSTOM_DATA)
        ':105D300DE060E3802046FFF765FF0123A1881A4646'
    """

    record = parse_record(line)
    return _build_line(record.address, tag, record.data)


def split_records(hexstr: str) -> List[str]:
    r"""Splits Intel HEX text into record lines.

    Carriage returns are removed, and empty lines are discarded.

    Examples:
        >>> split_records(':020000040000FA\r\n\r\n:00000001FF\r\n')
        [':020000040000FA', ':00000001FF']
        >>> split_records('')
        []
    """

    return [line for line in hexstr.replace('\r', '').split('\n') if line]


def find_data_field_length(lines: Sequence[str]) -> int:
    r"""Finds the data field length of the records.

    It iterates through the beginning of the record lines, looking for the
    longest data field.
    The search starts from 16 bytes, and it stops as soon as more than 10
    records with the longest data field so far are found.

    This gives the expected maximum data field length, to create new custom
    records of the same size.

    Args:
        lines (str list):
            Record lines.

    Returns:
        int: Data field length, in bytes.

    Raises:
        RangeError: Data field length exceeds :data:`RECORD_DATA_MAX_BYTES`.

    Examples:
        >>> find_data_field_length([':00000001FF'])
        16
    """

    max_data_bytes = 16
    max_data_bytes_count = 0

    for line in lines:
        data_bytes = (len(line) - MIN_RECORD_STR_LEN) // 2
        if data_bytes > max_data_bytes:
            max_data_bytes = data_bytes
            max_data_bytes_count = 0
        elif data_bytes == max_data_bytes:
            max_data_bytes_count += 1

        if max_data_bytes_count > 10:
            break

    if max_data_bytes > RECORD_DATA_MAX_BYTES:
        raise RangeError(f'Intel Hex record data size is too large: {max_data_bytes}')

    return max_data_bytes


class Record:
    r"""Intel HEX record object.

    Attributes:
        tag (:class:`RecordType`):
            Record type.

        address (int):
            16-bit address field, relative to the current address extension.

        data (bytes):
            Data field.

        count (int):
            Byte count field.

        checksum (int):
            Checksum field.

    Args:
        tag (:class:`RecordType`):
            See :attr:`tag` attribute.

        address (int):
            See :attr:`address` attribute.

        data (bytes):
            See :attr:`data` attribute.

        count (int):
            See :attr:`count` attribute.
            ``Ellipsis`` initializes :attr:`count` via :meth:`compute_count`.

        checksum (int):
            See :attr:`checksum` attribute.
            ``Ellipsis`` initializes :attr:`checksum` via
            :meth:`compute_checksum`.

        validate (bool):
            If true, :meth:`validate` is called upon initialization.
    """

    Tag = RecordType

    EQUALITY_KEYS: Sequence[str] = [
        'address',
        'checksum',
        'count',
        'data',
        'tag',
    ]

    def __eq__(self, other: object) -> bool:

        return not self != other

    def __init__(
        self,
        tag: RecordType,
        address: int = 0,
        data: AnyBytes = b'',
        count: Optional[int] = Ellipsis,
        checksum: Optional[int] = Ellipsis,
        validate: bool = True,
    ):

        self.tag: RecordType = RecordType(tag)
        self.address: int = address.__index__()
        self.data: bytes = bytes(data)
        self.count: Optional[int] = None
        self.checksum: Optional[int] = None

        if count is Ellipsis:
            self.update_count()
        elif count is not None:
            self.count = count.__index__()

        if checksum is Ellipsis:
            self.update_checksum()
        elif checksum is not None:
            self.checksum = checksum.__index__()

        if validate:
            self.validate()

    def __ne__(self, other: object) -> bool:

        for key in self.EQUALITY_KEYS:
            if not hasattr(other, key):
                return True
            if getattr(self, key) != getattr(other, key):
                return True

        return False

    def __repr__(self) -> str:

        return (f'<{self.__class__.__name__} tag:={self.tag!r} '
                f'address:=0x{self.address:04X} data:={self.data!r} '
                f'count:={self.count!r} checksum:={self.checksum!r}>')

    def __str__(self) -> str:
        r"""Serializes the record into a line, without line terminator.

        Examples:
            >>> str(Record.create_data(0x1234, b'abc'))
            ':0312340061626391'
        """

        return ''.join(self.to_tokens(end='').values())

    def compute_checksum(self) -> int:

        if self.count is None:
            raise FormatError('missing count')

        address = self.address & 0xFFFF
        content = bytes((self.count & 0xFF, address >> 8, address & 0xFF, int(self.tag)))
        return compute_checksum(content + self.data)

    def compute_count(self) -> int:

        return len(self.data)

    @classmethod
    def create_data(cls, address: int, data: AnyBytes) -> 'Record':

        return cls(RecordType.DATA, address=address, data=data)

    @classmethod
    def create_end_of_file(cls) -> 'Record':
        r"""Creates an End Of File record.

        Examples:
            >>> str(Record.create_end_of_file())
            ':00000001FF'
        """

        return cls(RecordType.END_OF_FILE)

    @classmethod
    def create_extended_linear_address(cls, extension: int) -> 'Record':
        r"""Creates an Extended Linear Address record.

        Args:
            extension (int):
                Upper 16 bits of the linear address.

        Examples:
            >>> str(Record.create_extended_linear_address(0x1234))
            ':020000041234B4'
        """

        if not 0 <= extension <= 0xFFFF:
            raise RangeError(f'Extended Linear Address out of range: {extension}')

        data = extension.to_bytes(2, byteorder='big')
        return cls(RecordType.EXTENDED_LINEAR_ADDRESS, data=data)

    @classmethod
    def create_extended_segment_address(cls, extension: int) -> 'Record':

        if not 0 <= extension <= 0xFFFF:
            raise RangeError(f'Extended Segment Address out of range: {extension}')

        data = extension.to_bytes(2, byteorder='big')
        return cls(RecordType.EXTENDED_SEGMENT_ADDRESS, data=data)

    @classmethod
    def create_start_linear_address(cls, address: int) -> 'Record':

        if not 0 <= address <= 0xFFFFFFFF:
            raise RangeError(f'Start Linear Address out of range: {address}')

        data = address.to_bytes(4, byteorder='big')
        return cls(RecordType.START_LINEAR_ADDRESS, data=data)

    @classmethod
    def create_start_segment_address(cls, address: int) -> 'Record':

        if not 0 <= address <= 0xFFFFFFFF:
            raise RangeError(f'Start Segment Address out of range: {address}')

        data = address.to_bytes(4, byteorder='big')
        return cls(RecordType.START_SEGMENT_ADDRESS, data=data)

    @classmethod
    def create_block_start(cls, board_id: int) -> 'Record':
        r"""Creates a Block Start (custom) record.

        Examples:
            >>> str(Record.create_block_start(0x9901))
            ':0400000A9901C0DEBA'
        """

        return parse_record(block_start_record(board_id))

    def data_to_int(self, byteorder: str = 'big') -> int:
        r"""Interprets data bytes as an unsigned integer.

        Examples:
            >>> record = Record.create_extended_linear_address(0xABCD)
            >>> hex(record.data_to_int())
            '0xabcd'
        """

        return int.from_bytes(self.data, byteorder=byteorder)

    @classmethod
    def parse(cls, line: str) -> 'Record':
        r"""Parses a record line; the line terminator is stripped first.

        See Also:
            :func:`parse_record`
        """

        return parse_record(line.rstrip('\r\n'))

    def to_tokens(self, end: str = '\n') -> Mapping[str, str]:
        r"""Splits the serialized record into field tokens.

        Examples:
            >>> Record.create_data(0x1234, b'abc').to_tokens()  # doctest:+NORMALIZE_WHITESPACE
            {'begin': ':', 'count': '03', 'address': '1234', 'tag': '00',
             'data': '616263', 'checksum': '91', 'end': '\n'}
        """

        return {
            'begin': START_CODE,
            'count': f'{(self.count or 0) & 0xFF:02X}',
            'address': f'{self.address & 0xFFFF:04X}',
            'tag': f'{int(self.tag) & 0xFF:02X}',
            'data': hexlify(self.data),
            'checksum': f'{(self.checksum or 0) & 0xFF:02X}',
            'end': end,
        }

    def update_checksum(self) -> 'Record':

        self.checksum = self.compute_checksum()
        return self

    def update_count(self) -> 'Record':

        self.count = self.compute_count()
        return self

    def validate(
        self,
        checksum: bool = True,
        count: bool = True,
    ) -> 'Record':
        r"""Validates consistency of attribute values.

        Args:
            checksum (bool):
                Check the consistency of the :attr:`checksum` attribute.

            count (bool):
                Check the consistency of the :attr:`count` attribute.

        Returns:
            :class:`Record`: *self*.

        Raises:
            RangeError: Some numeric attribute is out of range.
            FormatError: Some attribute is inconsistent.

        Examples:
            >>> record = Record.create_end_of_file()
            >>> _ = record.validate()
            >>> record.checksum = 0
            >>> _ = record.validate()
            Traceback (most recent call last):
                ...
            unihex.base.FormatError: wrong checksum
        """

        if not 0 <= self.address <= 0xFFFF:
            raise RangeError('address overflow')

        data_size = len(self.data)
        if data_size > RECORD_DATA_MAX_BYTES:
            raise RangeError('data size overflow')

        if self.count is not None:
            if not 0 <= self.count <= 0xFF:
                raise RangeError('count overflow')

            if count and self.count != self.compute_count():
                raise FormatError('wrong count')

        if self.checksum is not None:
            if not 0 <= self.checksum <= 0xFF:
                raise RangeError('checksum overflow')

            if checksum and self.count is not None:
                if self.checksum != self.compute_checksum():
                    raise FormatError('wrong checksum')

        tag = self.tag

        if tag.is_start():
            if data_size != 4:
                raise FormatError('start address data size overflow')

        elif tag.is_extension():
            if data_size != 2:
                raise FormatError('extension data size overflow')

        elif tag.is_eof():
            if data_size:
                raise FormatError('unexpected data')

        elif tag == RecordType.BLOCK_START:
            if data_size != 4:
                raise FormatError('block start data size overflow')

        return self
