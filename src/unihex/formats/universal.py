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

r"""Universal Hex packer, merger, and splitter.

A *Universal Hex* multiplexes several Intel HEX images, each one targeting a
board identified by its *Board ID*, into a single file.
Each image is converted into runs of records aligned to a fixed boundary
(512 characters by default), each run opened by an *Extended Linear Address*
record followed by a *Block Start* record, and closed by a *Block End*
record.

Two layouts are supported:

* *sections*: each image is a single run, padded to the boundary at its end;
* *blocks*: each image is split into runs of exactly one boundary size.

See Also:
    `<https://github.com/microbit-foundation/spec-universal-hex>`_
"""

import enum
import logging
from typing import Dict
from typing import List
from typing import Sequence

from deprecated import deprecated

from ..base import EmptyInputError
from ..base import FormatError
from ..base import RangeError
from ..base import StructuralError
from .ihex import MAX_RECORD_STR_LEN
from .ihex import RecordType
from .ihex import block_end_record
from .ihex import block_start_record
from .ihex import convert_ext_seg_to_lin_address_record
from .ihex import convert_record_to
from .ihex import end_of_file_record
from .ihex import extended_linear_address_record
from .ihex import find_data_field_length
from .ihex import get_record_data
from .ihex import get_record_type
from .ihex import padded_data_record
from .ihex import split_records

_logger = logging.getLogger(__name__)

BLOCK_SIZE: int = 512
r"""Default boundary size, in characters, line terminators included."""

V1_BOARD_IDS = (0x9900, 0x9901)
r"""Board IDs of micro:bit V1 boards, whose data keeps the *Data* type."""

V2_BOARD_IDS = (0x9903, 0x9904, 0x9905, 0x9906)
r"""Board IDs of micro:bit V2 boards."""

MIN_BLOCK_SIZE: int = (len(extended_linear_address_record(0)) + len(block_start_record(0)) +
                       len(block_end_record(0)) + MAX_RECORD_STR_LEN + 4)
r"""Smallest boundary of the *blocks* layout, in characters.

A block holds its header, its *Block End* record, and at least the longest
record, line terminators included.
"""

_EOF_NL_RECORD = end_of_file_record() + '\n'

_MAKECODE_RAM_RECORD = extended_linear_address_record(0x20000000)

_ELA_RECORD_PREFIX = ':02000004'
_BLOCK_START_RECORD_PREFIX = ':0400000A'


class BoardId(enum.IntEnum):
    r"""Well-known micro:bit Board IDs."""

    V1 = 0x9900
    r"""micro:bit V1 (v1.3, v1.3B, and v1.5)."""

    V2 = 0x9903
    r"""micro:bit V2."""


class IndividualHex:
    r"""Intel HEX image targeting a board.

    Attributes:
        hex (str):
            Intel HEX text.

        board_id (int):
            Board ID of the target, from 0 to 0xFFFF.

    Examples:
        >>> IndividualHex(':00000001FF\n', BoardId.V1) == IndividualHex(':00000001FF\n', 0x9900)
        True
    """

    def __eq__(self, other: object) -> bool:

        if not isinstance(other, IndividualHex):
            return NotImplemented

        return self.hex == other.hex and self.board_id == other.board_id

    def __init__(self, hex: str, board_id: int):

        self.hex: str = hex
        self.board_id: int = int(board_id)

    def __repr__(self) -> str:

        return f'<{self.__class__.__name__} board_id:=0x{self.board_id:04X} size:={len(self.hex)}>'


def _is_universal_hex_records(records: Sequence[str]) -> bool:

    return (len(records) >= 2 and
            get_record_type(records[0]) == RecordType.EXTENDED_LINEAR_ADDRESS and
            get_record_type(records[1]) == RecordType.BLOCK_START and
            get_record_type(records[-1]) == RecordType.END_OF_FILE)


def _is_makecode_for_v1_hex_records(records: Sequence[str]) -> bool:

    if not records:
        return False

    try:
        i = records.index(end_of_file_record())
    except ValueError:
        i = -1

    if i == len(records) - 1:
        # RAM metadata before a final EoF
        i -= 1
        while i > 0:
            if records[i] == _MAKECODE_RAM_RECORD:
                return True
            i -= 1

    i += 1
    while i < len(records):
        record = records[i]
        if get_record_type(record) == RecordType.OTHER_DATA:
            return True
        if record == _MAKECODE_RAM_RECORD:
            return True
        i += 1

    return False


def is_makecode_for_v1_hex(hexstr: str) -> bool:
    r"""Tells whether the image comes from MakeCode for micro:bit V1.

    Such images store project metadata after the *End Of File* record, either
    as *Other Data* records or within the RAM address space
    (``0x2000_0000``), or they store it within RAM just before a final
    *End Of File* record.

    Args:
        hexstr (str):
            Intel HEX text.

    Returns:
        bool: The image looks like a MakeCode V1 image.

    Examples:
        >>> is_makecode_for_v1_hex(':020000040000FA\n:00000001FF\n')
        False
        >>> is_makecode_for_v1_hex(':00000001FF\n:0400000E01020304E4\n')
        True
    """

    return _is_makecode_for_v1_hex_records(split_records(hexstr))


def _raise_misplaced_eof(records: Sequence[str], index: int, board_id: int) -> None:

    if _is_makecode_for_v1_hex_records(records):
        raise FormatError(f'Board ID {board_id} Hex is from MakeCode, '
                          f'import this hex into the MakeCode editor to create a Universal Hex.')

    raise FormatError(f'EoF record found at record {index} of {len(records)} '
                      f'in Board ID {board_id} hex')


def _check_not_universal(records: Sequence[str], board_id: int) -> None:

    if _is_universal_hex_records(records):
        raise StructuralError(f'Board ID {board_id} Hex is already a Universal Hex.')


def _check_block_size(block_size: int, min_size: int) -> None:

    # Every line is an even number of characters, newline included
    if block_size < min_size or block_size % 2:
        raise RangeError(f'Boundary out of range, expected an even number of at least '
                         f'{min_size} characters: {block_size}')


def ihex_to_custom_format_blocks(
    hexstr: str,
    board_id: int,
    block_size: int = BLOCK_SIZE,
) -> str:
    r"""Converts an Intel HEX image into the *blocks* layout.

    Each block is exactly `block_size` characters long, line terminators
    included, and it is self-contained: it starts with the current
    *Extended Linear Address* record and a *Block Start* record, and it ends
    with a *Block End* record.
    Blocks are filled up with *Padded Data* records as needed.

    Data records are converted into *Custom Data* records, unless
    `board_id` is within :data:`V1_BOARD_IDS`.

    The output is not a complete Universal Hex, but a part of it, to be
    merged via :func:`create_universal_hex`.

    Args:
        hexstr (str):
            Intel HEX text.

        board_id (int):
            Board ID of the image, from 0 to 0xFFFF.

        block_size (int):
            Block size, in characters; even, and at least
            :data:`MIN_BLOCK_SIZE`.

    Returns:
        str: Converted text, each line terminated by ``\n``; empty if the
        input has no records.

    Raises:
        RangeError: Board ID or `block_size` out of range.
        StructuralError: The input is already a Universal Hex.
        FormatError: Invalid record, or *End Of File* record not at the end.
    """

    _check_block_size(block_size, MIN_BLOCK_SIZE)

    replace_data = board_id not in V1_BOARD_IDS

    start_record = block_start_record(board_id)
    current_ext = extended_linear_address_record(0)

    ext_record_len = len(current_ext)
    start_record_len = len(start_record)
    end_record_base_len = len(block_end_record(0))
    pad_record_base_len = len(padded_data_record(0))

    records = split_records(hexstr)
    if not records:
        return ''

    capacity = find_data_field_length(records)
    _check_not_universal(records, board_id)

    lines: List[str] = []
    count = len(records)
    ih = 0

    while ih < count:
        block_len = 0

        # Avoid repeating an address record just after the block start
        first_tag = get_record_type(records[ih])
        if first_tag == RecordType.EXTENDED_LINEAR_ADDRESS:
            current_ext = records[ih]
            ih += 1
        elif first_tag == RecordType.EXTENDED_SEGMENT_ADDRESS:
            current_ext = convert_ext_seg_to_lin_address_record(records[ih])
            ih += 1

        lines.append(current_ext)
        block_len += ext_record_len + 1
        lines.append(start_record)
        block_len += start_record_len + 1
        block_len += end_record_base_len + 1

        end_of_file = False
        while ih < count and block_size >= block_len + len(records[ih]) + 1:
            record = records[ih]
            ih += 1
            tag = get_record_type(record)

            if replace_data and tag == RecordType.DATA:
                record = convert_record_to(record, RecordType.CUSTOM_DATA)

            elif tag == RecordType.EXTENDED_LINEAR_ADDRESS:
                current_ext = record

            elif tag == RecordType.EXTENDED_SEGMENT_ADDRESS:
                record = convert_ext_seg_to_lin_address_record(record)
                current_ext = record

            elif tag == RecordType.END_OF_FILE:
                end_of_file = True
                break

            lines.append(record)
            block_len += len(record) + 1

        if end_of_file:
            if ih != count:
                _raise_misplaced_eof(records, ih, board_id)

            # Already accounted for within the block size
            lines.append(block_end_record(0))
            lines.append(end_of_file_record())

        else:
            while block_size - block_len > capacity * 2:
                pad_len = min((block_size - block_len - (pad_record_base_len + 1)) // 2, capacity)
                record = padded_data_record(pad_len)
                lines.append(record)
                block_len += len(record) + 1

            lines.append(block_end_record((block_size - block_len) // 2))

    lines.append('')
    _logger.debug('Board ID 0x%04X: %d records packed into %d block lines',
                  board_id, count, len(lines) - 1)
    return '\n'.join(lines)


def ihex_to_custom_format_section(
    hexstr: str,
    board_id: int,
    block_size: int = BLOCK_SIZE,
) -> str:
    r"""Converts an Intel HEX image into the *sections* layout.

    The whole image becomes a single section, starting with an
    *Extended Linear Address* record and a *Block Start* record, and ending
    with *Padded Data* records and a *Block End* record, so that the section
    length is a multiple of `block_size` characters.
    The *End Of File* record, if any, follows the *Block End* record, and it
    is not accounted for the alignment.

    Data records are converted into *Custom Data* records, unless
    `board_id` is within :data:`V1_BOARD_IDS`.

    Args:
        hexstr (str):
            Intel HEX text.

        board_id (int):
            Board ID of the image, from 0 to 0xFFFF.

        block_size (int):
            Alignment boundary, in characters; a positive even number.

    Returns:
        str: Converted text, each line terminated by ``\n``; empty if the
        input has no records.

    Raises:
        RangeError: Board ID or `block_size` out of range.
        StructuralError: The input is already a Universal Hex.
        FormatError: Invalid record, or *End Of File* record not at the end.
    """

    _check_block_size(block_size, 2)

    records = split_records(hexstr)
    if not records:
        return ''

    _check_not_universal(records, board_id)

    lines: List[str] = []
    section_len = 0

    def add_record(record: str) -> None:
        nonlocal section_len
        lines.append(record)
        section_len += len(record) + 1

    # Images without a leading address record start at 0x0000_0000
    first_tag = get_record_type(records[0])
    ih = 0
    if first_tag == RecordType.EXTENDED_LINEAR_ADDRESS:
        add_record(records[0])
        ih += 1
    elif first_tag == RecordType.EXTENDED_SEGMENT_ADDRESS:
        add_record(convert_ext_seg_to_lin_address_record(records[0]))
        ih += 1
    else:
        add_record(extended_linear_address_record(0))

    add_record(block_start_record(board_id))

    replace_data = board_id not in V1_BOARD_IDS
    count = len(records)
    end_of_file = False

    while ih < count:
        record = records[ih]
        ih += 1
        tag = get_record_type(record)

        if tag == RecordType.DATA:
            if replace_data:
                record = convert_record_to(record, RecordType.CUSTOM_DATA)
            add_record(record)

        elif tag == RecordType.EXTENDED_SEGMENT_ADDRESS:
            add_record(convert_ext_seg_to_lin_address_record(record))

        elif tag == RecordType.END_OF_FILE:
            end_of_file = True
            break

        else:
            add_record(record)

    if ih != count:
        _raise_misplaced_eof(records, ih, board_id)

    # Minimum Block End record length, padding excluded
    section_len += len(block_end_record(0)) + 1

    pad_record_base_len = len(padded_data_record(0)) + 1
    max_data_bytes = find_data_field_length(records)
    chars_needed = (block_size - (section_len % block_size)) % block_size

    while chars_needed > max_data_bytes * 2:
        pad_len = min((chars_needed - pad_record_base_len) >> 1, max_data_bytes)
        add_record(padded_data_record(pad_len))
        chars_needed = (block_size - (section_len % block_size)) % block_size

    lines.append(block_end_record(chars_needed >> 1))
    if end_of_file:
        lines.append(end_of_file_record())
    lines.append('')

    _logger.debug('Board ID 0x%04X: %d records packed into a %d lines section',
                  board_id, count, len(lines) - 1)
    return '\n'.join(lines)


def create_universal_hex(
    hexes: Sequence[IndividualHex],
    blocks: bool = False,
    block_size: int = BLOCK_SIZE,
) -> str:
    r"""Creates a Universal Hex from Intel HEX images.

    Each image is converted via :func:`ihex_to_custom_format_section`, or
    via :func:`ihex_to_custom_format_blocks` if `blocks` is true.
    The *End Of File* record is removed from all the images but the last
    one, and the result always ends with a single *End Of File* record.

    Args:
        hexes (list of :class:`IndividualHex`):
            Images to merge, in order.

        blocks (bool):
            Use the *blocks* layout instead of the *sections* one.

        block_size (int):
            Alignment boundary, in characters.

    Returns:
        str: Universal Hex text; empty if `hexes` is empty.

    Raises:
        RangeError: Board ID or `block_size` out of range.
        StructuralError: Some image is already a Universal Hex.
        FormatError: Invalid image.

    Examples:
        >>> print(create_universal_hex([IndividualHex(':00000001FF\n', BoardId.V1)]), end='')
        :020000040000FA
        :0400000A9900C0DEBB
        :1000000CFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFF4
        :1000000CFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFF4
        :1000000CFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFF4
        :1000000CFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFF4
        :1000000CFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFF4
        :1000000CFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFF4
        :1000000CFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFF4
        :1000000CFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFF4
        :1000000CFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFF4
        :1000000CFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFF4
        :0C00000BFFFFFFFFFFFFFFFFFFFFFFFFF5
        :00000001FF
    """

    if not hexes:
        return ''

    convert = ihex_to_custom_format_blocks if blocks else ihex_to_custom_format_section
    chunks: List[str] = []

    for index, individual in enumerate(hexes):
        chunk = convert(individual.hex, individual.board_id, block_size=block_size)
        _logger.debug('Board ID 0x%04X: %d characters', individual.board_id, len(chunk))

        if index < len(hexes) - 1:
            # Single EoF record, at the very end
            if chunk.endswith(_EOF_NL_RECORD):
                chunk = chunk[:-len(_EOF_NL_RECORD)]
            chunks.append(chunk)
        else:
            chunks.append(chunk)
            if not chunk.endswith(_EOF_NL_RECORD):
                chunks.append(_EOF_NL_RECORD)

    return ''.join(chunks)


@deprecated(reason='Use create_universal_hex(hexes, blocks=True) instead')
def create_fat_binary(hexes: Sequence[IndividualHex]) -> str:
    r"""Creates a Universal Hex with the *blocks* layout.

    Legacy entry point of the "fat binary" format, superseded by the
    Universal Hex.
    """

    return create_universal_hex(hexes, blocks=True)


def is_universal_hex(hexstr: str) -> bool:
    r"""Tells whether the text looks like a Universal Hex.

    Only the opening *Extended Linear Address* and *Block Start* records are
    checked, scanning the text directly regardless of its line terminators.

    Args:
        hexstr (str):
            Text to check.

    Returns:
        bool: The text starts like a Universal Hex.

    Examples:
        >>> is_universal_hex(':020000040000FA\n:0400000A9900C0DEBB\n')
        True
        >>> is_universal_hex(':020000040000FA\r\n:0400000A9900C0DEBB\r\n')
        True
        >>> is_universal_hex(':020000040000FA\n:00000001FF\n')
        False
    """

    if hexstr[:len(_ELA_RECORD_PREFIX)] != _ELA_RECORD_PREFIX:
        return False

    # Find the next record, regardless of line terminators
    i = len(_ELA_RECORD_PREFIX) + 1
    while hexstr[i:(i + 1)] != ':' and i < MAX_RECORD_STR_LEN + 3:
        i += 1

    return hexstr[i:(i + len(_BLOCK_START_RECORD_PREFIX))] == _BLOCK_START_RECORD_PREFIX


def separate_universal_hex(hexstr: str) -> List[IndividualHex]:
    r"""Separates a Universal Hex into its Intel HEX images.

    *Custom Data* records are converted back into *Data* records, while
    alignment records are discarded.
    Consecutive duplicate *Extended Linear Address* records of the same board
    are dropped.
    Each image is terminated by an *End Of File* record.

    Args:
        hexstr (str):
            Universal Hex text.

    Returns:
        list of :class:`IndividualHex`: Images, in order of first appearance
        of their Board IDs.

    Raises:
        EmptyInputError: No records.
        StructuralError: Not a Universal Hex.
        FormatError: Invalid record.

    Examples:
        >>> text = create_universal_hex([IndividualHex(':00000001FF\n', BoardId.V1)])
        >>> separate_universal_hex(text)
        [<IndividualHex board_id:=0x9900 size:=28>]
    """

    records = split_records(hexstr)
    if not records:
        raise EmptyInputError('Empty Universal Hex.')

    if not _is_universal_hex_records(records):
        raise StructuralError('Universal Hex format invalid.')

    passthrough = (
        RecordType.DATA,
        RecordType.END_OF_FILE,
        RecordType.EXTENDED_SEGMENT_ADDRESS,
        RecordType.START_SEGMENT_ADDRESS,
    )

    boards: Dict[int, Dict] = {}
    board_id = 0
    i = 0
    count = len(records)

    while i < count:
        record = records[i]
        tag = get_record_type(record)

        if tag in passthrough:
            boards[board_id]['records'].append(record)

        elif tag == RecordType.CUSTOM_DATA:
            boards[board_id]['records'].append(convert_record_to(record, RecordType.DATA))

        elif tag == RecordType.EXTENDED_LINEAR_ADDRESS:
            # Always followed by something, the last record being EoF
            next_record = records[i + 1]
            if get_record_type(next_record) == RecordType.BLOCK_START:
                data = get_record_data(next_record)
                if len(data) != 4:
                    raise FormatError(f'Block Start record invalid: {next_record}')

                board_id = (data[0] << 8) + data[1]
                boards.setdefault(board_id, {'last_ext': record, 'records': [record]})
                i += 1

            board = boards[board_id]
            if board['last_ext'] != record:
                board['last_ext'] = record
                board['records'].append(record)

        i += 1

    hexes = []
    eof_record = end_of_file_record()

    for board_id, board in boards.items():
        lines = board['records']
        if lines[-1] != eof_record:
            lines.append(eof_record)

        _logger.debug('Board ID 0x%04X: %d records separated', board_id, len(lines))
        hexes.append(IndividualHex('\n'.join(lines) + '\n', board_id))

    return hexes
