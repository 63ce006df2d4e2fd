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

r"""Sparse memory view of Intel HEX images.

Data records are applied onto a :class:`bytesparse.Memory` object, taking
address extension records into account.
"""

from typing import Iterable
from typing import List
from typing import Tuple
from typing import Union

from bytesparse import Memory
from bytesparse.base import ImmutableMemory

from .formats.ihex import Record
from .formats.ihex import RecordType
from .formats.ihex import parse_record
from .formats.ihex import split_records


def records_to_memory(records: Iterable[Union[Record, str]]) -> Memory:
    r"""Applies records onto a memory object.

    Both *Data* and *Custom Data* records are written at their full
    address, i.e. the record address plus the current address extension.
    *Extended Linear Address* records set the extension to their value
    shifted by 16 bits, *Extended Segment Address* records to their value
    shifted by 4 bits.
    Any other record is ignored.

    Args:
        records (list of :class:`Record` or str):
            Records, either parsed or as record lines.

    Returns:
        :class:`bytesparse.Memory`: Memory view of the records.

    Raises:
        FormatError: Invalid record line.

    Examples:
        >>> memory = records_to_memory([':020000040001F9', ':0312340061626391'])
        >>> hex(memory.start), memory.to_bytes()
        ('0x11234', b'abc')
    """

    memory = Memory()
    extension = 0

    for record in records:
        if isinstance(record, str):
            record = parse_record(record)
        tag = record.tag

        if tag == RecordType.DATA or tag == RecordType.CUSTOM_DATA:
            memory.write(record.address + extension, record.data)

        elif tag == RecordType.EXTENDED_LINEAR_ADDRESS:
            extension = record.data_to_int() << 16

        elif tag == RecordType.EXTENDED_SEGMENT_ADDRESS:
            extension = record.data_to_int() << 4

    return memory


def hex_to_memory(hexstr: str) -> Memory:
    r"""Builds the memory view of an Intel HEX image.

    See Also:
        :func:`records_to_memory`
    """

    return records_to_memory(split_records(hexstr))


def describe_spans(memory: ImmutableMemory) -> List[Tuple[int, int]]:
    r"""Lists the contiguous data spans of a memory object.

    Returns:
        list of (int, int): ``(start, endex)`` pairs, in address order.

    Examples:
        >>> describe_spans(hex_to_memory(':0312340061626391\n:00000001FF\n'))
        [(4660, 4663)]
    """

    spans = list(memory.intervals())
    return spans
