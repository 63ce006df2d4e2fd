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

r"""Generic utility functions."""

import binascii
import re
from typing import Any
from typing import Iterable
from typing import Mapping
from typing import Optional
from typing import Union

from .base import AnyBytes
from .base import AnyHex
from .base import FormatError
from .base import RangeError

SUFFIX_SCALE: Mapping[str, int] = {
    'k': 2**10,
    'm': 2**20,
    'g': 2**30,

    'kib': 2**10,
    'mib': 2**20,
    'gib': 2**30,

    'kb': 10**3,
    'mb': 10**6,
    'gb': 10**9,
}
r"""Integer suffix to scale factor."""

INT_REGEX = re.compile(r'^\s*(?P<sign>[+-]?)\s*'
                       r'(?P<prefix>(0x|0b|0o|0)?)'
                       r'(?P<value>[a-f0-9]+)'
                       r'(?P<suffix>h?)'
                       r'\s*(?P<scale>('
                       r'k|m|g|'
                       r'kib|mib|gib|'
                       r'kb|mb|gb'
                       r')?)\s*$')

HEX_REGEX = re.compile(r'[0-9A-Fa-f]*')


def byte_to_hex(byte: int, prefix: bool = False) -> str:
    r"""Converts a byte value into a hexadecimal string.

    Args:
        byte (int):
            Byte value, from 0 to 255.

        prefix (bool):
            Prepends ``0x`` to the result.

    Returns:
        str: Two uppercase hexadecimal digits, optionally prefixed.

    Raises:
        RangeError: `byte` is not an integer, or it does not fit a byte.

    Examples:
        >>> byte_to_hex(10)
        '0A'
        >>> byte_to_hex(255, prefix=True)
        '0xFF'
    """

    if isinstance(byte, bool) or not isinstance(byte, int):
        if isinstance(byte, float) and byte.is_integer():
            byte = int(byte)
        else:
            raise RangeError(f'Number to convert to hex is not an integer: {byte!r}')

    if not 0 <= byte <= 0xFF:
        raise RangeError(f'Number to convert to hex does not fit in an unsigned byte: {byte}')

    hexstr = f'{byte:02X}'
    return f'0x{hexstr}' if prefix else hexstr


def concat_bytes(chunks: Iterable[AnyBytes]) -> bytes:
    r"""Concatenates byte chunks.

    Examples:
        >>> concat_bytes([b'\x01\x02', b'', b'\x03'])
        b'\x01\x02\x03'
        >>> concat_bytes([])
        b''
    """

    return b''.join(chunks)


def hexlify(
    bytestr: AnyBytes,
    sep: Optional[str] = None,
    upper: bool = True,
) -> str:
    r"""Converts raw bytes into a hexadecimal string.

    Args:
        bytestr (bytes):
            Source byte string.

        sep (str):
            Optional byte separator.

        upper (bool):
            Uppercase hexadecimal string.

    Returns:
        str: Hexadecimal string.

    Examples:
        >>> from unihex.utils import hexlify
        >>> hexlify(b'\xAA\xBB\xCC')
        'AABBCC'
        >>> hexlify(b'\xAA\xBB\xCC', sep=' ')
        'AA BB CC'
        >>> hexlify(b'\xAA\xBB\xCC', upper=False)
        'aabbcc'
        >>> hexlify(b'')
        ''
    """

    if sep:
        hexstr = binascii.hexlify(bytestr, sep).decode('ascii')
    else:
        hexstr = binascii.hexlify(bytestr).decode('ascii')

    if upper:
        hexstr = hexstr.upper()

    return hexstr


def parse_int(
    value: Union[str, Any],
) -> Optional[int]:
    r"""Parses an integer.

    Args:
        value:
            A generic object to convert to integer.
            In case `value` is a :obj:`str` (case-insensitive), it can be
            either prefixed with ``0x`` or postfixed with ``h`` to convert
            from a hexadecimal representation, or prefixed with ``0b`` from
            binary; a prefix of only ``0`` converts from octal.
            A further suffix applies a scale factor as per
            :data:`SUFFIX_SCALE`.
            A ``None`` value evaluates as ``None``.
            Any other object class will call the standard :func:`int`.

    Returns:
        int: None if `value` is ``None``, its integer conversion otherwise.

    Examples:
        >>> parse_int('0x9903')
        39171

        >>> parse_int('9900h')
        39168

        >>> parse_int('1k')
        1024

        >>> parse_int(None) is None
        True
    """
    if value is None:
        return None

    elif isinstance(value, str):
        value = value.lower()
        m = INT_REGEX.match(value)
        if not m:
            raise ValueError(f'invalid syntax: {value!r}')
        g = m.groupdict()
        sign = g['sign']
        prefix = g['prefix']
        value = g['value']
        suffix = g['suffix']
        scale = g['scale']
        if prefix in ('0b', '0o') and suffix == 'h':
            raise ValueError(f'invalid syntax: {value!r}')

        if prefix == '0x' or suffix == 'h':
            i = int(value, 16)
        elif prefix == '0b':
            i = int(value, 2)
        elif prefix == '0' or prefix == '0o':
            i = int(value, 8)
        else:
            i = int(value, 10)

        i *= SUFFIX_SCALE.get((scale or '').lower(), 1)

        if sign == '-':
            i = -i

        return i

    else:
        return int(value)


def unhexlify(hexstr: AnyHex) -> bytes:
    r"""Converts a hexadecimal string into raw bytes.

    Args:
        hexstr (str):
            Source hexadecimal string; byte strings are accepted too.

    Returns:
        bytes: Raw byte string.

    Raises:
        FormatError: The length of `hexstr` is odd, or it holds characters
            which are not hexadecimal digits.

    Examples:
        >>> from unihex.utils import unhexlify
        >>> unhexlify('AABBCC')
        b'\xaa\xbb\xcc'
        >>> unhexlify('')
        b''
    """

    if not isinstance(hexstr, str):
        hexstr = bytes(hexstr).decode('ascii', errors='replace')

    if len(hexstr) % 2:
        raise FormatError(f'Hex string length is not divisible by 2: {hexstr}')

    if not HEX_REGEX.fullmatch(hexstr):
        raise FormatError(f'Hex string contains non-hex characters: {hexstr}')

    bytestr = binascii.unhexlify(hexstr)
    return bytestr
