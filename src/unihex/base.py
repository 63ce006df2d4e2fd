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

r"""Base types, errors, and token helpers."""

from typing import Any
from typing import Mapping
from typing import Union

import colorama

try:
    from typing import TypeAlias
except ImportError:  # pragma: no cover
    TypeAlias = Any  # Python < 3.10

AnyBytes: TypeAlias = Union[bytes, bytearray, memoryview]
AnyHex: TypeAlias = Union[str, bytes, bytearray, memoryview]

TOKEN_COLOR_CODES: Mapping[str, str] = {
    '':         colorama.Style.RESET_ALL,
    '<':        colorama.Style.RESET_ALL,
    '>':        colorama.Style.RESET_ALL,
    'address':  colorama.Fore.RED,
    'begin':    colorama.Fore.YELLOW,
    'checksum': colorama.Fore.MAGENTA,
    'count':    colorama.Fore.BLUE,
    'data':     colorama.Fore.CYAN,
    'dataalt':  colorama.Fore.LIGHTCYAN_EX,
    'end':      colorama.Style.RESET_ALL,
    'tag':      colorama.Fore.GREEN,
}
r"""ANSI color codes for each possible token type."""


class UnihexError(ValueError):
    r"""Base class of all the errors raised by this package.

    It derives from :class:`ValueError`, so that callers catching generic
    value errors keep working.
    """


class RangeError(UnihexError):
    r"""A numeric field is out of its allowed bounds.

    Raised for addresses, board IDs, byte counts, and padding lengths.
    """


class FormatError(UnihexError):
    r"""Malformed record text.

    Raised for odd-length or non-hexadecimal strings, wrong start character,
    wrong record length, invalid record type, misplaced *End Of File*
    records, and malformed *Block Start* records.
    """


class StructuralError(FormatError):
    r"""Container-level error.

    Raised when a Universal Hex lacks its signature records, or when some text
    is (or is not) a Universal Hex against expectations.
    """


class EmptyInputError(StructuralError):
    r"""No records found within the input text."""


def colorize_tokens(
    tokens: Mapping[str, str],
    altdata: bool = True,
) -> Mapping[str, str]:
    r"""Prepends ANSI color codes to record field tokens.

    For each token within `tokens`, its key is used to look up the ANSI color
    code from :data:`TOKEN_COLOR_CODES`.
    The retrieved code is prepended to the token.
    All the modified tokens are then collected and returned.

    Args:
        tokens (dict):
            A mapping of each token key name to token string.

        altdata (bool):
            If true, it alternates each byte (two hex digits) between the ANSI
            color codes mapped with keys ``data`` (even byte index) and
            ``dataalt`` (odd byte index).
            If false, only the ``data`` code is prepended.

    Returns:
        dict: `tokens` with prepended ANSI color codes.

    Examples:
        >>> from unihex.base import colorize_tokens
        >>> from unihex.formats.ihex import Record
        >>> from pprint import pprint

        >>> record = Record.create_end_of_file()
        >>> tokens = record.to_tokens()
        >>> pprint(tokens)  # doctest: +NORMALIZE_WHITESPACE
        {'address': '0000',
         'begin': ':',
         'checksum': 'FF',
         'count': '00',
         'data': '',
         'end': '\n',
         'tag': '01'}
        >>> colorized = colorize_tokens(tokens)
        >>> pprint(colorized)  # doctest: +NORMALIZE_WHITESPACE
        {'<': '\x1b[0m',
         '>': '\x1b[0m',
         'address': '\x1b[31m0000',
         'begin': '\x1b[33m:',
         'checksum': '\x1b[35mFF',
         'count': '\x1b[34m00',
         'end': '\x1b[0m\n',
         'tag': '\x1b[32m01'}
    """

    codes = TOKEN_COLOR_CODES
    colorized = {}
    colorized.setdefault('<', codes['<'])

    for key, value in tokens.items():
        if key not in codes:
            key = ''
        if value:
            code = codes[key]

            if key == 'data' and altdata:
                altcode = codes['dataalt']
                chunks = []
                length = len(value)
                i = 0

                for i in range(0, length - 1, 2):
                    chunks.append(altcode if i & 2 else code)
                    chunks.append(value[i:(i + 2)])

                if length & 1:
                    chunks.append(code if i & 2 else altcode)
                    chunks.append(value[length - 1])

                colorized[key] = ''.join(chunks)
            else:
                colorized[key] = code + value

    colorized.setdefault('>', codes['>'])
    return colorized
