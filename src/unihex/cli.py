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

"""
Module that contains the command line app.

Why does this file exist, and why not put this in __main__?

  Importing things from __main__ would run the code twice:

  - When you run `python -m unihex` python will execute
    ``__main__.py`` as a script. That means there won't be any
    ``unihex.__main__`` in ``sys.modules``.
  - When you import __main__ it will get executed again (as a module) because
    there's no ``unihex.__main__`` in ``sys.modules``.

  Also see (1) from https://click.palletsprojects.com/en/stable/setuptools/#setuptools-integration
"""

import contextlib
import logging
import os
from typing import Iterator
from typing import List
from typing import Optional
from typing import Sequence
from typing import Tuple

import click

from .__init__ import __version__
from .base import UnihexError
from .base import colorize_tokens
from .formats.ihex import Record
from .formats.ihex import split_records
from .formats.universal import BLOCK_SIZE
from .formats.universal import V1_BOARD_IDS
from .formats.universal import V2_BOARD_IDS
from .formats.universal import BoardId
from .formats.universal import IndividualHex
from .formats.universal import create_universal_hex
from .formats.universal import is_universal_hex
from .formats.universal import separate_universal_hex
from .memory import describe_spans
from .memory import hex_to_memory
from .utils import parse_int


class BasedIntParamType(click.ParamType):
    name = 'integer'

    def convert(self, value, param, ctx):
        try:
            return parse_int(value)
        except ValueError:
            self.fail(f'invalid integer: {value!r}', param, ctx)


class BoardHexParamType(click.ParamType):
    name = 'path:board_id'

    def convert(self, value, param, ctx):
        if isinstance(value, tuple):
            return value

        path, sep, board_id = value.rpartition(':')
        if not sep or not path:
            self.fail(f'expected PATH:BOARD_ID, got: {value!r}', param, ctx)

        try:
            board_id = parse_int(board_id)
            if not 0 <= board_id <= 0xFFFF:
                raise ValueError()
        except ValueError:
            self.fail(f'invalid board ID: {board_id!r}', param, ctx)

        if not os.path.isfile(path):
            self.fail(f'file does not exist: {path!r}', param, ctx)

        return path, board_id


BASED_INT = BasedIntParamType()
BOARD_HEX = BoardHexParamType()

FILE_PATH_IN = click.Path(dir_okay=False, readable=True, exists=True)
FILE_PATH_OUT = click.Path(dir_okay=False, writable=True)

BOARD_NAMES = {int(board_id): board_id.name for board_id in BoardId}


# ----------------------------------------------------------------------------

def print_version(ctx, _, value):

    if not value or ctx.resilient_parsing:
        return

    click.echo(str(__version__))
    ctx.exit()


@contextlib.contextmanager
def reporting_errors() -> Iterator[None]:

    try:
        yield
    except UnihexError as exc:
        raise click.ClickException(str(exc)) from exc


def check_overwrite(path: str, overwrite: bool, what: str = 'Output file') -> None:

    if not overwrite and os.path.exists(path):
        raise click.ClickException(f'{what} already exists: {os.path.realpath(path)}\n'
                                   f'\tUse "--overwrite" flag to replace it.')


def read_text(path: str) -> str:

    try:
        with open(path, 'rt', encoding='ascii') as stream:
            return stream.read()
    except UnicodeDecodeError as exc:
        raise click.ClickException(f'Not an ASCII text file: {os.path.realpath(path)}\n'
                                   f'\t{exc}') from exc


def write_text(path: str, text: str) -> None:

    with open(path, 'wt', encoding='ascii', newline='\n') as stream:
        stream.write(text)


def format_board_id(board_id: int) -> str:

    name = BOARD_NAMES.get(board_id)
    if name is None:
        if board_id in V1_BOARD_IDS:
            name = 'V1'
        elif board_id in V2_BOARD_IDS:
            name = 'V2'

    text = f'0x{board_id:04X}'
    if name:
        text += f' ({name})'
    return text


# ============================================================================

@click.group()
@click.option('-v', '--verbose', is_flag=True, help="""
    Prints debug messages to the standard error.
""")
@click.option('--version', is_flag=True, is_eager=True,
              expose_value=False, callback=print_version, help="""
    Prints the package version number.
""")
def main(verbose: bool) -> None:
    """
    Command line utilities for micro:bit Universal Hex files.

    Being built with `Click <https://click.palletsprojects.com/en/stable/>`_, all the
    commands follow POSIX-like syntax rules.
    Any error is reported to the standard error, with exit code 1.
    """

    if verbose:
        logging.basicConfig(level=logging.DEBUG, format='%(name)s: %(message)s')


# ----------------------------------------------------------------------------

@main.command()
@click.option('--v1', 'v1_path', type=FILE_PATH_IN, help="""
    Path of the input micro:bit V1 Intel HEX file.
""")
@click.option('--v2', 'v2_path', type=FILE_PATH_IN, help="""
    Path of the input micro:bit V2 Intel HEX file.
""")
@click.option('--hex', 'board_hexes', type=BOARD_HEX, multiple=True, help="""
    Input Intel HEX file for a generic board, as ``PATH:BOARD_ID``.
    Can be repeated; these files follow the V1 and V2 ones.
""")
@click.option('-u', '--universal', 'universal_path', type=FILE_PATH_OUT, help="""
    Path of the output Universal Hex file.
    By default it is ``universal.hex`` within the working directory.
""")
@click.option('-b', '--blocks', is_flag=True, help="""
    Uses the blocks layout instead of the sections one.
""")
@click.option('--boundary', type=BASED_INT, default=BLOCK_SIZE, show_default=True, help="""
    Alignment boundary, in characters.
    It must be even, and at least 124 with ``--blocks``.
""")
@click.option('-o', '--overwrite', is_flag=True, help="""
    Overwrites the output file if it exists.
""")
def combine(
    v1_path: Optional[str],
    v2_path: Optional[str],
    board_hexes: Sequence[Tuple[str, int]],
    universal_path: Optional[str],
    blocks: bool,
    boundary: int,
    overwrite: bool,
) -> None:
    r"""Combines Intel HEX files into a Universal Hex file.

    The V1 file comes first, then the V2 one, then any generic ones, in
    command line order.
    """

    inputs: List[Tuple[str, int]] = []
    if v1_path:
        inputs.append((v1_path, BoardId.V1))
    if v2_path:
        inputs.append((v2_path, BoardId.V2))
    inputs.extend(board_hexes)

    if not inputs:
        raise click.UsageError('at least one input file required')

    if boundary <= 0:
        raise click.BadParameter(f'must be positive: {boundary}', param_hint="'--boundary'")

    if not universal_path:
        universal_path = os.path.join(os.getcwd(), 'universal.hex')

    click.echo('Combining Intel Hex files into Universal Hex')
    for path, board_id in inputs:
        click.echo(f'Board ID {format_board_id(board_id)} Intel hex file: {os.path.realpath(path)}')

    check_overwrite(universal_path, overwrite)

    hexes = [IndividualHex(read_text(path), board_id) for path, board_id in inputs]
    with reporting_errors():
        universal = create_universal_hex(hexes, blocks=blocks, block_size=boundary)

    write_text(universal_path, universal)
    click.echo(f'Universal Hex saved to: {os.path.realpath(universal_path)}')


# ----------------------------------------------------------------------------

@main.command()
@click.option('-u', '--universal', 'universal_path', type=FILE_PATH_IN, required=True, help="""
    Path of the input Universal Hex file.
""")
@click.option('--v1', 'v1_path', type=FILE_PATH_OUT, help="""
    Path of the output micro:bit V1 Intel HEX file.
    By default it is ``v1-intel.hex`` within the working directory.
""")
@click.option('--v2', 'v2_path', type=FILE_PATH_OUT, help="""
    Path of the output micro:bit V2 Intel HEX file.
    By default it is ``v2-intel.hex`` within the working directory.
""")
@click.option('-o', '--overwrite', is_flag=True, help="""
    Overwrites the output files if they exist.
""")
def split(
    universal_path: str,
    v1_path: Optional[str],
    v2_path: Optional[str],
    overwrite: bool,
) -> None:
    r"""Splits a Universal Hex file into micro:bit V1 and V2 Intel HEX files.

    The Universal Hex must contain exactly one V1 image and one V2 image.
    """

    click.echo(f'Splitting Universal Hex file: {os.path.realpath(universal_path)}')

    if not v1_path:
        v1_path = os.path.join(os.getcwd(), 'v1-intel.hex')
    if not v2_path:
        v2_path = os.path.join(os.getcwd(), 'v2-intel.hex')

    check_overwrite(v1_path, overwrite, 'Output V1 file')
    check_overwrite(v2_path, overwrite, 'Output V2 file')

    with reporting_errors():
        hexes = separate_universal_hex(read_text(universal_path))

    board_ids = ', '.join(format_board_id(individual.board_id) for individual in hexes)
    if len(hexes) != 2:
        raise click.ClickException(f'Universal Hex should contain only two micro:bit Intel Hexes.\n'
                                   f'Found {len(hexes)}: {board_ids}')

    v1_hex = ''
    v2_hex = ''
    for individual in hexes:
        if individual.board_id in V1_BOARD_IDS:
            v1_hex = individual.hex
        elif individual.board_id in V2_BOARD_IDS:
            v2_hex = individual.hex

    if not v1_hex or not v2_hex:
        raise click.ClickException(f'Universal Hex does not contain both micro:bit Intel Hexes.\n'
                                   f'Found hexes for following board IDs: {board_ids}')

    write_text(v1_path, v1_hex)
    write_text(v2_path, v2_hex)

    click.echo(f'V1 Intel Hex saved to: {os.path.realpath(v1_path)}')
    click.echo(f'V2 Intel Hex saved to: {os.path.realpath(v2_path)}')


# ----------------------------------------------------------------------------

@main.command()
@click.argument('infile', type=FILE_PATH_IN)
def info(
    infile: str,
) -> None:
    r"""Describes an Intel HEX or Universal Hex file.

    ``INFILE`` is the path of the input file.

    For each image, it prints the Board ID (if any), the number of records,
    and the address spans of its data.
    """

    text = read_text(infile)

    with reporting_errors():
        if is_universal_hex(text):
            hexes = separate_universal_hex(text)
            click.echo(f'Universal Hex: {len(hexes)} images')
            labels = [f'Board ID {format_board_id(individual.board_id)}' for individual in hexes]
        else:
            hexes = [IndividualHex(text, 0)]
            labels = ['Intel Hex']

        for label, individual in zip(labels, hexes):
            count = len(split_records(individual.hex))
            click.echo(f'{label}: {count} records')

            for start, endex in describe_spans(hex_to_memory(individual.hex)):
                click.echo(f'  0x{start:08X}-0x{endex:08X} ({endex - start} bytes)')


# ----------------------------------------------------------------------------

@main.command()
@click.option('--color/--no-color', default=None, help="""
    Colorizes record fields.
    By default colors are stripped when not printing to a terminal.
""")
@click.argument('infile', type=FILE_PATH_IN)
def dump(
    color: Optional[bool],
    infile: str,
) -> None:
    r"""Prints the records of a file, colorized by field.

    ``INFILE`` is the path of the input file.
    """

    text = read_text(infile)

    with reporting_errors():
        for line in split_records(text):
            tokens = colorize_tokens(Record.parse(line).to_tokens())
            click.echo(''.join(tokens.values()), nl=False, color=color)
