#!/usr/bin/env python3
"""
Name: rat
Description: concatenate files and print on the standard output
Author: Pierre Grillet
License:
"""

import sys
import os
from dataclasses import dataclass

# Constants
EX_SUCCESS = 0
EX_FAILURE = 1
PROGRAM = 'rat'
VERSION = '0.1'

HELP_TEXT = f"""\
Usage: {PROGRAM} [OPTION]... [FILE]...
Concatenate FILE(s) to standard output.

  -A, --show-all           equivalent to -vET
  -b, --number-nonblank    number nonempty output lines, overrides -n
  -e                       equivalent to -vE
  -E, --show-ends          display $ at end of each line
  -n, --number             number all output lines
  -s, --squeeze-blank      suppress repeated empty output lines
  -t                       equivalent to -vT
  -T, --show-tabs          display TAB characters as ^I
  -u                       (ignored)
  -v, --show-nonprinting   use ^ and M- notation, except for LFD and TAB
      --help     display this help and exit
      --version  output version information and exit
"""

VERSION_TEXT = f"{PROGRAM} v{VERSION} written by Pierre Grillet (C)2022"

# Each flag switches on the listed Options fields.
LONG_FLAGS = {
    '--show-all': ('show_nonprinting', 'show_ends', 'show_tabs'),
    '--number-nonblank': ('number_nonblank',),
    '--show-ends': ('show_ends',),
    '--number': ('number',),
    '--squeeze-blank': ('squeeze_blank',),
    '--show-tabs': ('show_tabs',),
    '--show-nonprinting': ('show_nonprinting',),
}

SHORT_FLAGS = {
    'A': ('show_nonprinting', 'show_ends', 'show_tabs'),
    'b': ('number_nonblank',),
    'e': ('show_nonprinting', 'show_ends'),
    'E': ('show_ends',),
    'n': ('number',),
    's': ('squeeze_blank',),
    't': ('show_nonprinting', 'show_tabs'),
    'T': ('show_tabs',),
    'u': (),  # ignored
    'v': ('show_nonprinting',),
}

NUMBER_WIDTH = 6
BLANK_PREFIX = ' ' * (NUMBER_WIDTH + 2)


@dataclass(frozen=True)
class Options:
    """The line transformations selected on the command line."""
    number: bool = False
    number_nonblank: bool = False
    show_ends: bool = False
    show_tabs: bool = False
    show_nonprinting: bool = False
    squeeze_blank: bool = False


class UsageError(Exception):
    """Raised for an unrecognized option token."""
    def __init__(self, token: str):
        super().__init__(f"cat : invalid option -- '{token}'")
        self.token = token


class EarlyExit(Exception):
    """Raised by --help and --version; carries the text to print."""
    def __init__(self, text: str):
        super().__init__(text)
        self.text = text


def resolve_options(tokens: list) -> tuple:
    """
    Splits the command-line tokens into an Options value and the list of
    file operands, in the order given. Flags and files may be interleaved.

    Raises UsageError for an unknown flag and EarlyExit for --help and
    --version; the caller decides how to terminate.
    """
    enabled = set()
    filenames = []

    for token in tokens:
        if token.startswith('--'):
            if token == '--help':
                raise EarlyExit(HELP_TEXT)
            if token == '--version':
                raise EarlyExit(VERSION_TEXT)
            if token not in LONG_FLAGS:
                raise UsageError(token)
            enabled.update(LONG_FLAGS[token])
        elif token.startswith('-'):
            # A cluster such as -ns; a lone '-' enables nothing.
            for char in token[1:]:
                if char not in SHORT_FLAGS:
                    raise UsageError(token)
                enabled.update(SHORT_FLAGS[char])
        else:
            filenames.append(token)

    options = Options(**{name: True for name in enabled})
    return options, filenames


def encode_byte(byte: int) -> str:
    """
    Returns the caret/meta notation for a single byte: printable ASCII as
    itself, control characters as ^X and high-bit bytes as M- followed by
    the notation of the low seven bits.
    """
    if byte >= 128:
        return 'M-' + encode_byte(byte % 128)
    if 32 <= byte <= 126:
        return chr(byte)
    return '^' + chr((byte + 64) % 128)


def escape_nonprinting(line: str) -> str:
    """
    Re-encodes a line byte by byte with encode_byte(). TAB and LF are left
    alone. If the result cannot be decoded, the line is returned unchanged.
    """
    try:
        raw = line.encode('utf-8', 'surrogateescape')
    except UnicodeEncodeError:
        return line

    result = bytearray()
    for byte in raw:
        if byte in (0x09, 0x0a):
            result.append(byte)
        else:
            result.extend(encode_byte(byte).encode('ascii'))

    try:
        return result.decode('utf-8')
    except UnicodeDecodeError:
        return line


def split_lines(text: str) -> list:
    """
    Splits text on LF only. A CR right before the LF is dropped with it and
    a trailing LF does not start an extra empty line.
    """
    lines = text.split('\n')
    # Whatever follows the last LF; empty when the text ends with one.
    tail = lines.pop()
    lines = [line[:-1] if line.endswith('\r') else line for line in lines]
    if tail:
        lines.append(tail)
    return lines


def transform_lines(text: str, opts: Options):
    """
    Yields the output lines for the contents of one input, without line
    terminators. Line numbering and blank-line squeezing start afresh on
    every call.
    """
    line_number = 0
    blank_run = 0

    for line in split_lines(text):
        # Blank means blank before any formatting is applied.
        is_blank = (line == '')
        blank_run = blank_run + 1 if is_blank else 0

        # Handle -s (keep the first of a run of blank lines)
        if opts.squeeze_blank and blank_run > 1:
            continue

        # Handle -T before -v so the tab is not escaped twice
        if opts.show_tabs:
            line = line.replace('\t', '^I')

        if opts.show_nonprinting:
            line = escape_nonprinting(line)

        # Handle -b and -n; -b wins when both are given
        if opts.number_nonblank:
            if is_blank:
                line = BLANK_PREFIX + line
            else:
                line_number += 1
                line = f"{line_number:>{NUMBER_WIDTH}}  {line}"
        elif opts.number:
            line_number += 1
            line = f"{line_number:>{NUMBER_WIDTH}}  {line}"

        if opts.show_ends:
            line += '$'

        yield line


def read_input(filename) -> str:
    """
    Reads a whole file. Bytes that are not valid UTF-8 are kept as
    surrogate escapes.
    """
    with open(filename, 'rb') as fh:
        data = fh.read()
    return data.decode('utf-8', 'surrogateescape')


def write_lines(lines, out) -> None:
    """Writes each line and a newline to a binary stream."""
    for line in lines:
        out.write(line.encode('utf-8', 'surrogateescape') + b'\n')
    out.flush()


def main(argv=None):
    """Parses arguments and runs the rat logic."""
    program_name = os.path.basename(sys.argv[0])
    if argv is None:
        argv = sys.argv[1:]

    try:
        opts, filenames = resolve_options(argv)
    except EarlyExit as e:
        print(e.text)
        sys.exit(EX_SUCCESS)
    except UsageError as e:
        print(e)
        sys.exit(EX_FAILURE)

    try:
        for filename in filenames:
            text = read_input(filename)
            write_lines(transform_lines(text, opts), sys.stdout.buffer)
    except OSError as e:
        if e.filename is None:
            print(f"{program_name}: {e}", file=sys.stderr)
        else:
            print(f"{program_name}: {e.filename}: {e.strerror}", file=sys.stderr)
        sys.exit(EX_FAILURE)

    sys.exit(EX_SUCCESS)


if __name__ == "__main__":
    main()
