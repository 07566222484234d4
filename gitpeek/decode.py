# decode.py -- Low level decoding primitives
# Copyright (C) 2026 The gitpeek authors
#
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later
# gitpeek is dual-licensed under the Apache License, Version 2.0 and the GNU
# General Public License as published by the Free Software Foundation; version 2.0
# or (at your option) any later version. You can redistribute it and/or
# modify it under the terms of either of these two licenses.
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# You should have received a copy of the licenses; if not, see
# <http://www.gnu.org/licenses/> for a copy of the GNU General Public License
# and <http://www.apache.org/licenses/LICENSE-2.0> for a copy of the Apache
# License, Version 2.0.
#

"""Shared primitives for decoding git file formats.

Git mixes two kinds of encoding on disk:
- fixed width big-endian integers in binary tables (pack indexes)
- ASCII text headers delimited by spaces, NUL bytes and newlines
  (object headers, commit headers, ref files)
"""

from struct import error as struct_error
from struct import unpack_from

# Object sizes are bounded by a 64-bit unsigned length.
MAX_DECIMAL = 2**64 - 1


def unpack_u32(data: bytes, offset: int = 0) -> int:
    """Read a big-endian 32-bit unsigned integer.

    Args:
      data: Buffer to read from
      offset: Offset of the first byte
    Returns: The decoded integer
    Raises:
      ValueError: if fewer than 4 bytes are available at offset
    """
    try:
        return int(unpack_from(">L", data, offset)[0])
    except struct_error as exc:
        raise ValueError(f"truncated 32-bit integer at offset {offset}") from exc


def unpack_u64(data: bytes, offset: int = 0) -> int:
    """Read a big-endian 64-bit unsigned integer."""
    try:
        return int(unpack_from(">Q", data, offset)[0])
    except struct_error as exc:
        raise ValueError(f"truncated 64-bit integer at offset {offset}") from exc


def parse_decimal(text: bytes, limit: int = MAX_DECIMAL) -> int:
    """Parse an unsigned ASCII decimal number.

    Unlike int(), this rejects signs, whitespace and underscores.

    Args:
      text: Digits to parse
      limit: Largest value accepted
    Returns: The parsed value
    Raises:
      ValueError: on an empty string, a non-digit byte or a value above limit
    """
    if not text:
        raise ValueError("empty decimal number")
    value = 0
    for c in text:
        if not 0x30 <= c <= 0x39:
            raise ValueError(f"invalid decimal digit in {text!r}")
        value = value * 10 + (c - 0x30)
        if value > limit:
            raise ValueError(f"decimal number {text!r} out of range")
    return value


def split_once(data: bytes, delimiter: bytes) -> tuple[bytes, bytes] | None:
    """Split data at the first delimiter, dropping the delimiter.

    Returns: (before, after), or None if the delimiter does not occur
    """
    i = data.find(delimiter)
    if i == -1:
        return None
    return data[:i], data[i + len(delimiter) :]


def read_prefixed_line(data: bytes, prefix: bytes) -> tuple[bytes, bytes] | None:
    """Read a newline terminated line that starts with prefix.

    Returns: (value without prefix and newline, remaining data), or None if
        data does not start with prefix or the line is not terminated
    """
    if not data.startswith(prefix):
        return None
    return split_once(data[len(prefix) :], b"\n")


def strip_newline(text: bytes) -> bytes:
    """Remove exactly one trailing newline, if present."""
    if text.endswith(b"\n"):
        return text[:-1]
    return text
