# pack.py -- Reading pack index files
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

"""Classes for dealing with pack index files.

A pack stores many objects in one file; the index accompanying it tells you
where in the pack each object lives. A version 2 index is laid out as:

- the magic ``\\377tOc`` and the version number 2
- a fan-out table of 256 cumulative object counts, one per leading byte
- the sorted object names
- a CRC32 per object
- a 4-byte pack offset per object; offsets with the high bit set index
  into a table of 8-byte offsets for packs larger than 2GiB
- the pack checksum and the checksum of the index itself

To find an object you use its leading byte to select a range of names from
the fan-out table and bisect within it.
"""

__all__ = [
    "PACK_INDEX_MAGIC",
    "PackIndex2",
    "PackIndexEntry",
    "bisect_find_sha",
    "check_fan_out_table",
    "load_pack_index",
    "read_fan_out_table",
]

import os
from collections.abc import Callable, Iterator
from hashlib import sha1
from typing import IO

from .decode import unpack_u32, unpack_u64
from .errors import (
    ChecksumMismatch,
    CorruptIndex,
    HashBucketMismatch,
    UnsortedIndex,
    UnsupportedIndexFormat,
)
from .file import GitFile
from .log_utils import getLogger
from .objects import HASH_BYTES, HashId

logger = getLogger(__name__)

PACK_INDEX_MAGIC = b"\377tOc"
PACK_INDEX_VERSION = 2
FAN_OUT_ENTRIES = 0x100

_FAN_OUT_OFFSET = 8
_NAME_TABLE_OFFSET = _FAN_OUT_OFFSET + FAN_OUT_ENTRIES * 4
_LARGE_OFFSET_FLAG = 2**31
_TRAILER_SIZE = 2 * HASH_BYTES

PackIndexEntry = tuple[HashId, int, int]


def read_fan_out_table(contents: bytes, start_offset: int) -> list[int]:
    """Read the fan-out table from an index.

    The fan-out table contains 256 entries mapping first byte values
    to the number of objects with SHA1s less than or equal to that byte.

    Args:
      contents: Index contents
      start_offset: Offset where the fan-out table starts
    Returns: List of 256 integers
    Raises:
      CorruptIndex: if the table is truncated
    """
    if len(contents) < start_offset + FAN_OUT_ENTRIES * 4:
        raise CorruptIndex("truncated fan-out table")
    return [unpack_u32(contents, start_offset + i * 4) for i in range(FAN_OUT_ENTRIES)]


def check_fan_out_table(fan_out_table: list[int]) -> None:
    """Check that the cumulative counts never decrease.

    Raises:
      CorruptIndex: if an entry is smaller than the one before it
    """
    previous = 0
    for i, count in enumerate(fan_out_table):
        if count < previous:
            raise CorruptIndex(
                f"fan-out entry {i:02x} ({count}) is below its predecessor ({previous})"
            )
        previous = count


def bisect_find_sha(
    start: int, end: int, sha: bytes, unpack_name: Callable[[int], bytes]
) -> int | None:
    """Find a SHA in a data blob with sorted SHAs.

    Args:
      start: Start index of range to search
      end: End index of range to search (exclusive)
      sha: Sha to find
      unpack_name: Callback to retrieve SHA by index
    Returns: Index of the SHA, or None if it wasn't found
    """
    while start < end:
        i = (start + end) // 2
        file_sha = unpack_name(i)
        if file_sha < sha:
            start = i + 1
        elif file_sha > sha:
            end = i
        else:
            return i
    return None


class PackIndex2:
    """Version 2 Pack Index file.

    The whole index is validated when it is loaded: header, fan-out table
    monotonicity, bucket membership and strict ordering of the object names,
    and the sizes of the remaining tables.
    """

    version = PACK_INDEX_VERSION

    def __init__(self, contents: bytes, filename: str | None = None) -> None:
        """Load a version 2 pack index.

        Args:
          contents: Complete contents of the index file
          filename: Path the contents were read from, for display only
        Raises:
          UnsupportedIndexFormat: if this is not a version 2 index
          CorruptIndex: if any table is inconsistent or truncated
        """
        self._filename = filename
        self._contents = contents
        if contents[:4] != PACK_INDEX_MAGIC:
            raise UnsupportedIndexFormat("Not a v2 pack index file")
        if len(contents) < _FAN_OUT_OFFSET:
            raise UnsupportedIndexFormat("truncated pack index header")
        version = unpack_u32(contents, 4)
        if version != PACK_INDEX_VERSION:
            raise UnsupportedIndexFormat(f"Version was {version}")

        self._fan_out_table = read_fan_out_table(contents, _FAN_OUT_OFFSET)
        check_fan_out_table(self._fan_out_table)
        count = len(self)
        self._crc32_table_offset = _NAME_TABLE_OFFSET + HASH_BYTES * count
        self._pack_offset_table_offset = self._crc32_table_offset + 4 * count
        self._large_offset_table_offset = self._pack_offset_table_offset + 4 * count
        if len(contents) < self._crc32_table_offset:
            raise CorruptIndex("truncated object name table")
        self._check_buckets()

        large_size = len(contents) - _TRAILER_SIZE - self._large_offset_table_offset
        if large_size < 0:
            raise CorruptIndex("truncated pack index tables")
        if large_size % 8:
            raise CorruptIndex("large offset table is not a whole number of entries")
        self._large_offset_count = large_size // 8
        logger.debug(
            "loaded pack index %s with %d objects", filename or "<memory>", count
        )

    @classmethod
    def from_file(cls, f: IO[bytes], filename: str | None = None) -> "PackIndex2":
        """Load an index from a file-like object."""
        return cls(f.read(), filename)

    def _check_buckets(self) -> None:
        start = 0
        for first_byte, end in enumerate(self._fan_out_table):
            previous: bytes | None = None
            for i in range(start, end):
                sha = self._unpack_name(i)
                if sha[0] != first_byte:
                    raise HashBucketMismatch(first_byte, sha)
                if previous is not None and sha <= previous:
                    raise UnsortedIndex(previous, sha)
                previous = sha
            start = end

    @property
    def path(self) -> str | None:
        """Return the path to this index file."""
        return self._filename

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._filename!r})"

    def __len__(self) -> int:
        """Return the number of entries in this pack index."""
        return self._fan_out_table[-1]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PackIndex2):
            return NotImplemented
        return self._fan_out_table == other._fan_out_table and list(
            self._itersha()
        ) == list(other._itersha())

    def __contains__(self, sha: bytes) -> bool:
        return self.lookup(sha) is not None

    def __iter__(self) -> Iterator[HashId]:
        """Iterate over the SHAs in this pack, in sorted order."""
        return self._itersha()

    @property
    def fan_out_table(self) -> list[int]:
        return list(self._fan_out_table)

    def bucket_size(self, first_byte: int) -> int:
        """Return the number of objects whose name starts with first_byte."""
        start = self._fan_out_table[first_byte - 1] if first_byte else 0
        return self._fan_out_table[first_byte] - start

    def _unpack_name(self, i: int) -> HashId:
        offset = _NAME_TABLE_OFFSET + i * HASH_BYTES
        return HashId(self._contents[offset : offset + HASH_BYTES])

    def _unpack_offset(self, i: int) -> int:
        offset_val = unpack_u32(self._contents, self._pack_offset_table_offset + i * 4)
        if offset_val & _LARGE_OFFSET_FLAG:
            large_index = offset_val & (_LARGE_OFFSET_FLAG - 1)
            if large_index >= self._large_offset_count:
                raise CorruptIndex(
                    f"large offset entry {large_index} is beyond the large offset table"
                )
            offset_val = unpack_u64(
                self._contents, self._large_offset_table_offset + large_index * 8
            )
        return offset_val

    def _unpack_crc32_checksum(self, i: int) -> int:
        return unpack_u32(self._contents, self._crc32_table_offset + i * 4)

    def _unpack_entry(self, i: int) -> PackIndexEntry:
        return (
            self._unpack_name(i),
            self._unpack_offset(i),
            self._unpack_crc32_checksum(i),
        )

    def _itersha(self) -> Iterator[HashId]:
        for i in range(len(self)):
            yield self._unpack_name(i)

    def iterentries(self) -> Iterator[PackIndexEntry]:
        """Iterate over the entries in this pack index.

        Returns: iterator over tuples with object name, offset in packfile and
            crc32 checksum.
        """
        for i in range(len(self)):
            yield self._unpack_entry(i)

    def lookup(self, sha: bytes) -> int | None:
        """Return the pack offset of an object, or None if it is not indexed.

        Only the fan-out bucket of the object's leading byte is searched.
        """
        sha = HashId(sha)
        first_byte = sha[0]
        start = self._fan_out_table[first_byte - 1] if first_byte else 0
        end = self._fan_out_table[first_byte]
        i = bisect_find_sha(start, end, sha, self._unpack_name)
        if i is None:
            return None
        return self._unpack_offset(i)

    def object_offset(self, sha: bytes) -> int:
        """Return the pack offset of an object.

        Raises:
          KeyError: if the object is not in this index
        """
        offset = self.lookup(sha)
        if offset is None:
            raise KeyError(sha)
        return offset

    def get_pack_checksum(self) -> bytes:
        """Return the SHA1 checksum stored for the corresponding packfile.

        Returns: 20-byte binary digest
        """
        return bytes(self._contents[-_TRAILER_SIZE:-HASH_BYTES])

    def get_stored_checksum(self) -> bytes:
        """Return the SHA1 checksum stored for this index.

        Returns: 20-byte binary digest
        """
        return bytes(self._contents[-HASH_BYTES:])

    def calculate_checksum(self) -> bytes:
        """Calculate the SHA1 checksum over this pack index.

        Returns: This is a 20-byte binary digest
        """
        return sha1(self._contents[:-HASH_BYTES]).digest()

    def check(self) -> None:
        """Check that the stored checksum matches the actual checksum."""
        actual = self.calculate_checksum()
        stored = self.get_stored_checksum()
        if actual != stored:
            raise ChecksumMismatch(stored, actual)


def load_pack_index(path: str | os.PathLike[str]) -> PackIndex2:
    """Load an index file by path.

    Args:
      path: Path to the index file
    Returns: A PackIndex2 loaded from the given path
    """
    with GitFile(path, "rb") as f:
        return PackIndex2.from_file(f, os.fspath(path))
