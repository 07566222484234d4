# objects.py -- Access to base git objects
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

"""Access to base git objects.

A decompressed loose object is a header of the form ``<type> <size>\\0``
followed by exactly ``size`` bytes of body. The body of a commit is a block
of text headers, a blank line and a free-form message; the body of a tree is
a flat run of ``<mode> <name>\\0<20 byte sha>`` records; the body of a blob
is opaque.
"""

__all__ = [
    "HASH_BYTES",
    "HEX_LENGTH",
    "Blob",
    "Commit",
    "GitObject",
    "HashId",
    "ObjectHeader",
    "ObjectType",
    "Tree",
    "TreeEntry",
    "TreeEntryMode",
    "check_header",
    "decode_hex",
    "encode_hex",
    "hex_to_filename",
    "parse_blob",
    "parse_commit",
    "parse_object",
    "parse_object_header",
    "parse_tree",
    "parse_tree_entries",
    "valid_hexsha",
]

import binascii
import enum
import os
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import NamedTuple

from ._typing import assert_never
from .decode import parse_decimal, read_prefixed_line, split_once
from .errors import (
    InvalidHash,
    MalformedCommit,
    MalformedHeader,
    MalformedTree,
    SizeMismatch,
    UnknownMode,
    WrongObjectType,
)

HASH_BYTES = 20
HEX_LENGTH = 2 * HASH_BYTES

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

# Header fields for commits
_TREE_HEADER = b"tree "
_PARENT_HEADER = b"parent "
_AUTHOR_HEADER = b"author "
_COMMITTER_HEADER = b"committer "
_REQUIRED_COMMIT_FIELDS = frozenset([b"tree", b"parent", b"author", b"committer"])


class HashId(bytes):
    """A binary object name.

    Always exactly 20 bytes. Ordering is that of bytes, which matches the
    sort order used in pack indexes.
    """

    __slots__ = ()

    def __new__(cls, value: bytes) -> "HashId":
        if len(value) != HASH_BYTES:
            raise InvalidHash(value)
        return super().__new__(cls, value)

    @classmethod
    def from_hex(cls, text: str | bytes) -> "HashId":
        """Create a HashId from its 40 character hex form."""
        return decode_hex(text)

    def __str__(self) -> str:
        return encode_hex(self)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({encode_hex(self)!r})"


def valid_hexsha(text: str | bytes) -> bool:
    """Check whether text is a 40 character hex object name."""
    if isinstance(text, bytes):
        try:
            text = text.decode("ascii")
        except UnicodeDecodeError:
            return False
    return len(text) == HEX_LENGTH and all(c in _HEX_DIGITS for c in text)


def decode_hex(text: str | bytes) -> HashId:
    """Decode a hex object name.

    Upper and lower case digits are both accepted; anything that is not
    exactly 40 hex digits is rejected rather than truncated or padded.

    Raises:
      InvalidHash: if text is not a valid hex object name
    """
    if not valid_hexsha(text):
        raise InvalidHash(text)
    return HashId(binascii.unhexlify(text))


def encode_hex(sha: bytes) -> str:
    """Encode a binary object name as 40 lowercase hex digits."""
    if len(sha) != HASH_BYTES:
        raise InvalidHash(sha)
    return binascii.hexlify(sha).decode("ascii")


def hex_to_filename(path: str | os.PathLike[str], hex: str) -> str:
    """Return the loose object path for a hex object name.

    The first two hex digits name the fan-out directory, the remaining 38
    name the file within it.
    """
    return os.path.join(path, hex[:2], hex[2:])


class ObjectType(enum.Enum):
    """Type tag found at the start of every object."""

    COMMIT = b"commit"
    TREE = b"tree"
    BLOB = b"blob"

    @property
    def type_name(self) -> str:
        return self.value.decode("ascii")


class ObjectHeader(NamedTuple):
    """Type and declared body length of an object."""

    type: ObjectType
    size: int


def _parse_size(rest: bytes) -> tuple[int, bytes]:
    fields = split_once(rest, b"\0")
    if fields is None:
        raise MalformedHeader("object size is not NUL terminated")
    size_text, body = fields
    try:
        size = parse_decimal(size_text)
    except ValueError as exc:
        raise MalformedHeader(str(exc)) from exc
    if size != len(body):
        raise SizeMismatch(size, len(body))
    return size, body


def _header_type(payload: bytes) -> ObjectType | None:
    type_text, sep, _ = payload.partition(b" ")
    if not sep:
        return None
    try:
        return ObjectType(type_text)
    except ValueError:
        return None


def parse_object_header(payload: bytes) -> tuple[ObjectHeader, bytes]:
    """Parse the header of a decompressed object of any known type.

    Returns: tuple of (header, body)
    Raises:
      MalformedHeader: if the type is unknown or the size field is invalid
      SizeMismatch: if the body length differs from the declared size
    """
    obj_type = _header_type(payload)
    if obj_type is None:
        raise MalformedHeader(f"unknown object type in {payload[:16]!r}")
    size, body = _parse_size(payload[len(obj_type.value) + 1 :])
    return ObjectHeader(obj_type, size), body


def check_header(payload: bytes, expected: ObjectType) -> bytes:
    """Check that an object has the expected type and a consistent size.

    Args:
      payload: Decompressed object, header included
      expected: Type the object must have
    Returns: The object body
    Raises:
      WrongObjectType: if the payload does not start with the expected type
      MalformedHeader: if the size field is missing or not a decimal number
      SizeMismatch: if the body length differs from the declared size
    """
    prefix = expected.value + b" "
    if not payload.startswith(prefix):
        got = _header_type(payload)
        raise WrongObjectType(
            expected.type_name, got.type_name if got is not None else None
        )
    _, body = _parse_size(payload[len(prefix) :])
    return body


@dataclass(frozen=True)
class Commit:
    """A parsed commit.

    author and committer hold the complete header value (name, email,
    timestamp and timezone); they are not split further.
    """

    tree: HashId
    parents: tuple[HashId, ...]
    author: str
    committer: str
    message: str
    extra: tuple[tuple[str, str], ...] = ()

    type = ObjectType.COMMIT


def _commit_text(value: bytes, what: str) -> str:
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedCommit(f"{what} is not valid UTF-8") from exc


def _commit_hash(value: bytes, what: str) -> HashId:
    try:
        return decode_hex(value)
    except InvalidHash as exc:
        raise MalformedCommit(f"invalid {what} {value!r}") from exc


def _parse_commit_body(body: bytes) -> Commit:
    line = read_prefixed_line(body, _TREE_HEADER)
    if line is None:
        raise MalformedCommit("missing tree line")
    tree_hex, rest = line
    tree = _commit_hash(tree_hex, "tree")

    parents = []
    while True:
        line = read_prefixed_line(rest, _PARENT_HEADER)
        if line is None:
            break
        parent_hex, rest = line
        parents.append(_commit_hash(parent_hex, "parent"))

    line = read_prefixed_line(rest, _AUTHOR_HEADER)
    if line is None:
        raise MalformedCommit("missing author line")
    author, rest = line

    line = read_prefixed_line(rest, _COMMITTER_HEADER)
    if line is None:
        raise MalformedCommit("missing committer line")
    committer, rest = line

    # Optional headers such as encoding, gpgsig and mergetag. Lines starting
    # with a space continue the previous value.
    extra: list[tuple[bytes, bytes]] = []
    while rest and not rest.startswith(b"\n"):
        fields = split_once(rest, b"\n")
        if fields is None:
            raise MalformedCommit("unterminated commit header")
        header, rest = fields
        if header.startswith(b" "):
            if not extra:
                raise MalformedCommit("continuation line without a header")
            name, value = extra[-1]
            extra[-1] = (name, value + b"\n" + header[1:])
            continue
        name, _, value = header.partition(b" ")
        if name in _REQUIRED_COMMIT_FIELDS:
            raise MalformedCommit(f"unexpected {name.decode('ascii')} line")
        extra.append((name, value))

    if not rest.startswith(b"\n"):
        raise MalformedCommit("missing blank line after commit headers")

    return Commit(
        tree=tree,
        parents=tuple(parents),
        author=_commit_text(author, "author"),
        committer=_commit_text(committer, "committer"),
        message=_commit_text(rest[1:], "message"),
        extra=tuple(
            (_commit_text(name, "header name"), _commit_text(value, "header"))
            for name, value in extra
        ),
    )


def parse_commit(payload: bytes) -> Commit:
    """Parse a decompressed commit object, header included."""
    return _parse_commit_body(check_header(payload, ObjectType.COMMIT))


class TreeEntryMode(enum.Enum):
    """Kind of object a tree entry refers to."""

    DIRECTORY = "directory"
    FILE = "file"
    SYMLINK = "symlink"


# The executable bit of 100755 is not tracked at this level.
TREE_ENTRY_MODES = {
    b"40000": TreeEntryMode.DIRECTORY,
    b"100644": TreeEntryMode.FILE,
    b"100755": TreeEntryMode.FILE,
    b"120000": TreeEntryMode.SYMLINK,
}


class TreeEntry(NamedTuple):
    """An entry of a tree."""

    mode: TreeEntryMode
    name: str
    hash: HashId

    def is_directory(self) -> bool:
        return self.mode is TreeEntryMode.DIRECTORY

    def sort_key(self) -> bytes:
        """Key of this entry in git's canonical tree order.

        Directories sort as if their name ended in a slash.
        """
        key = self.name.encode("utf-8")
        if self.is_directory():
            key += b"/"
        return key


def _entry_name(raw: bytes) -> str:
    if not raw:
        raise MalformedTree("empty tree entry name")
    if b"/" in raw:
        raise MalformedTree(f"tree entry name {raw!r} contains a slash")
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedTree(f"tree entry name {raw!r} is not valid UTF-8") from exc


def parse_tree_entries(body: bytes) -> Iterator[TreeEntry]:
    """Parse the body of a tree object.

    Args:
      body: Tree body, without the object header
    Yields: TreeEntry tuples in the order they are stored
    """
    pos = 0
    length = len(body)
    while pos < length:
        mode_end = body.find(b" ", pos)
        if mode_end == -1:
            raise MalformedTree("tree entry mode is not terminated")
        mode_text = body[pos:mode_end]
        try:
            mode = TREE_ENTRY_MODES[mode_text]
        except KeyError:
            raise UnknownMode(mode_text) from None
        name_end = body.find(b"\0", mode_end + 1)
        if name_end == -1:
            raise MalformedTree("tree entry name is not NUL terminated")
        name = _entry_name(body[mode_end + 1 : name_end])
        pos = name_end + 1 + HASH_BYTES
        if pos > length:
            raise MalformedTree(f"truncated object name for tree entry {name!r}")
        yield TreeEntry(mode, name, HashId(body[name_end + 1 : pos]))


@dataclass(frozen=True)
class Tree:
    """A parsed tree: its entries in stored order."""

    entries: tuple[TreeEntry, ...] = ()

    type = ObjectType.TREE

    def __iter__(self) -> Iterator[TreeEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def lookup(self, name: str) -> TreeEntry | None:
        """Find the entry with the given name, if any."""
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None

    def check(self) -> None:
        """Check that entries are unique and stored in canonical order.

        Raises:
          MalformedTree: on a duplicate name or an out of order entry
        """
        seen: set[str] = set()
        last: bytes | None = None
        for entry in self.entries:
            if entry.name in seen:
                raise MalformedTree(f"duplicate tree entry {entry.name!r}")
            seen.add(entry.name)
            key = entry.sort_key()
            if last is not None and key < last:
                raise MalformedTree(f"tree entry {entry.name!r} is out of order")
            last = key

    @classmethod
    def from_entries(cls, entries: Iterable[TreeEntry]) -> "Tree":
        return cls(tuple(entries))


def parse_tree(payload: bytes) -> Tree:
    """Parse a decompressed tree object, header included.

    An empty payload is read as the empty tree.
    """
    if not payload:
        return Tree()
    body = check_header(payload, ObjectType.TREE)
    return Tree.from_entries(parse_tree_entries(body))


@dataclass(frozen=True)
class Blob:
    """File contents; no structure is imposed on the data."""

    data: bytes = field(repr=False)

    type = ObjectType.BLOB


def parse_blob(payload: bytes) -> Blob:
    """Parse a decompressed blob object, header included."""
    return Blob(check_header(payload, ObjectType.BLOB))


GitObject = Commit | Tree | Blob


def parse_object(payload: bytes) -> GitObject:
    """Parse a decompressed object of whatever type its header declares."""
    header, body = parse_object_header(payload)
    if header.type is ObjectType.COMMIT:
        return _parse_commit_body(body)
    elif header.type is ObjectType.TREE:
        return Tree.from_entries(parse_tree_entries(body))
    elif header.type is ObjectType.BLOB:
        return Blob(body)
    else:
        assert_never(header.type)
