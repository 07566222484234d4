# object_store.py -- Object store for git objects
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

"""Read access to loose git objects.

Loose objects are zlib-compressed files stored under ``objects/xx/yyyy...``,
where ``xx`` is the first two hex digits of the object name. Nothing is
cached: every lookup reads and decompresses the file again, which is safe
because objects never change once written.
"""

__all__ = [
    "BaseObjectStore",
    "DiskObjectStore",
    "MemoryObjectStore",
    "iter_tree_contents",
    "lookup_entry",
    "split_tree_path",
    "tree_lookup_path",
]

import os
import zlib
from collections.abc import Iterator, Mapping

from .errors import CorruptObject, NotADirectory, ObjectNotFound, PathNotFound
from .file import read_file
from .log_utils import getLogger
from .objects import (
    Blob,
    Commit,
    GitObject,
    HashId,
    Tree,
    TreeEntry,
    encode_hex,
    hex_to_filename,
    parse_blob,
    parse_commit,
    parse_object,
    parse_tree,
)

logger = getLogger(__name__)


def _decompress(sha: HashId, data: bytes) -> bytes:
    dcomp = zlib.decompressobj()
    try:
        dcomped = dcomp.decompress(data)
        dcomped += dcomp.flush()
    except zlib.error as exc:
        raise CorruptObject(sha, exc) from exc
    if not dcomp.eof:
        raise CorruptObject(sha, "truncated zlib stream")
    return dcomped


class BaseObjectStore:
    """Object store interface.

    Subclasses only provide the compressed bytes for a given fan-out
    directory and file name; decompression and parsing are shared.
    """

    def _get_compressed(self, dirname: str, filename: str) -> bytes | None:
        """Return the compressed bytes of a loose object.

        Args:
          dirname: First two hex digits of the object name
          filename: Remaining 38 hex digits of the object name
        Returns: The stored bytes, or None if there is no such object
        """
        raise NotImplementedError(self._get_compressed)

    def __contains__(self, sha: HashId) -> bool:
        """Check if a particular object is present by SHA1."""
        hexsha = encode_hex(sha)
        return self._get_compressed(hexsha[:2], hexsha[2:]) is not None

    def get_raw(self, sha: HashId) -> bytes:
        """Read and decompress an object.

        The header is left in place for the caller to check.

        Raises:
          ObjectNotFound: if the object is not in the store
          CorruptObject: if the stored bytes do not decompress
        """
        hexsha = encode_hex(sha)
        data = self._get_compressed(hexsha[:2], hexsha[2:])
        if data is None:
            raise ObjectNotFound(sha)
        logger.debug("read object %s (%d bytes compressed)", hexsha, len(data))
        return _decompress(sha, data)

    def get_object(self, sha: HashId) -> GitObject:
        """Read an object of any type."""
        return parse_object(self.get_raw(sha))

    def get_commit(self, sha: HashId) -> Commit:
        return parse_commit(self.get_raw(sha))

    def get_tree(self, sha: HashId, allow_missing: bool = False) -> Tree:
        """Read a tree.

        Args:
          sha: Name of the tree
          allow_missing: Read a missing tree as the empty tree instead of
            raising ObjectNotFound
        """
        try:
            raw = self.get_raw(sha)
        except ObjectNotFound:
            if not allow_missing:
                raise
            logger.warning("tree %s is missing, treating it as empty", encode_hex(sha))
            return Tree()
        return parse_tree(raw)

    def get_blob(self, sha: HashId) -> Blob:
        return parse_blob(self.get_raw(sha))


class DiskObjectStore(BaseObjectStore):
    """Git-style object store that exists on disk."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        """Open an object store.

        Args:
          path: Path of the object store, usually .git/objects
        """
        self.path = os.fspath(path)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}({self.path!r})>"

    def _get_compressed(self, dirname: str, filename: str) -> bytes | None:
        return read_file(hex_to_filename(self.path, dirname + filename))

    @property
    def pack_dir(self) -> str:
        return os.path.join(self.path, "pack")

    def iter_pack_index_paths(self) -> Iterator[str]:
        """Iterate over the paths of the pack index files, sorted by name."""
        try:
            names = sorted(os.listdir(self.pack_dir))
        except FileNotFoundError:
            return
        for name in names:
            if name.startswith("pack-") and name.endswith(".idx"):
                yield os.path.join(self.pack_dir, name)


class MemoryObjectStore(BaseObjectStore):
    """Object store that keeps compressed objects in memory."""

    def __init__(self, objects: Mapping[str, bytes] | None = None) -> None:
        """Create a memory object store.

        Args:
          objects: Compressed loose object contents keyed by hex object name
        """
        self._data = {hexsha.lower(): data for hexsha, data in (objects or {}).items()}

    def _get_compressed(self, dirname: str, filename: str) -> bytes | None:
        return self._data.get(dirname + filename)

    def __len__(self) -> int:
        return len(self._data)


def split_tree_path(path: str) -> list[str]:
    """Split a slash separated path relative to a tree.

    Raises:
      ValueError: on a leading or trailing slash, an empty segment or a
        "." or ".." segment
    """
    segments = path.split("/")
    for segment in segments:
        if segment in ("", ".", ".."):
            raise ValueError(f"invalid tree path {path!r}")
    return segments


def lookup_entry(store: BaseObjectStore, root: HashId, path: str) -> TreeEntry:
    """Find the tree entry a path names, starting from a root tree.

    Raises:
      PathNotFound: if a segment is not present in its tree
      NotADirectory: if a segment other than the last is not a directory
    """
    segments = split_tree_path(path)
    sha = root
    entry: TreeEntry | None = None
    walked: list[str] = []
    for segment in segments:
        if entry is not None and not entry.is_directory():
            raise NotADirectory("/".join(walked))
        entry = store.get_tree(sha).lookup(segment)
        walked.append(segment)
        if entry is None:
            raise PathNotFound("/".join(walked))
        sha = entry.hash
    assert entry is not None
    return entry


def tree_lookup_path(store: BaseObjectStore, root: HashId, path: str) -> Blob:
    """Look up a file in a git tree.

    Args:
      store: Object store to read trees and the blob from
      root: SHA1 of the root tree
      path: Relative path, e.g. "src/main.rs"
    Returns: The blob the path resolves to
    """
    return store.get_blob(lookup_entry(store, root, path).hash)


def iter_tree_contents(
    store: BaseObjectStore,
    tree_id: HashId,
    *,
    include_trees: bool = False,
    allow_missing: bool = False,
) -> Iterator[tuple[str, TreeEntry]]:
    """Iterate the contents of a tree and all subtrees.

    Iteration is depth-first pre-order, as in e.g. os.walk.

    Args:
      store: Object store to get trees from
      tree_id: SHA1 of the tree
      include_trees: If True, include directory entries in the iteration
      allow_missing: If True, subtrees missing from the store read as empty
    Yields: tuples of (path, entry) for all the objects in a tree
    """
    todo: list[tuple[str, TreeEntry]] = []
    for entry in reversed(store.get_tree(tree_id, allow_missing=allow_missing).entries):
        todo.append((entry.name, entry))
    while todo:
        path, entry = todo.pop()
        if entry.is_directory():
            subtree = store.get_tree(entry.hash, allow_missing=allow_missing)
            todo.extend(
                (f"{path}/{subentry.name}", subentry)
                for subentry in reversed(subtree.entries)
            )
            if include_trees:
                yield path, entry
        else:
            yield path, entry
