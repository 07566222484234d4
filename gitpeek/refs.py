# refs.py -- For dealing with git refs
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

"""Ref handling.

HEAD either names a branch (``ref: refs/heads/<name>``) or holds a detached
commit hash. Branches live as one-line files under ``refs/heads/`` or, once
packed, as lines of the ``packed-refs`` table.
"""

__all__ = [
    "BRANCH_SYMREF",
    "HEADREF",
    "LOCAL_BRANCH_PREFIX",
    "DictRefsContainer",
    "DirectCommit",
    "DiskRefsContainer",
    "NamedBranch",
    "Ref",
    "RefsContainer",
    "check_ref_format",
    "parse_head",
    "parse_packed_refs",
    "parse_ref_contents",
    "read_packed_refs",
]

import os
from collections.abc import Iterable, Iterator, Mapping
from typing import NamedTuple

from ._typing import assert_never
from .decode import strip_newline
from .errors import InvalidHash, InvalidHeadFormat, PackedRefsException, RefNotFound
from .file import GitFile, read_file
from .log_utils import getLogger
from .objects import HashId, decode_hex

logger = getLogger(__name__)

HEADREF = "HEAD"
BRANCH_SYMREF = b"ref: refs/heads/"
LOCAL_BRANCH_PREFIX = "refs/heads/"
PACKED_REFS = "packed-refs"
BAD_REF_CHARS = set("\177 ~^:?*[")


class DirectCommit(NamedTuple):
    """HEAD detached at a specific commit."""

    hash: HashId


class NamedBranch(NamedTuple):
    """HEAD pointing at a local branch."""

    name: str


Ref = DirectCommit | NamedBranch


def check_ref_format(refname: str) -> bool:
    """Check if a refname is correctly formatted.

    Implements the same rules as git-check-ref-format[1].

    [1]
    http://www.kernel.org/pub/software/scm/git/docs/git-check-ref-format.html

    Args:
      refname: The refname to check
    Returns: True if refname is valid, False otherwise
    """
    if "/." in refname or refname.startswith("."):
        return False
    if "/" not in refname:
        return False
    if ".." in refname:
        return False
    for c in refname:
        if ord(c) < 0o40 or c in BAD_REF_CHARS:
            return False
    if refname[-1] in "/.":
        return False
    if refname.endswith(".lock"):
        return False
    if "@{" in refname:
        return False
    if "\\" in refname:
        return False
    return True


def parse_head(contents: bytes) -> Ref:
    """Parse the contents of a HEAD file.

    Exactly one trailing newline is removed before interpretation.

    Raises:
      InvalidHeadFormat: if contents is neither a branch ref nor a hex hash
    """
    text = strip_newline(contents)
    if text.startswith(BRANCH_SYMREF):
        try:
            name = text[len(BRANCH_SYMREF) :].decode("utf-8")
        except UnicodeDecodeError:
            raise InvalidHeadFormat(contents) from None
        if not name:
            raise InvalidHeadFormat(contents)
        return NamedBranch(name)
    try:
        return DirectCommit(decode_hex(text))
    except InvalidHash:
        raise InvalidHeadFormat(contents) from None


def parse_ref_contents(contents: bytes) -> HashId:
    """Parse a loose ref file holding a single commit hash.

    Raises:
      InvalidHash: if the contents are not a hex hash and a single optional
        trailing newline
    """
    return decode_hex(strip_newline(contents))


def _split_ref_line(line: bytes) -> tuple[HashId, str]:
    """Split a single packed-refs line into a tuple of SHA1 and name."""
    fields = line.rstrip(b"\n\r").split(b" ")
    if len(fields) != 2:
        raise PackedRefsException(f"invalid ref line {line!r}")
    sha, name = fields
    try:
        oid = decode_hex(sha)
    except InvalidHash:
        raise PackedRefsException(f"Invalid hex sha {sha!r}") from None
    try:
        refname = name.decode("utf-8")
    except UnicodeDecodeError:
        raise PackedRefsException(f"invalid ref name {name!r}") from None
    if not check_ref_format(refname):
        raise PackedRefsException(f"invalid ref name {name!r}")
    return oid, refname


def read_packed_refs(
    lines: Iterable[bytes],
) -> Iterator[tuple[str, HashId, HashId | None]]:
    """Read the lines of a packed-refs file.

    The "# pack-refs with:" header and other comments are skipped. A "^<sha>"
    line holds the peeled value of the tag ref on the line before it.

    Args:
      lines: Lines of the file, e.g. a file object opened in binary mode
    Yields: tuples of (ref name, SHA1, peeled SHA1 or None)
    """
    last: tuple[HashId, str] | None = None
    for line in lines:
        if line.startswith(b"#"):
            continue
        line = line.rstrip(b"\r\n")
        if not line:
            continue
        if line.startswith(b"^"):
            if last is None:
                raise PackedRefsException("unexpected peeled ref line")
            try:
                peeled = decode_hex(line[1:])
            except InvalidHash:
                raise PackedRefsException(f"Invalid hex sha {line[1:]!r}") from None
            yield (last[1], last[0], peeled)
            last = None
        else:
            if last is not None:
                yield (last[1], last[0], None)
            last = _split_ref_line(line)
    if last is not None:
        yield (last[1], last[0], None)


def parse_packed_refs(data: bytes) -> dict[str, HashId]:
    """Parse a packed-refs file into a mapping of ref names to SHA1s."""
    return {name: sha for name, sha, _ in read_packed_refs(data.splitlines())}


class RefsContainer:
    """A read-only container for refs.

    Subclasses supply the raw contents of HEAD, of loose ref files and the
    packed-refs table; resolution is shared.
    """

    def read_head(self) -> bytes | None:
        """Return the raw contents of HEAD, or None if it does not exist."""
        raise NotImplementedError(self.read_head)

    def read_loose_ref(self, name: str) -> bytes | None:
        """Return the raw contents of a loose ref, or None if it does not exist.

        Args:
          name: Full ref name, e.g. "refs/heads/main"
        """
        raise NotImplementedError(self.read_loose_ref)

    def get_packed_refs(self) -> dict[str, HashId]:
        """Get the contents of the packed-refs table.

        Returns: Dictionary mapping ref names to SHA1s; empty when there is
            no packed-refs table.
        """
        raise NotImplementedError(self.get_packed_refs)

    def _iter_loose_branches(self) -> Iterator[str]:
        raise NotImplementedError(self._iter_loose_branches)

    def get_head(self) -> Ref:
        """Read and parse HEAD.

        Raises:
          RefNotFound: if there is no HEAD
          InvalidHeadFormat: if HEAD is malformed
        """
        contents = self.read_head()
        if contents is None:
            raise RefNotFound(HEADREF)
        return parse_head(contents)

    def resolve_branch(self, name: str) -> HashId:
        """Resolve a local branch name to a commit hash.

        The loose ref file takes precedence over the packed-refs table.

        Raises:
          RefNotFound: if the branch does not exist or its name is invalid
          InvalidHash: if the loose ref file does not hold a hash
        """
        refname = LOCAL_BRANCH_PREFIX + name
        if not check_ref_format(refname):
            raise RefNotFound(name)
        contents = self.read_loose_ref(refname)
        if contents is not None:
            logger.debug("resolved %s from loose ref", refname)
            return parse_ref_contents(contents)
        try:
            sha = self.get_packed_refs()[refname]
        except KeyError:
            raise RefNotFound(name) from None
        logger.debug("resolved %s from packed-refs", refname)
        return sha

    def resolve(self, ref: Ref) -> HashId:
        """Resolve a parsed HEAD value to a commit hash."""
        if isinstance(ref, DirectCommit):
            return ref.hash
        elif isinstance(ref, NamedBranch):
            return self.resolve_branch(ref.name)
        else:
            assert_never(ref)

    def head(self) -> HashId:
        """Return the commit hash HEAD resolves to."""
        return self.resolve(self.get_head())

    def list_branches(self) -> list[str]:
        """Return the names of all local branches, loose and packed."""
        names = set(self._iter_loose_branches())
        for refname in self.get_packed_refs():
            if refname.startswith(LOCAL_BRANCH_PREFIX):
                names.add(refname[len(LOCAL_BRANCH_PREFIX) :])
        return sorted(names)

    def branches(self) -> dict[str, HashId]:
        """Return a mapping of every local branch to its commit hash."""
        return {name: self.resolve_branch(name) for name in self.list_branches()}


class DictRefsContainer(RefsContainer):
    """RefsContainer backed by in-memory values.

    Useful for tests and for callers that read the files themselves.
    """

    def __init__(
        self,
        head: bytes | None,
        refs: Mapping[str, bytes] | None = None,
        packed_refs: Mapping[str, HashId] | None = None,
    ) -> None:
        """Initialize DictRefsContainer.

        Args:
          head: Raw contents of HEAD
          refs: Raw contents of loose refs, by full ref name
          packed_refs: Packed refs, by full ref name
        """
        self._head = head
        self._refs = dict(refs or {})
        self._packed_refs = dict(packed_refs or {})

    def read_head(self) -> bytes | None:
        return self._head

    def read_loose_ref(self, name: str) -> bytes | None:
        return self._refs.get(name)

    def get_packed_refs(self) -> dict[str, HashId]:
        return dict(self._packed_refs)

    def _iter_loose_branches(self) -> Iterator[str]:
        for refname in self._refs:
            if refname.startswith(LOCAL_BRANCH_PREFIX):
                yield refname[len(LOCAL_BRANCH_PREFIX) :]


class DiskRefsContainer(RefsContainer):
    """Refs container that reads refs from a git control directory."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = os.fspath(path)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.path!r})"

    def refpath(self, name: str) -> str:
        """Return the disk path of a ref."""
        if os.path.sep != "/":
            name = name.replace("/", os.path.sep)
        return os.path.join(self.path, name)

    def read_head(self) -> bytes | None:
        return read_file(self.refpath(HEADREF))

    def read_loose_ref(self, name: str) -> bytes | None:
        path = self.refpath(name)
        if os.path.isdir(path):
            return None
        return read_file(path)

    def get_packed_refs(self) -> dict[str, HashId]:
        path = os.path.join(self.path, PACKED_REFS)
        try:
            f = GitFile(path, "rb")
        except FileNotFoundError:
            return {}
        with f:
            return {name: sha for name, sha, _ in read_packed_refs(f)}

    def _iter_loose_branches(self) -> Iterator[str]:
        heads = self.refpath(LOCAL_BRANCH_PREFIX.rstrip("/"))
        for root, dirs, files in os.walk(heads):
            directory = os.path.relpath(root, heads)
            for filename in files:
                if directory == os.curdir:
                    name = filename
                else:
                    name = "/".join(directory.split(os.path.sep) + [filename])
                if check_ref_format(LOCAL_BRANCH_PREFIX + name):
                    yield name
