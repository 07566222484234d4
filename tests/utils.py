# utils.py -- Test utilities for gitpeek
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


"""Utility functions common to gitpeek tests.

These build the on-disk formats gitpeek reads: compressed loose objects,
tree and commit bodies, pack indexes and small repositories.
"""

import os
import shutil
import struct
import tempfile
import zlib
from collections import defaultdict
from collections.abc import Iterable, Sequence
from hashlib import sha1

from gitpeek.objects import HashId, encode_hex, hex_to_filename

# Plain files are very frequently used in tests, so let the mode be very short.
F = b"100644"
X = b"100755"
D = b"40000"
L = b"120000"

AUTHOR = b"Test Author <test@example.com> 1700000000 +0000"


def make_payload(type_name: bytes, body: bytes) -> bytes:
    """Build a decompressed object: header and body."""
    return type_name + b" " + str(len(body)).encode("ascii") + b"\0" + body


def object_id(payload: bytes) -> HashId:
    """Compute the name git gives to an object."""
    return HashId(sha1(payload).digest())


def make_tree_body(entries: Iterable[tuple[bytes, bytes, bytes]]) -> bytes:
    """Build the body of a tree from (mode, name, sha) tuples, in given order."""
    return b"".join(mode + b" " + name + b"\0" + sha for mode, name, sha in entries)


def make_commit_body(
    tree: bytes,
    parents: Sequence[bytes] = (),
    author: bytes = AUTHOR,
    committer: bytes = AUTHOR,
    message: bytes = b"Test commit\n",
    extra: Sequence[tuple[bytes, bytes]] = (),
) -> bytes:
    """Build the body of a commit."""
    lines = [b"tree " + encode_hex(tree).encode("ascii") + b"\n"]
    lines.extend(b"parent " + encode_hex(p).encode("ascii") + b"\n" for p in parents)
    lines.append(b"author " + author + b"\n")
    lines.append(b"committer " + committer + b"\n")
    for name, value in extra:
        lines.append(name + b" " + value.replace(b"\n", b"\n ") + b"\n")
    lines.append(b"\n")
    lines.append(message)
    return b"".join(lines)


def build_pack_index(
    entries: Iterable[tuple[bytes, int, int]],
    pack_checksum: bytes = b"\x01" * 20,
    fan_out_table: Sequence[int] | None = None,
    sort: bool = True,
) -> bytes:
    """Build a version 2 pack index.

    Args:
      entries: tuples of (object name, pack offset, crc32)
      pack_checksum: Checksum of the corresponding pack
      fan_out_table: Fan-out table to write instead of the computed one
      sort: Sort entries by name; pass False to write them as given
    Returns: The index contents, trailing checksum included
    """
    entries_list = list(entries)
    if sort:
        entries_list.sort()
    if fan_out_table is None:
        counts: dict[int, int] = defaultdict(lambda: 0)
        for name, _offset, _crc32 in entries_list:
            counts[name[0]] += 1
        fan_out_table = []
        total = 0
        for i in range(0x100):
            total += counts[i]
            fan_out_table.append(total)
    chunks = [b"\377tOc", struct.pack(">L", 2)]
    chunks.extend(struct.pack(">L", count) for count in fan_out_table)
    chunks.extend(name for name, _offset, _crc32 in entries_list)
    chunks.extend(struct.pack(">L", crc32) for _name, _offset, crc32 in entries_list)
    largetable: list[int] = []
    for _name, offset, _crc32 in entries_list:
        if offset < 2**31:
            chunks.append(struct.pack(">L", offset))
        else:
            chunks.append(struct.pack(">L", 2**31 + len(largetable)))
            largetable.append(offset)
    chunks.extend(struct.pack(">Q", offset) for offset in largetable)
    chunks.append(pack_checksum)
    contents = b"".join(chunks)
    return contents + sha1(contents).digest()


def sha_with_prefix(first_byte: int, fill: int = 0) -> HashId:
    """Build an object name with a chosen leading byte."""
    return HashId(bytes([first_byte]) + bytes([fill]) * 19)


class RepoBuilder:
    """Write a minimal git control directory for tests."""

    def __init__(self, controldir: str) -> None:
        self.controldir = controldir
        self.objects_dir = os.path.join(controldir, "objects")
        os.makedirs(os.path.join(controldir, "refs", "heads"), exist_ok=True)
        os.makedirs(self.objects_dir, exist_ok=True)

    def _write(self, relpath: str, contents: bytes) -> str:
        path = os.path.join(self.controldir, *relpath.split("/"))
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(contents)
        return path

    def add_raw_object(self, sha: bytes, compressed: bytes) -> None:
        path = hex_to_filename(self.objects_dir, encode_hex(sha))
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(compressed)

    def add_object(self, type_name: bytes, body: bytes) -> HashId:
        payload = make_payload(type_name, body)
        sha = object_id(payload)
        self.add_raw_object(sha, zlib.compress(payload))
        return sha

    def add_blob(self, data: bytes) -> HashId:
        return self.add_object(b"blob", data)

    def add_tree(self, entries: Iterable[tuple[bytes, bytes, bytes]]) -> HashId:
        return self.add_object(b"tree", make_tree_body(entries))

    def add_commit(
        self,
        tree: bytes,
        parents: Sequence[bytes] = (),
        message: bytes = b"Test commit\n",
    ) -> HashId:
        body = make_commit_body(tree, parents=parents, message=message)
        return self.add_object(b"commit", body)

    def set_head(self, contents: bytes) -> None:
        self._write("HEAD", contents)

    def set_branch(self, name: str, sha: bytes) -> None:
        self._write("refs/heads/" + name, encode_hex(sha).encode("ascii") + b"\n")

    def set_packed_refs(self, refs: Iterable[tuple[str, bytes]]) -> None:
        lines = [b"# pack-refs with: peeled fully-peeled sorted \n"]
        for name, sha in refs:
            lines.append(
                encode_hex(sha).encode("ascii") + b" " + name.encode("utf-8") + b"\n"
            )
        self._write("packed-refs", b"".join(lines))

    def add_pack_index(self, name: str, contents: bytes) -> str:
        return self._write(f"objects/pack/pack-{name}.idx", contents)


def make_sample_repo(test, bare: bool = False) -> tuple[str, RepoBuilder, dict]:
    """Create a repository with one commit on the "main" branch.

    The commit's tree holds README, a symlink and src/main.rs.

    Returns: tuple of (repository path, builder, dict of object names)
    """
    path = tempfile.mkdtemp()
    test.addCleanup(shutil.rmtree, path)
    controldir = path if bare else os.path.join(path, ".git")
    builder = RepoBuilder(controldir)
    readme = builder.add_blob(b"hello world\n")
    main_rs = builder.add_blob(b'fn main() {\n    println!("hi");\n}\n')
    src = builder.add_tree([(F, b"main.rs", main_rs)])
    link = builder.add_blob(b"README")
    root = builder.add_tree([(F, b"README", readme), (L, b"link", link), (D, b"src", src)])
    commit = builder.add_commit(root, message=b"Initial commit\n")
    builder.set_branch("main", commit)
    builder.set_head(b"ref: refs/heads/main\n")
    shas = {
        "readme": readme,
        "main_rs": main_rs,
        "src": src,
        "link": link,
        "root": root,
        "commit": commit,
    }
    return path, builder, shas
