# test_objects.py -- tests for objects.py
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


"""Tests for git base objects."""

import os

from gitpeek.errors import (
    InvalidHash,
    MalformedCommit,
    MalformedHeader,
    MalformedTree,
    ObjectFormatException,
    SizeMismatch,
    UnknownMode,
    WrongObjectType,
)
from gitpeek.objects import (
    Blob,
    Commit,
    HashId,
    ObjectHeader,
    ObjectType,
    Tree,
    TreeEntry,
    TreeEntryMode,
    check_header,
    decode_hex,
    encode_hex,
    hex_to_filename,
    parse_blob,
    parse_commit,
    parse_object,
    parse_object_header,
    parse_tree,
    valid_hexsha,
)

from . import TestCase
from .utils import AUTHOR, D, F, L, X, make_commit_body, make_payload, make_tree_body

a_sha = b"6f670c0fb53f9463760b7295fbb814e965fb20c8"
b_sha = b"2969be3e8ee1c0222396a5611407e4769f14e54b"
c_sha = b"954a536f7819d40e6f637f849ee187dd10066349"
tree_sha = b"70c190eb48fa8bbb50ddc692a17b44cb781af7f6"


class HashIdTests(TestCase):
    def test_roundtrip_hex(self) -> None:
        sha = decode_hex(a_sha)
        self.assertIsInstance(sha, HashId)
        self.assertEqual(20, len(sha))
        self.assertEqual(a_sha.decode("ascii"), encode_hex(sha))

    def test_all_byte_values(self) -> None:
        raw = bytes(range(20))
        self.assertEqual(raw, decode_hex(encode_hex(raw)))
        raw = bytes(range(236, 256))
        self.assertEqual(raw, decode_hex(encode_hex(raw)))

    def test_uppercase(self) -> None:
        self.assertEqual(decode_hex(a_sha), decode_hex(a_sha.upper()))
        self.assertEqual(a_sha.decode("ascii"), encode_hex(decode_hex(a_sha.upper())))

    def test_str_input(self) -> None:
        self.assertEqual(decode_hex(a_sha), decode_hex(a_sha.decode("ascii")))
        self.assertEqual(decode_hex(a_sha), HashId.from_hex(a_sha.decode("ascii")))

    def test_invalid(self) -> None:
        self.assertRaises(InvalidHash, decode_hex, "xyz")
        self.assertRaises(InvalidHash, decode_hex, a_sha[:-1])
        self.assertRaises(InvalidHash, decode_hex, a_sha + b"0")
        self.assertRaises(InvalidHash, decode_hex, b"g" * 40)
        self.assertRaises(InvalidHash, decode_hex, b"")

    def test_invalid_is_value_error(self) -> None:
        self.assertRaises(ValueError, decode_hex, "xyz")

    def test_wrong_length(self) -> None:
        self.assertRaises(InvalidHash, HashId, b"\x00" * 19)
        self.assertRaises(InvalidHash, HashId, b"\x00" * 21)
        self.assertRaises(InvalidHash, encode_hex, b"\x00" * 19)

    def test_str_and_repr(self) -> None:
        sha = decode_hex(a_sha)
        self.assertEqual(a_sha.decode("ascii"), str(sha))
        self.assertEqual(f"HashId('{a_sha.decode('ascii')}')", repr(sha))

    def test_ordering(self) -> None:
        self.assertLess(HashId(b"\x00" * 20), HashId(b"\x00" * 19 + b"\x01"))

    def test_valid_hexsha(self) -> None:
        self.assertTrue(valid_hexsha(a_sha))
        self.assertTrue(valid_hexsha(a_sha.decode("ascii").upper()))
        self.assertFalse(valid_hexsha(b"xyz"))
        self.assertFalse(valid_hexsha(b"\xff" * 40))

    def test_hex_to_filename(self) -> None:
        self.assertEqual(
            os.path.join("objects", "6f", "670c0fb53f9463760b7295fbb814e965fb20c8"),
            hex_to_filename("objects", a_sha.decode("ascii")),
        )


class ObjectHeaderTests(TestCase):
    def test_blob(self) -> None:
        self.assertEqual(
            (ObjectHeader(ObjectType.BLOB, 3), b"abc"),
            parse_object_header(b"blob 3\0abc"),
        )

    def test_leading_zeros(self) -> None:
        header, body = parse_object_header(b"blob 003\0abc")
        self.assertEqual(3, header.size)
        self.assertEqual(b"abc", body)

    def test_empty_size(self) -> None:
        self.assertRaises(MalformedHeader, parse_object_header, b"blob \0")

    def test_size_not_decimal(self) -> None:
        self.assertRaises(MalformedHeader, parse_object_header, b"blob -3\0abc")
        self.assertRaises(MalformedHeader, parse_object_header, b"blob 3 \0abc")

    def test_size_out_of_range(self) -> None:
        self.assertRaises(
            MalformedHeader, parse_object_header, b"blob 18446744073709551616\0"
        )

    def test_missing_nul(self) -> None:
        self.assertRaises(MalformedHeader, parse_object_header, b"blob 3abc")

    def test_unknown_type(self) -> None:
        self.assertRaises(MalformedHeader, parse_object_header, b"tag 3\0abc")
        self.assertRaises(MalformedHeader, parse_object_header, b"")

    def test_size_mismatch(self) -> None:
        self.assertRaises(SizeMismatch, parse_object_header, b"blob 4\0abc")
        with self.assertRaises(SizeMismatch) as cm:
            parse_object_header(b"blob 2\0abc")
        self.assertEqual(2, cm.exception.declared)
        self.assertEqual(3, cm.exception.actual)

    def test_check_header_wrong_type(self) -> None:
        with self.assertRaises(WrongObjectType) as cm:
            check_header(b"tree 0\0", ObjectType.BLOB)
        self.assertEqual("blob", cm.exception.expected)
        self.assertEqual("tree", cm.exception.got)

    def test_check_header_garbage(self) -> None:
        with self.assertRaises(WrongObjectType) as cm:
            check_header(b"garbage", ObjectType.COMMIT)
        self.assertIsNone(cm.exception.got)

    def test_errors_are_object_format_errors(self) -> None:
        self.assertRaises(ObjectFormatException, check_header, b"x", ObjectType.TREE)


class CommitParseTests(TestCase):
    def make_commit(self, **kwargs) -> bytes:
        return make_payload(b"commit", make_commit_body(decode_hex(tree_sha), **kwargs))

    def test_simple(self) -> None:
        c = parse_commit(self.make_commit(message=b"Merge\n\nDetails.\n"))
        self.assertIsInstance(c, Commit)
        self.assertEqual(decode_hex(tree_sha), c.tree)
        self.assertEqual((), c.parents)
        self.assertEqual(AUTHOR.decode("utf-8"), c.author)
        self.assertEqual(AUTHOR.decode("utf-8"), c.committer)
        self.assertEqual("Merge\n\nDetails.\n", c.message)
        self.assertEqual((), c.extra)

    def test_parents(self) -> None:
        parents = [decode_hex(a_sha), decode_hex(b_sha)]
        c = parse_commit(self.make_commit(parents=parents))
        self.assertEqual(tuple(parents), c.parents)

    def test_distinct_author_committer(self) -> None:
        c = parse_commit(
            self.make_commit(
                author=b"A U Thor <author@example.com> 1 +0100",
                committer=b"C O Mitter <committer@example.com> 2 -0500",
            )
        )
        self.assertEqual("A U Thor <author@example.com> 1 +0100", c.author)
        self.assertEqual("C O Mitter <committer@example.com> 2 -0500", c.committer)

    def test_empty_message(self) -> None:
        self.assertEqual("", parse_commit(self.make_commit(message=b"")).message)

    def test_extra_headers(self) -> None:
        signature = b"-----BEGIN PGP SIGNATURE-----\nabc\n-----END PGP SIGNATURE-----"
        c = parse_commit(
            self.make_commit(extra=[(b"encoding", b"UTF-8"), (b"gpgsig", signature)])
        )
        self.assertEqual(
            (("encoding", "UTF-8"), ("gpgsig", signature.decode("ascii"))),
            c.extra,
        )

    def test_truncated(self) -> None:
        payload = self.make_commit()
        header, _, body = payload.partition(b"\0")
        self.assertRaises(SizeMismatch, parse_commit, header + b"\0" + body[:-5])

    def test_not_a_commit(self) -> None:
        self.assertRaises(WrongObjectType, parse_commit, b"blob 0\0")

    def test_missing_tree(self) -> None:
        body = b"author " + AUTHOR + b"\ncommitter " + AUTHOR + b"\n\nmsg\n"
        self.assertRaises(MalformedCommit, parse_commit, make_payload(b"commit", body))

    def test_invalid_tree(self) -> None:
        body = b"tree xyz\nauthor " + AUTHOR + b"\ncommitter " + AUTHOR + b"\n\nmsg\n"
        self.assertRaises(MalformedCommit, parse_commit, make_payload(b"commit", body))

    def test_invalid_parent(self) -> None:
        body = (
            b"tree " + tree_sha + b"\nparent " + a_sha[:20] + b"\nauthor " + AUTHOR
            + b"\ncommitter " + AUTHOR + b"\n\nmsg\n"
        )
        self.assertRaises(MalformedCommit, parse_commit, make_payload(b"commit", body))

    def test_missing_author(self) -> None:
        body = b"tree " + tree_sha + b"\ncommitter " + AUTHOR + b"\n\nmsg\n"
        self.assertRaises(MalformedCommit, parse_commit, make_payload(b"commit", body))

    def test_missing_committer(self) -> None:
        body = b"tree " + tree_sha + b"\nauthor " + AUTHOR + b"\n\nmsg\n"
        self.assertRaises(MalformedCommit, parse_commit, make_payload(b"commit", body))

    def test_parent_after_author(self) -> None:
        body = (
            b"tree " + tree_sha + b"\nauthor " + AUTHOR + b"\nparent " + a_sha
            + b"\ncommitter " + AUTHOR + b"\n\nmsg\n"
        )
        self.assertRaises(MalformedCommit, parse_commit, make_payload(b"commit", body))

    def test_parent_after_committer(self) -> None:
        body = (
            b"tree " + tree_sha + b"\nauthor " + AUTHOR + b"\ncommitter " + AUTHOR
            + b"\nparent " + a_sha + b"\n\nmsg\n"
        )
        self.assertRaises(MalformedCommit, parse_commit, make_payload(b"commit", body))

    def test_missing_blank_line(self) -> None:
        body = b"tree " + tree_sha + b"\nauthor " + AUTHOR + b"\ncommitter " + AUTHOR + b"\n"
        self.assertRaises(MalformedCommit, parse_commit, make_payload(b"commit", body))

    def test_invalid_utf8_message(self) -> None:
        payload = self.make_commit(message=b"caf\xe9\n")
        self.assertRaises(MalformedCommit, parse_commit, payload)


class TreeParseTests(TestCase):
    def test_entries(self) -> None:
        body = make_tree_body(
            [
                (F, b"a", decode_hex(a_sha)),
                (X, b"b", decode_hex(b_sha)),
                (L, b"c", decode_hex(c_sha)),
                (D, b"d", decode_hex(tree_sha)),
            ]
        )
        tree = parse_tree(make_payload(b"tree", body))
        self.assertEqual(
            [
                TreeEntry(TreeEntryMode.FILE, "a", decode_hex(a_sha)),
                TreeEntry(TreeEntryMode.FILE, "b", decode_hex(b_sha)),
                TreeEntry(TreeEntryMode.SYMLINK, "c", decode_hex(c_sha)),
                TreeEntry(TreeEntryMode.DIRECTORY, "d", decode_hex(tree_sha)),
            ],
            list(tree),
        )
        self.assertEqual(4, len(tree))
        tree.check()

    def test_empty(self) -> None:
        self.assertEqual(0, len(parse_tree(b"")))
        self.assertEqual(0, len(parse_tree(b"tree 0\0")))

    def test_unknown_mode(self) -> None:
        body = make_tree_body([(b"100664", b"a", decode_hex(a_sha))])
        with self.assertRaises(UnknownMode) as cm:
            parse_tree(make_payload(b"tree", body))
        self.assertEqual(b"100664", cm.exception.mode)

    def test_gitlink_mode_unknown(self) -> None:
        body = make_tree_body([(b"160000", b"sub", decode_hex(a_sha))])
        self.assertRaises(UnknownMode, parse_tree, make_payload(b"tree", body))

    def test_truncated_sha(self) -> None:
        body = make_tree_body([(F, b"a", decode_hex(a_sha))])[:-1]
        self.assertRaises(MalformedTree, parse_tree, make_payload(b"tree", body))

    def test_unterminated_name(self) -> None:
        self.assertRaises(MalformedTree, parse_tree, make_payload(b"tree", b"100644 a"))

    def test_unterminated_mode(self) -> None:
        self.assertRaises(MalformedTree, parse_tree, make_payload(b"tree", b"100644"))

    def test_empty_name(self) -> None:
        body = make_tree_body([(F, b"", decode_hex(a_sha))])
        self.assertRaises(MalformedTree, parse_tree, make_payload(b"tree", body))

    def test_slash_in_name(self) -> None:
        body = make_tree_body([(F, b"a/b", decode_hex(a_sha))])
        self.assertRaises(MalformedTree, parse_tree, make_payload(b"tree", body))

    def test_wrong_type(self) -> None:
        self.assertRaises(WrongObjectType, parse_tree, b"blob 0\0")

    def test_lookup(self) -> None:
        body = make_tree_body([(F, b"a", decode_hex(a_sha)), (D, b"d", decode_hex(b_sha))])
        tree = parse_tree(make_payload(b"tree", body))
        entry = tree.lookup("d")
        assert entry is not None
        self.assertTrue(entry.is_directory())
        self.assertEqual(decode_hex(b_sha), entry.hash)
        self.assertIsNone(tree.lookup("e"))


class TreeCheckTests(TestCase):
    def entry(self, mode: TreeEntryMode, name: str) -> TreeEntry:
        return TreeEntry(mode, name, decode_hex(a_sha))

    def test_directory_sorts_with_slash(self) -> None:
        Tree.from_entries(
            [
                self.entry(TreeEntryMode.FILE, "a.txt"),
                self.entry(TreeEntryMode.DIRECTORY, "a"),
            ]
        ).check()
        Tree.from_entries(
            [
                self.entry(TreeEntryMode.FILE, "a"),
                self.entry(TreeEntryMode.FILE, "a.txt"),
            ]
        ).check()

    def test_out_of_order(self) -> None:
        tree = Tree.from_entries(
            [
                self.entry(TreeEntryMode.DIRECTORY, "a"),
                self.entry(TreeEntryMode.FILE, "a.txt"),
            ]
        )
        self.assertRaises(MalformedTree, tree.check)

    def test_duplicate(self) -> None:
        tree = Tree.from_entries(
            [self.entry(TreeEntryMode.FILE, "a"), self.entry(TreeEntryMode.FILE, "a")]
        )
        self.assertRaises(MalformedTree, tree.check)


class BlobTests(TestCase):
    def test_parse(self) -> None:
        blob = parse_blob(b"blob 5\0a\0b\nc")
        self.assertEqual(b"a\0b\nc", blob.data)

    def test_empty(self) -> None:
        self.assertEqual(b"", parse_blob(b"blob 0\0").data)

    def test_repr_hides_data(self) -> None:
        self.assertNotIn("secret", repr(Blob(b"secret")))

    def test_wrong_type(self) -> None:
        self.assertRaises(WrongObjectType, parse_blob, b"commit 0\0")


class ParseObjectTests(TestCase):
    def test_dispatch(self) -> None:
        self.assertEqual(Blob(b"abc"), parse_object(b"blob 3\0abc"))
        tree = parse_object(
            make_payload(b"tree", make_tree_body([(F, b"a", decode_hex(a_sha))]))
        )
        self.assertIsInstance(tree, Tree)
        commit = parse_object(
            make_payload(b"commit", make_commit_body(decode_hex(tree_sha)))
        )
        self.assertIsInstance(commit, Commit)

    def test_type_attribute(self) -> None:
        self.assertIs(ObjectType.BLOB, parse_object(b"blob 0\0").type)
        self.assertEqual("commit", Commit.type.type_name)
