# errors.py -- errors for gitpeek
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

"""Exception classes raised while reading a git repository.

Every error is reported to the immediate caller; nothing in gitpeek retries
or substitutes default values for structurally invalid data.
"""

import binascii


def _display_sha(sha: bytes | str) -> str:
    if isinstance(sha, str):
        return sha
    if len(sha) == 20:
        return binascii.hexlify(sha).decode("ascii")
    return sha.decode("ascii", "replace")


class ChecksumMismatch(Exception):
    """A checksum didn't match the expected contents."""

    def __init__(
        self,
        expected: bytes | str,
        got: bytes | str,
        extra: str | None = None,
    ) -> None:
        """Initialize a ChecksumMismatch exception.

        Args:
            expected: The expected checksum value (bytes or hex string).
            got: The actual checksum value (bytes or hex string).
            extra: Optional additional error information.
        """
        self.expected = _display_sha(expected)
        self.got = _display_sha(got)
        self.extra = extra
        message = f"Checksum mismatch: Expected {self.expected}, got {self.got}"
        if self.extra is not None:
            message += f"; {extra}"
        Exception.__init__(self, message)


class NotGitRepository(Exception):
    """Indicates that no Git repository was found."""


class FileFormatException(Exception):
    """Base class for exceptions relating to reading git file formats."""


class InvalidHash(FileFormatException, ValueError):
    """Text could not be decoded as a 40 character hex object name."""

    def __init__(self, text: bytes | str) -> None:
        self.text = text
        super().__init__(f"Invalid hash: {text!r}")


class InvalidHeadFormat(FileFormatException):
    """The head pointer is neither a branch reference nor an object name."""

    def __init__(self, contents: bytes | str) -> None:
        self.contents = contents
        super().__init__(f"Invalid HEAD contents: {contents!r}")


class PackedRefsException(FileFormatException):
    """Indicates an error parsing a packed-refs file."""


class CorruptObject(FileFormatException):
    """A loose object could not be decompressed."""

    def __init__(self, sha: bytes | str, reason: object = None) -> None:
        self.sha = _display_sha(sha)
        message = f"Corrupt object {self.sha}"
        if reason is not None:
            message += f": {reason}"
        super().__init__(message)


class ObjectFormatException(FileFormatException):
    """Indicates an error parsing an object."""


class WrongObjectType(ObjectFormatException):
    """The object header does not carry the expected type."""

    def __init__(self, expected: str, got: str | None = None) -> None:
        self.expected = expected
        self.got = got
        if got is None:
            super().__init__(f"Object is not a {expected}")
        else:
            super().__init__(f"Object is a {got}, not a {expected}")


class MalformedHeader(ObjectFormatException):
    """The object header length field is missing or not a decimal number."""


class SizeMismatch(ObjectFormatException):
    """The declared object length differs from the payload length."""

    def __init__(self, declared: int, actual: int) -> None:
        self.declared = declared
        self.actual = actual
        super().__init__(f"Object declares {declared} bytes but holds {actual}")


class MalformedCommit(ObjectFormatException):
    """A commit payload is missing a required line or has one out of order."""


class MalformedTree(ObjectFormatException):
    """A tree payload could not be split into well formed entries."""


class UnknownMode(ObjectFormatException):
    """A tree entry carries a mode that is not a known entry kind."""

    def __init__(self, mode: bytes) -> None:
        self.mode = mode
        super().__init__(f"Unknown tree entry mode {mode!r}")


class RefNotFound(KeyError):
    """A named branch does not exist as a loose or packed ref."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f"No such ref: {self.name}"


class ObjectNotFound(KeyError):
    """No loose object is stored under the requested name."""

    def __init__(self, sha: bytes | str) -> None:
        self.sha = _display_sha(sha)
        super().__init__(self.sha)

    def __str__(self) -> str:
        return f"{self.sha} is not in the object store"


class PathNotFound(KeyError):
    """A path segment does not name an entry of its tree."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(path)

    def __str__(self) -> str:
        return f"Path not found: {self.path}"


class NotADirectory(Exception):
    """Path traversal continued through an entry that is not a directory."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Not a directory: {path}")


class PackIndexFormatException(FileFormatException):
    """Base class for errors reading a pack index file."""


class UnsupportedIndexFormat(PackIndexFormatException):
    """The pack index is not a version 2 index."""


class CorruptIndex(PackIndexFormatException):
    """The pack index tables are inconsistent or truncated."""


class HashBucketMismatch(CorruptIndex):
    """An object name is stored in the fanout bucket of another leading byte."""

    def __init__(self, bucket: int, sha: bytes) -> None:
        self.bucket = bucket
        self.sha = _display_sha(sha)
        super().__init__(f"{self.sha} stored in fanout bucket {bucket:02x}")


class UnsortedIndex(CorruptIndex):
    """Object names within a fanout bucket are not strictly ascending."""

    def __init__(self, previous: bytes, sha: bytes) -> None:
        self.previous = _display_sha(previous)
        self.sha = _display_sha(sha)
        super().__init__(f"{self.sha} does not sort after {self.previous}")
