# file.py -- Read-only access to git files
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

"""Read-only access to git files.

gitpeek never writes to a repository, so only binary read mode is offered.
"""

__all__ = [
    "GitFile",
    "expand_path",
    "read_file",
]

import os
from typing import IO

PathLike = str | bytes | os.PathLike[str] | os.PathLike[bytes]


def expand_path(path: str | os.PathLike[str]) -> str:
    """Expand a leading ~ and $VARIABLE references in a path."""
    return os.path.expandvars(os.path.expanduser(os.fspath(path)))


def GitFile(filename: PathLike, mode: str = "rb", bufsize: int = -1) -> IO[bytes]:
    """Open a git file for reading.

    Args:
      filename: Path to the file
      mode: File mode; only 'rb' is supported
      bufsize: Buffer size for file operations
    Returns: a builtin file object
    """
    if "w" in mode or "a" in mode or "+" in mode or "x" in mode:
        raise OSError("gitpeek does not write to git files")
    if "b" not in mode:
        raise OSError("text mode not supported for Git files")
    return open(filename, mode, bufsize)


def read_file(filename: PathLike) -> bytes | None:
    """Read a whole file.

    Returns: The file contents, or None if the file does not exist. Other
        I/O errors propagate.
    """
    try:
        f = GitFile(filename, "rb")
    except FileNotFoundError:
        return None
    with f:
        return f.read()
