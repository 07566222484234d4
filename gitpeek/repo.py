# repo.py -- For reading git repositories
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

"""Repository access.

Ties together the refs and object store of a repository on disk. Nothing
here writes to the repository.
"""

__all__ = [
    "CONTROLDIR",
    "OBJECTDIR",
    "Repo",
]

import os
from collections.abc import Iterator
from types import TracebackType

from .errors import InvalidHash, NotGitRepository, RefNotFound
from .file import expand_path
from .log_utils import getLogger
from .object_store import DiskObjectStore, tree_lookup_path
from .objects import Blob, Commit, HashId, decode_hex
from .pack import PackIndex2, load_pack_index
from .refs import HEADREF, DiskRefsContainer

logger = getLogger(__name__)

CONTROLDIR = ".git"
OBJECTDIR = "objects"


def _is_controldir(path: str) -> bool:
    return os.path.isfile(os.path.join(path, HEADREF)) and os.path.isdir(
        os.path.join(path, OBJECTDIR)
    )


class Repo:
    """A git repository backed by local disk.

    The path may be a work tree containing a .git directory or the control
    directory itself (e.g. a bare repository). A leading ~ and $VARIABLE
    references are expanded.
    """

    def __init__(self, root: str | os.PathLike[str]) -> None:
        """Open a repository on disk.

        Args:
          root: Path to the repository's root.
        Raises:
          NotGitRepository: if no git control directory is found at root
        """
        root = expand_path(root)
        hidden = os.path.join(root, CONTROLDIR)
        if os.path.isdir(hidden):
            self.bare = False
            self._controldir = hidden
        elif _is_controldir(root):
            self.bare = True
            self._controldir = root
        else:
            raise NotGitRepository(f"No git repository was found at {root}")
        self.path = root
        self.refs = DiskRefsContainer(self._controldir)
        self.object_store = DiskObjectStore(os.path.join(self._controldir, OBJECTDIR))
        logger.debug("opened repository %s", self._controldir)

    @classmethod
    def discover(cls, start: str | os.PathLike[str] = ".") -> "Repo":
        """Iterate parent directories to discover a repository.

        Return a Repo object for the first parent directory that looks like a
        git repository.

        Args:
          start: The directory to start discovery from (defaults to '.')
        """
        path = os.path.abspath(expand_path(start))
        while True:
            try:
                return cls(path)
            except NotGitRepository:
                parent = os.path.dirname(path)
                if parent == path:
                    raise NotGitRepository(
                        f"No git repository was found at {start}"
                    ) from None
                path = parent

    def controldir(self) -> str:
        """Return the path of the control directory."""
        return self._controldir

    def __repr__(self) -> str:
        return f"<Repo at {self.path!r}>"

    def __enter__(self) -> "Repo":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close any files opened by this repository.

        Every read opens and closes its own file, so there is nothing to do.
        """

    def head(self) -> HashId:
        """Return the commit HEAD resolves to."""
        return self.refs.head()

    def rev_parse(self, name: str) -> HashId:
        """Resolve HEAD, a local branch name or a full hex object name.

        Raises:
          RefNotFound: if name is none of these
        """
        if name == HEADREF:
            return self.head()
        try:
            return self.refs.resolve_branch(name)
        except RefNotFound:
            pass
        try:
            return decode_hex(name)
        except InvalidHash:
            raise RefNotFound(name) from None

    def get_commit(self, name: str = HEADREF) -> Commit:
        return self.object_store.get_commit(self.rev_parse(name))

    def get_file(self, path: str, committish: str = HEADREF) -> Blob:
        """Read a file from the tree of a commit."""
        commit = self.get_commit(committish)
        return tree_lookup_path(self.object_store, commit.tree, path)

    def pack_indexes(self) -> Iterator[PackIndex2]:
        """Load and validate every pack index of the object store."""
        for path in self.object_store.iter_pack_index_paths():
            yield load_pack_index(path)
