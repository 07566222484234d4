#
# gitpeek - Simple command-line interface to gitpeek
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

"""Simple command-line interface to gitpeek.

Each subcommand is a thin wrapper: it opens the repository, calls into the
library and prints the result. Errors raised by the library are reported
as "fatal: ..." and turn into exit code 1.
"""

__all__ = [
    "Command",
    "commands",
    "format_tree_entry",
    "main",
]

import argparse
import os
import sys
from collections.abc import Sequence

from .errors import (
    ChecksumMismatch,
    FileFormatException,
    NotADirectory,
    NotGitRepository,
    ObjectNotFound,
    PathNotFound,
    RefNotFound,
)
from .log_utils import default_logging_config, getLogger
from .object_store import iter_tree_contents
from .objects import (
    Blob,
    Commit,
    HashId,
    ObjectType,
    Tree,
    TreeEntry,
    TreeEntryMode,
    encode_hex,
    parse_object_header,
)
from .pack import load_pack_index
from .refs import LOCAL_BRANCH_PREFIX, DirectCommit, NamedBranch
from .repo import Repo

logger = getLogger(__name__)

_REPORTED_ERRORS = (
    ChecksumMismatch,
    FileFormatException,
    NotADirectory,
    NotGitRepository,
    ObjectNotFound,
    PathNotFound,
    RefNotFound,
    ValueError,
)

_MODE_DISPLAY = {
    TreeEntryMode.DIRECTORY: ("040000", ObjectType.TREE),
    TreeEntryMode.FILE: ("100644", ObjectType.BLOB),
    TreeEntryMode.SYMLINK: ("120000", ObjectType.BLOB),
}


def format_tree_entry(entry: TreeEntry, path: str | None = None) -> str:
    """Format a tree entry the way git ls-tree does."""
    mode, obj_type = _MODE_DISPLAY[entry.mode]
    name = entry.name if path is None else path
    return f"{mode} {obj_type.type_name} {encode_hex(entry.hash)}\t{name}\n"


class Command:
    """A gitpeek subcommand."""

    def __init__(self, repo_path: str = ".") -> None:
        self.repo_path = repo_path

    def open_repo(self) -> Repo:
        return Repo(self.repo_path)

    def run(self, args: Sequence[str]) -> int | None:
        """Run the command."""
        raise NotImplementedError(self.run)


class cmd_head(Command):
    """Show what HEAD points at."""

    def run(self, args: Sequence[str]) -> int | None:
        parser = argparse.ArgumentParser(prog="gitpeek head")
        parser.parse_args(args)
        with self.open_repo() as repo:
            ref = repo.refs.get_head()
            sha = repo.refs.resolve(ref)
        if isinstance(ref, NamedBranch):
            sys.stdout.write(f"{sha} {LOCAL_BRANCH_PREFIX}{ref.name}\n")
        elif isinstance(ref, DirectCommit):
            sys.stdout.write(f"{sha} HEAD (detached)\n")
        return 0


class cmd_rev_parse(Command):
    """Resolve HEAD, a branch or a hex object name to an object name."""

    def run(self, args: Sequence[str]) -> int | None:
        parser = argparse.ArgumentParser(prog="gitpeek rev-parse")
        parser.add_argument("name", help="HEAD, a branch name or an object name")
        parsed_args = parser.parse_args(args)
        with self.open_repo() as repo:
            sys.stdout.write(f"{repo.rev_parse(parsed_args.name)}\n")
        return 0


class cmd_cat_file(Command):
    """Show the type, size or contents of an object."""

    def run(self, args: Sequence[str]) -> int | None:
        parser = argparse.ArgumentParser(prog="gitpeek cat-file")
        group = parser.add_mutually_exclusive_group(required=True)
        group.add_argument("-t", dest="show_type", action="store_true", help="Show type")
        group.add_argument("-s", dest="show_size", action="store_true", help="Show size")
        group.add_argument(
            "-p", dest="pretty", action="store_true", help="Pretty-print contents"
        )
        parser.add_argument("object", help="Object to show")
        parsed_args = parser.parse_args(args)
        with self.open_repo() as repo:
            sha = repo.rev_parse(parsed_args.object)
            raw = repo.object_store.get_raw(sha)
            header, _ = parse_object_header(raw)
            if parsed_args.show_type:
                sys.stdout.write(f"{header.type.type_name}\n")
                return 0
            if parsed_args.show_size:
                sys.stdout.write(f"{header.size}\n")
                return 0
            obj = repo.object_store.get_object(sha)
        if isinstance(obj, Tree):
            for entry in obj:
                sys.stdout.write(format_tree_entry(entry))
        elif isinstance(obj, Commit):
            sys.stdout.write(_format_commit(obj))
        elif isinstance(obj, Blob):
            sys.stdout.flush()
            sys.stdout.buffer.write(obj.data)
        return 0


def _format_commit(commit: Commit) -> str:
    lines = [f"tree {commit.tree}\n"]
    lines.extend(f"parent {parent}\n" for parent in commit.parents)
    lines.append(f"author {commit.author}\n")
    lines.append(f"committer {commit.committer}\n")
    for name, value in commit.extra:
        folded = value.replace("\n", "\n ")
        lines.append(f"{name} {folded}\n")
    lines.append("\n")
    lines.append(commit.message)
    return "".join(lines)


class cmd_ls_tree(Command):
    """List the contents of a tree object."""

    def run(self, args: Sequence[str]) -> int | None:
        parser = argparse.ArgumentParser(prog="gitpeek ls-tree")
        parser.add_argument(
            "-r",
            "--recursive",
            action="store_true",
            help="Recursively list tree contents.",
        )
        parser.add_argument(
            "--name-only", action="store_true", help="Only display name."
        )
        parser.add_argument("treeish", nargs="?", default="HEAD", help="Tree-ish to list")
        parsed_args = parser.parse_args(args)
        with self.open_repo() as repo:
            tree_id = _resolve_tree(repo, parsed_args.treeish)
            store = repo.object_store
            if parsed_args.recursive:
                contents = list(iter_tree_contents(store, tree_id))
            else:
                contents = [(entry.name, entry) for entry in store.get_tree(tree_id)]
        for path, entry in contents:
            if parsed_args.name_only:
                sys.stdout.write(f"{path}\n")
            else:
                sys.stdout.write(format_tree_entry(entry, path))
        return 0


def _resolve_tree(repo: Repo, treeish: str) -> HashId:
    sha = repo.rev_parse(treeish)
    header, _ = parse_object_header(repo.object_store.get_raw(sha))
    if header.type is ObjectType.COMMIT:
        return repo.object_store.get_commit(sha).tree
    return sha


class cmd_show(Command):
    """Print the contents of a file in a commit."""

    def run(self, args: Sequence[str]) -> int | None:
        parser = argparse.ArgumentParser(prog="gitpeek show")
        parser.add_argument("path", help="Path of the file, relative to the root")
        parser.add_argument(
            "committish", nargs="?", default="HEAD", help="Commit to read from"
        )
        parsed_args = parser.parse_args(args)
        with self.open_repo() as repo:
            blob = repo.get_file(parsed_args.path, parsed_args.committish)
        sys.stdout.flush()
        sys.stdout.buffer.write(blob.data)
        return 0


class cmd_show_ref(Command):
    """List local branches, loose and packed."""

    def run(self, args: Sequence[str]) -> int | None:
        parser = argparse.ArgumentParser(prog="gitpeek show-ref")
        parser.parse_args(args)
        with self.open_repo() as repo:
            branches = repo.refs.branches()
        for name, sha in sorted(branches.items()):
            sys.stdout.write(f"{sha} {LOCAL_BRANCH_PREFIX}{name}\n")
        return 0


class cmd_verify_pack_index(Command):
    """Validate pack index files."""

    def run(self, args: Sequence[str]) -> int | None:
        parser = argparse.ArgumentParser(prog="gitpeek verify-pack-index")
        parser.add_argument(
            "-v", "--verbose", action="store_true", help="List every indexed object"
        )
        parser.add_argument(
            "index", nargs="*", help="Index files; defaults to those of the repository"
        )
        parsed_args = parser.parse_args(args)
        paths = parsed_args.index
        if not paths:
            with self.open_repo() as repo:
                paths = list(repo.object_store.iter_pack_index_paths())
        for path in paths:
            index = load_pack_index(path)
            index.check()
            if parsed_args.verbose:
                for sha, offset, crc32 in index.iterentries():
                    sys.stdout.write(f"{encode_hex(sha)} {offset} {crc32:08x}\n")
            sys.stdout.write(f"{path}: ok ({len(index)} objects)\n")
        return 0


commands = {
    "cat-file": cmd_cat_file,
    "head": cmd_head,
    "ls-tree": cmd_ls_tree,
    "rev-parse": cmd_rev_parse,
    "show": cmd_show,
    "show-ref": cmd_show_ref,
    "verify-pack-index": cmd_verify_pack_index,
}


def main(argv: Sequence[str] | None = None) -> int | None:
    """Main entry point for the gitpeek CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code or None
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = argparse.ArgumentParser(
        prog="gitpeek",
        description="Read-only inspection of git repositories",
    )
    parser.add_argument(
        "-C",
        "--repo",
        default=os.environ.get("GIT_DIR", "."),
        help="Path to the repository (defaults to $GIT_DIR or the current directory)",
    )
    parser.add_argument(
        "command",
        help=f"Command to run. Available: {', '.join(sorted(commands.keys()))}",
    )
    parser.add_argument("args", nargs=argparse.REMAINDER)
    global_args = parser.parse_args(argv)

    default_logging_config()

    try:
        cmd_kls = commands[global_args.command]
    except KeyError:
        logger.fatal("No such subcommand: %s", global_args.command)
        return 1
    try:
        return cmd_kls(global_args.repo).run(global_args.args)
    except _REPORTED_ERRORS as e:
        logger.fatal("fatal: %s", e)
        return 1


def _main() -> None:
    sys.exit(main())


if __name__ == "__main__":
    _main()
