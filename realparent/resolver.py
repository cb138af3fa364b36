# Copyright 2023 Lawrence Livermore National Security, LLC
# See the top-level LICENSE file for details.
#
# SPDX-License-Identifier: MIT
import errno
import os
import pathlib
from collections import deque
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple, TypeVar, Union

from loguru import logger

from realparent.components import (
    PARENT_DIR,
    Component,
    Named,
    ParentDir,
    PathFlavour,
    Root,
    render_path,
    split_path,
)
from realparent.configmanager import get_resolver_settings
from realparent.errors import MissingSegmentError, OracleError, SymlinkLoopError
from realparent.follower import DEFAULT_MAX_SYMLINK_HOPS, Splice, SymlinkFollower
from realparent.oracle import Entry, EntryKind, FilesystemOracle, LocalFilesystem

PathT = TypeVar("PathT", str, pathlib.PurePath)


class CursorMode(Enum):
    # no filesystem query has changed the shape of the path yet
    LEXICAL = "lexical"
    # a symlink was spliced in; the committed segments follow the physical layout
    PHYSICAL = "physical"


class Cursor:
    """Output-so-far of one resolution call.

    Attributes:
        root (Optional[Root]): Anchor of the path, None for a relative path.
        parts (List[Component]): Committed ``Named`` and leading ``ParentDir`` components.
        mode (CursorMode): LEXICAL until the first symlink splice, PHYSICAL from then on.
    """

    def __init__(self, flavour: PathFlavour, root: Optional[Root] = None):
        self.flavour = flavour
        self.root = root
        self.parts: List[Component] = []
        self.mode = CursorMode.LEXICAL

    @property
    def last(self) -> Optional[Component]:
        return self.parts[-1] if self.parts else None

    @property
    def is_rooted(self) -> bool:
        return self.root is not None and self.root.is_rooted

    @property
    def is_bare_root(self) -> bool:
        return self.is_rooted and not self.parts

    def push(self, component: Component) -> None:
        self.parts.append(component)

    def pop(self) -> Component:
        return self.parts.pop()

    def splice(self, splice: Splice, link_path: str) -> None:
        """Replace the last (symlink) segment with the anchor of its target, if it has one."""
        self.pop()
        if splice.root is not None:
            self.root = splice.root
            self.parts = []
        if self.mode is CursorMode.LEXICAL:
            logger.debug(f"Cursor switched to physical mode at {link_path}")
            self.mode = CursorMode.PHYSICAL

    def render(self) -> str:
        return render_path(self.root, self.parts, self.flavour)

    def __repr__(self) -> str:
        return f"Cursor({self.render()!r}, mode={self.mode.value})"


def _split(path: str, flavour: PathFlavour) -> Tuple[Optional[Root], Tuple[Component, ...]]:
    components = split_path(path, flavour)
    if components and isinstance(components[0], Root):
        return components[0], components[1:]
    return None, components


def _fspath(path: Union[str, os.PathLike]) -> str:
    s = os.fspath(path)
    if isinstance(s, bytes):
        raise TypeError(f"bytes paths are not supported: {s!r}")
    return s


def _like(path: PathT, rendered: str) -> PathT:
    if isinstance(path, pathlib.PurePath):
        return type(path)(rendered)
    return rendered


class _Walk:
    """State of a single resolution call: the oracle in use and the hop counter."""

    def __init__(self, resolver: "LazyResolver", flavour: PathFlavour):
        self.oracle = resolver.oracle
        self.strict = resolver.strict
        self.follower = SymlinkFollower(flavour, resolver.max_symlink_hops)

    def query(self, path: str) -> Entry:
        try:
            entry = self.oracle.entry_kind(path)
        except OSError as err:
            # the OS gave up on a symlink cycle in a segment before the last one
            if err.errno == errno.ELOOP:
                raise SymlinkLoopError(path, self.follower.max_hops) from err
            raise OracleError(path, err) from err
        logger.debug(f"Queried {path}: {entry.kind.name.lower()}")
        return entry

    def current_dir(self) -> str:
        try:
            return self.oracle.current_dir()
        except OSError as err:
            raise OracleError(".", err) from err

    def run(self, cursor: Cursor, components: Iterable[Component]) -> None:
        pending = deque(components)
        while pending:
            component = pending.popleft()
            if isinstance(component, ParentDir):
                splice = self.parent_dir(cursor)
                if splice is not None:
                    # walk the target, then take '..' of wherever it physically lands
                    pending.appendleft(PARENT_DIR)
                    pending.extendleft(reversed(splice.components))
            else:
                cursor.push(component)

    def parent_dir(self, cursor: Cursor) -> Optional[Splice]:
        """Apply one '..' to the cursor, returning a splice if the last segment was a symlink."""
        if not cursor.parts:
            if not cursor.is_rooted:
                cursor.push(PARENT_DIR)
            # '..' of the root is the root
            return None
        if isinstance(cursor.last, ParentDir):
            cursor.push(PARENT_DIR)
            return None

        path = cursor.render()
        entry = self.query(path)
        if entry.kind is EntryKind.SYMLINK:
            splice = self.follower.follow(path, entry.target)
            cursor.splice(splice, path)
            return splice
        if entry.kind is EntryKind.MISSING:
            if self.strict:
                raise MissingSegmentError(path)
            logger.warning(f"{path} does not exist, treating it as a directory")
        cursor.pop()
        return None

    def settle(self, cursor: Cursor) -> None:
        """Follow a trailing symlink chain until the last segment is not a link."""
        while isinstance(cursor.last, Named):
            path = cursor.render()
            entry = self.query(path)
            if entry.kind is not EntryKind.SYMLINK:
                return
            splice = self.follower.follow(path, entry.target)
            cursor.splice(splice, path)
            self.run(cursor, splice.components)


class LazyResolver:
    """Computes real parents, touching the filesystem only where a '..' follows a possible symlink.

    Ordinary names are carried lexically. A '..' after a named segment triggers one query for that
    segment; if it is a symlink its target is spliced in (relative targets continue from the
    link's directory, absolute ones replace the whole path) and the '..' is applied to the result.
    A path with no '..' therefore costs no queries at all.

    The resolver keeps no state between calls, so one instance can be shared between threads. Relative
    paths are resolved against the process working directory, which callers must not change while
    a resolution that depends on it is running.

    Args:
        oracle (Optional[FilesystemOracle]): Source of filesystem facts. (Default: LocalFilesystem)
        flavour (Optional[PathFlavour]): Path syntax; None picks it per path from its type.
        strict (bool): Fail with MissingSegmentError when '..' follows a nonexistent segment,
            instead of treating that segment as an ordinary directory.
        max_symlink_hops (int): Maximum symlinks followed in one call.
    """

    def __init__(
        self,
        oracle: Optional[FilesystemOracle] = None,
        *,
        flavour: Optional[PathFlavour] = None,
        strict: bool = False,
        max_symlink_hops: int = DEFAULT_MAX_SYMLINK_HOPS,
    ):
        if max_symlink_hops < 1:
            raise ValueError(f"max_symlink_hops must be positive, got {max_symlink_hops}")
        self.oracle = oracle if oracle is not None else LocalFilesystem()
        self.flavour = flavour
        self.strict = strict
        self.max_symlink_hops = max_symlink_hops

    def _flavour_for(self, path: Union[str, os.PathLike]) -> PathFlavour:
        return self.flavour if self.flavour is not None else PathFlavour.of(path)

    def parent_cursor(self, path: Union[str, os.PathLike]) -> Optional[Cursor]:
        """Resolve the real parent of ``path`` and return the committed cursor, or None if it has no parent."""
        flavour = self._flavour_for(path)
        root, components = _split(_fspath(path), flavour)
        if not components:
            logger.debug(f"{path} has no parent")
            return None

        walk = _Walk(self, flavour)
        cursor = Cursor(flavour, root)
        if isinstance(components[-1], Named):
            walk.run(cursor, components[:-1])
        else:
            # a trailing '..' must be resolved before its own parent can be taken
            walk.run(cursor, components)
            if cursor.is_bare_root:
                logger.debug(f"{path} is the root, it has no parent")
                return None
            walk.run(cursor, (PARENT_DIR,))
        logger.debug(f"Real parent of {path} is {cursor!r}")
        return cursor

    def parent(self, path: PathT) -> Optional[PathT]:
        """Return the real parent of ``path`` in the same representation, or None if it has no parent.

        Raises:
            MalformedPathError: if the path (or a symlink target) has invalid syntax.
            MissingSegmentError: in strict mode, if '..' follows a nonexistent segment.
            SymlinkLoopError: if more than ``max_symlink_hops`` symlinks had to be followed.
            OracleError: if a filesystem query failed.
        """
        cursor = self.parent_cursor(path)
        if cursor is None:
            return None
        return _like(path, cursor.render())

    def clean(self, path: PathT) -> PathT:
        """Fold away '..' as far as possible, expanding only the symlinks a '..' follows."""
        flavour = self._flavour_for(path)
        root, components = _split(_fspath(path), flavour)
        cursor = Cursor(flavour, root)
        _Walk(self, flavour).run(cursor, components)
        return _like(path, cursor.render())

    def is_root(self, path: Union[str, os.PathLike]) -> bool:
        """Whether ``path`` denotes the filesystem root, even if it is relative or goes through symlinks."""
        flavour = self._flavour_for(path)
        root, components = _split(_fspath(path), flavour)
        walk = _Walk(self, flavour)
        cursor = Cursor(flavour, root)
        walk.run(cursor, components)
        walk.settle(cursor)

        if not cursor.is_rooted:
            cwd = walk.current_dir()
            cwd_root, cwd_components = _split(cwd, flavour)
            remaining: Sequence[Component] = cursor.parts
            cursor = Cursor(flavour, cwd_root)
            walk.run(cursor, cwd_components + tuple(remaining))
        return cursor.is_bare_root


def _resolver(
    strict: Optional[bool],
    max_symlink_hops: Optional[int],
    oracle: Optional[FilesystemOracle],
    flavour: Optional[PathFlavour],
) -> LazyResolver:
    if strict is None or max_symlink_hops is None:
        settings = get_resolver_settings()
        strict = settings.strict if strict is None else strict
        max_symlink_hops = (
            settings.max_symlink_hops if max_symlink_hops is None else max_symlink_hops
        )
    return LazyResolver(oracle, flavour=flavour, strict=strict, max_symlink_hops=max_symlink_hops)


def real_parent(
    path: PathT,
    *,
    strict: Optional[bool] = None,
    max_symlink_hops: Optional[int] = None,
    oracle: Optional[FilesystemOracle] = None,
    flavour: Optional[PathFlavour] = None,
) -> Optional[PathT]:
    """Like taking the last segment off ``path``, but correct when '..' follows a symlink.

    Differences from ``os.path.dirname`` / ``PurePath.parent``:
      - ``real_parent("..") == "../.."``, not ``""`` or ``"."``
      - ``real_parent("foo") == "."``
      - ``real_parent("link/..")`` is the parent of wherever ``link`` points
      - the root, and the empty path, have no parent: None is returned

    Options left as None are read from the ``resolver`` section of the configuration file.
    """
    return _resolver(strict, max_symlink_hops, oracle, flavour).parent(path)


def real_clean(
    path: PathT,
    *,
    strict: Optional[bool] = None,
    max_symlink_hops: Optional[int] = None,
    oracle: Optional[FilesystemOracle] = None,
    flavour: Optional[PathFlavour] = None,
) -> PathT:
    """Return ``path`` with '..' folded away wherever that is safe, keeping it relative if it was."""
    return _resolver(strict, max_symlink_hops, oracle, flavour).clean(path)


def is_real_root(
    path: Union[str, os.PathLike],
    *,
    max_symlink_hops: Optional[int] = None,
    oracle: Optional[FilesystemOracle] = None,
    flavour: Optional[PathFlavour] = None,
) -> bool:
    """Return whether ``path`` is the root directory; the empty path means the current directory."""
    return _resolver(False, max_symlink_hops, oracle, flavour).is_root(path)
