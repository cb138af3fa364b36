# Copyright 2023 Lawrence Livermore National Security, LLC
# See the top-level LICENSE file for details.
#
# SPDX-License-Identifier: MIT
import errno
import os
import stat
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class EntryKind(Enum):
    FILE = auto()
    DIRECTORY = auto()
    SYMLINK = auto()
    MISSING = auto()


@dataclass(frozen=True)
class Entry:
    kind: EntryKind
    # immediate (unresolved) link target, only set for symlinks
    target: Optional[str] = None

    @classmethod
    def symlink(cls, target: str) -> "Entry":
        return cls(EntryKind.SYMLINK, target)


FILE = Entry(EntryKind.FILE)
DIRECTORY = Entry(EntryKind.DIRECTORY)
MISSING = Entry(EntryKind.MISSING)


class FilesystemOracle(ABC):
    """Read-only view of filesystem state consumed by the resolver.

    Implementations answer one question per call and never modify the filesystem. Relative paths
    are interpreted against whatever the implementation considers the current directory.
    Failures other than "does not exist" are raised as ``OSError``.
    """

    @abstractmethod
    def entry_kind(self, path: str) -> Entry:
        """Describe the entry at ``path`` without following a final symlink."""

    @abstractmethod
    def current_dir(self) -> str:
        """Absolute, symlink-free path of the directory relative paths are resolved against."""


class LocalFilesystem(FilesystemOracle):
    """Oracle over the real filesystem of this process, via ``os.lstat`` and ``os.readlink``."""

    def entry_kind(self, path: str) -> Entry:
        try:
            st = os.lstat(path)
        except OSError as e:
            # ENOTDIR: a prefix of the path is a file, so the entry cannot exist
            if e.errno in (errno.ENOENT, errno.ENOTDIR):
                return MISSING
            raise
        if stat.S_ISLNK(st.st_mode):
            return Entry.symlink(os.readlink(path))
        if stat.S_ISDIR(st.st_mode):
            return DIRECTORY
        return FILE

    def current_dir(self) -> str:
        return os.getcwd()
