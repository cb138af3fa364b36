# Copyright 2023 Lawrence Livermore National Security, LLC
# See the top-level LICENSE file for details.
#
# SPDX-License-Identifier: MIT
import errno
import os
from typing import Dict, List, Optional, Tuple

import pytest

from realparent.components import Named, PathFlavour, Root, render_path, split_path
from realparent.configmanager import ConfigManager
from realparent.oracle import DIRECTORY, FILE, MISSING, Entry, EntryKind, FilesystemOracle

Key = Tuple[str, Tuple[str, ...]]
Location = Tuple[Root, List[str]]


class FakeFilesystem(FilesystemOracle):
    """In-memory filesystem that records every query made against it.

    Paths given to the builder methods are absolute and physical; missing parent directories are
    created. Lookups follow symlinks in every segment except the last, like lstat().
    """

    def __init__(self, flavour: PathFlavour = PathFlavour.POSIX, cwd: str = "/"):
        self.flavour = flavour
        self.cwd = cwd
        self.entries: Dict[Key, Entry] = {}
        self.failures: Dict[Key, OSError] = {}
        self.queries: List[str] = []
        self.dir(cwd)

    def _absolute(self, path: str) -> Location:
        components = split_path(path, self.flavour)
        assert components and isinstance(components[0], Root), f"{path} is not absolute"
        return components[0], [c.name for c in components[1:]]

    def _add(self, path: str, entry: Entry) -> "FakeFilesystem":
        root, names = self._absolute(path)
        for i in range(len(names)):
            self.entries.setdefault((root.anchor, tuple(names[:i])), DIRECTORY)
        self.entries[(root.anchor, tuple(names))] = entry
        return self

    def dir(self, path: str) -> "FakeFilesystem":
        return self._add(path, DIRECTORY)

    def file(self, path: str) -> "FakeFilesystem":
        return self._add(path, FILE)

    def symlink(self, link: str, target: str) -> "FakeFilesystem":
        return self._add(link, Entry.symlink(target))

    def fail(self, path: str, error: OSError) -> "FakeFilesystem":
        root, names = self._absolute(path)
        self.failures[(root.anchor, tuple(names))] = error
        return self

    def _lookup(self, root: Root, names: List[str]) -> Entry:
        return self.entries.get((root.anchor, tuple(names)), MISSING)

    def _locate(self, path: str, follow_last: bool, hops: int = 0) -> Tuple[Optional[Location], int]:
        """Physical location of ``path``, or None when an intermediate directory does not exist."""
        components = split_path(path, self.flavour)
        root, names = self._absolute(self.cwd)
        if components and isinstance(components[0], Root):
            if components[0].is_rooted:
                root, names = components[0], []
            components = components[1:]

        for i, component in enumerate(components):
            is_last = i == len(components) - 1
            if not isinstance(component, Named):
                if names:
                    names.pop()
                continue
            names.append(component.name)
            if is_last and not follow_last:
                break
            entry = self._lookup(root, names)
            if entry.kind is EntryKind.SYMLINK:
                hops += 1
                if hops > 40:
                    raise OSError(errno.ELOOP, "Too many levels of symbolic links", path)
                target_components = split_path(entry.target, self.flavour)
                if not (target_components and isinstance(target_components[0], Root)):
                    link_dir = [Named(n) for n in names[:-1]]
                    target = render_path(root, link_dir + list(target_components), self.flavour)
                else:
                    target = entry.target
                location, hops = self._locate(target, True, hops)
                if location is None:
                    return None, hops
                root, names = location
                entry = self._lookup(root, names)
            if not is_last and entry.kind is not EntryKind.DIRECTORY:
                return None, hops
        return (root, names), hops

    def entry_kind(self, path: str) -> Entry:
        self.queries.append(path)
        location, _ = self._locate(path, follow_last=False)
        if location is None:
            return MISSING
        root, names = location
        key = (root.anchor, tuple(names))
        if key in self.failures:
            raise self.failures[key]
        return self._lookup(root, names)

    def current_dir(self) -> str:
        return self.cwd


@pytest.fixture(name="fake_fs")
def fixture_fake_fs():
    """Factory for FakeFilesystem instances."""

    def make(flavour: PathFlavour = PathFlavour.POSIX, cwd: str = "/") -> FakeFilesystem:
        return FakeFilesystem(flavour, cwd)

    return make


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path, monkeypatch):
    """Keep the user's real configuration file out of every test."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-config"))
    monkeypatch.setenv("APPDATA", str(tmp_path / "appdata"))
    ConfigManager.delete_instance("realparent")
    yield
    ConfigManager.delete_instance("realparent")


@pytest.fixture
def in_dir(monkeypatch):
    """Change the working directory for the duration of a test."""

    def chdir(path):
        monkeypatch.chdir(os.fspath(path))

    return chdir
