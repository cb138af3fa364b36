# Copyright 2023 Lawrence Livermore National Security, LLC
# See the top-level LICENSE file for details.
#
# SPDX-License-Identifier: MIT
import os
import pathlib
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Sequence, Tuple, Union

from realparent.errors import MalformedPathError


class PathFlavour(Enum):
    POSIX = "posix"
    WINDOWS = "windows"

    @property
    def sep(self) -> str:
        return "\\" if self is PathFlavour.WINDOWS else "/"

    @classmethod
    def native(cls) -> "PathFlavour":
        return cls.WINDOWS if os.name == "nt" else cls.POSIX

    @classmethod
    def of(cls, path: Union[str, os.PathLike]) -> "PathFlavour":
        """Flavour implied by a path value; pure path classes carry their own, strings use the host's."""
        if isinstance(path, pathlib.PureWindowsPath):
            return cls.WINDOWS
        if isinstance(path, pathlib.PurePosixPath):
            return cls.POSIX
        return cls.native()


@dataclass(frozen=True)
class Root:
    """Root or prefix of an absolute (or drive-relative) path, modelled on pathlib's drive/root split.

    Attributes:
        drive (str): Windows drive, UNC share, or verbatim/device prefix; always empty on POSIX.
        root (str): The root separator, empty for drive-relative paths. '//' is a distinct POSIX root.
    """

    drive: str = ""
    root: str = ""

    @property
    def anchor(self) -> str:
        return self.drive + self.root

    @property
    def is_rooted(self) -> bool:
        return bool(self.root)


@dataclass(frozen=True)
class CurrentDir:
    pass


@dataclass(frozen=True)
class ParentDir:
    pass


@dataclass(frozen=True)
class Named:
    name: str


CURRENT_DIR = CurrentDir()
PARENT_DIR = ParentDir()

Component = Union[Root, CurrentDir, ParentDir, Named]

_VERBATIM = "\\\\?\\"
_DEVICE = "\\\\.\\"


def _split_unc(path: str, rest: str) -> Tuple[str, str, str]:
    parts = rest.split("\\", 2)
    server = parts[0]
    share = parts[1] if len(parts) > 1 else ""
    if not server or not share:
        raise MalformedPathError(path, "incomplete UNC prefix, expected \\\\server\\share")
    return server, share, ("\\" + parts[2] if len(parts) > 2 else "")


def _is_drive_letter(s: str) -> bool:
    return len(s) >= 2 and s[1] == ":" and s[0].isascii() and s[0].isalpha()


def _split_windows_anchor(path: str) -> Tuple[Root, str, bool]:
    s = path.replace("/", "\\")
    verbatim = False
    if s[:4] in (_VERBATIM, _DEVICE):
        head, rest = s[:4], s[4:]
        # '.' and '..' are plain names once path parsing is switched off
        verbatim = head == _VERBATIM
        if rest[:4].upper() == "UNC\\":
            server, share, rest = _split_unc(path, rest[4:])
            return Root(f"{head}{s[4:7]}\\{server}\\{share}", "\\"), rest, verbatim
        if _is_drive_letter(rest):
            drive, rest = head + rest[:2], rest[2:]
        else:
            name, sep, remainder = rest.partition("\\")
            if not name:
                raise MalformedPathError(path, "missing device or volume name after prefix")
            drive, rest = head + name, sep + remainder
    elif s.startswith("\\\\"):
        server, share, rest = _split_unc(path, s[2:])
        return Root(f"\\\\{server}\\{share}", "\\"), rest, verbatim
    elif _is_drive_letter(s):
        drive, rest = s[:2], s[2:]
    else:
        drive, rest = "", s
    return Root(drive, "\\" if rest.startswith("\\") else ""), rest, verbatim


def _split_posix_anchor(path: str) -> Tuple[Root, str]:
    if not path.startswith("/"):
        return Root(), path
    # exactly two leading slashes is an implementation-defined root; three or more mean '/'
    if path.startswith("//") and not path.startswith("///"):
        return Root(root="//"), path[2:]
    return Root(root="/"), path.lstrip("/")


def iter_components(path: str, flavour: PathFlavour) -> Iterator[Component]:
    """Yield every lexical component of ``path``, '.' included, without touching the filesystem."""
    if "\0" in path:
        raise MalformedPathError(path, "embedded NUL character")

    verbatim = False
    if flavour is PathFlavour.WINDOWS:
        root, rest, verbatim = _split_windows_anchor(path)
    else:
        root, rest = _split_posix_anchor(path)

    if root.anchor:
        yield root
    for segment in rest.split(flavour.sep):
        if not segment:
            continue
        if verbatim:
            yield Named(segment)
        elif segment == ".":
            yield CURRENT_DIR
        elif segment == "..":
            yield PARENT_DIR
        else:
            yield Named(segment)


def split_path(path: str, flavour: PathFlavour) -> Tuple[Component, ...]:
    """Split a path into its component sequence.

    A root or prefix, when present, is the first element. '.' segments are dropped and repeated
    separators collapse, so only ``Root``, ``ParentDir`` and ``Named`` components remain.

    Raises:
        MalformedPathError: if the path has an invalid platform prefix.
    """
    return tuple(c for c in iter_components(path, flavour) if c is not CURRENT_DIR)


def render_path(root: Union[Root, None], parts: Sequence[Component], flavour: PathFlavour) -> str:
    """Render a root and a run of ``Named``/``ParentDir`` components back to a path string."""
    names = [p.name if isinstance(p, Named) else ".." for p in parts]
    anchor = root.anchor if root is not None else ""
    body = flavour.sep.join(names)
    if not anchor and not body:
        return "."
    return anchor + body
