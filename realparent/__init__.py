# Copyright 2023 Lawrence Livermore National Security, LLC
# See the top-level LICENSE file for details.
#
# SPDX-License-Identifier: MIT
from loguru import logger

from .components import PathFlavour
from .errors import (
    MalformedPathError,
    MissingSegmentError,
    OracleError,
    ResolutionError,
    SymlinkLoopError,
)
from .oracle import Entry, EntryKind, FilesystemOracle, LocalFilesystem
from .resolver import CursorMode, LazyResolver, is_real_root, real_clean, real_parent

try:
    from ._version import __version__, __version_tuple__
except ModuleNotFoundError:
    __version__ = ""
    __version_tuple__ = ()

# library users opt in to log output; the command line enables it
logger.disable("realparent")

__all__ = [
    "CursorMode",
    "Entry",
    "EntryKind",
    "FilesystemOracle",
    "LazyResolver",
    "LocalFilesystem",
    "MalformedPathError",
    "MissingSegmentError",
    "OracleError",
    "PathFlavour",
    "ResolutionError",
    "SymlinkLoopError",
    "is_real_root",
    "real_clean",
    "real_parent",
]
