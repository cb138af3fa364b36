# Copyright 2023 Lawrence Livermore National Security, LLC
# See the top-level LICENSE file for details.
#
# SPDX-License-Identifier: MIT
from typing import Optional


class ResolutionError(Exception):
    """Base class for every failure raised while computing a real parent.

    Attributes:
        path (str): The path (or path segment) the failure is about.
    """

    def __init__(self, message: str, path: str):
        super().__init__(message)
        self.path = path


class MalformedPathError(ResolutionError, ValueError):
    """The path string violates the syntax of its platform flavour (e.g. an incomplete UNC prefix)."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"malformed path {path!r}: {reason}", path)
        self.reason = reason


class MissingSegmentError(ResolutionError):
    """A '..' needed to inspect a segment that does not exist, and strict checking was requested."""

    def __init__(self, path: str):
        super().__init__(f"cannot resolve '..' past nonexistent {path}", path)


class SymlinkLoopError(ResolutionError):
    """Following symlinks took more hops than allowed, either a cycle or a pathological chain."""

    def __init__(self, path: str, hops: int):
        super().__init__(
            f"symlink loop or chain too long at {path} (more than {hops} hops)", path
        )
        self.hops = hops


class OracleError(ResolutionError):
    """The filesystem query itself failed (permission denied, device error, ...)."""

    def __init__(self, path: str, error: OSError):
        # OSError.__str__ repeats the filename, strerror alone does not
        super().__init__(f"{error.strerror or error} on {path}", path)
        self.error: Optional[OSError] = error
