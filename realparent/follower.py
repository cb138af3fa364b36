# Copyright 2023 Lawrence Livermore National Security, LLC
# See the top-level LICENSE file for details.
#
# SPDX-License-Identifier: MIT
from dataclasses import dataclass
from typing import Optional, Tuple

from loguru import logger

from realparent.components import Component, PathFlavour, Root, split_path
from realparent.errors import MalformedPathError, SymlinkLoopError

# Linux MAXSYMLINKS
DEFAULT_MAX_SYMLINK_HOPS = 40


@dataclass(frozen=True)
class Splice:
    """Replacement for a symlink segment of a cursor.

    Attributes:
        root (Optional[Root]): Anchor of an absolute target, which replaces the whole cursor. None
            for a relative target, which continues from the symlink's containing directory.
        components (Tuple[Component, ...]): Target segments still to be walked, '..' included.
    """

    root: Optional[Root]
    components: Tuple[Component, ...]


class SymlinkFollower:
    """Turns symlink targets into splices, counting hops against a fixed limit.

    One follower belongs to exactly one resolution call. A chain ``A -> B -> C`` costs one hop per
    link: after a splice the resolver inspects the new last segment again, and when that is also a
    link it comes back here, so genuine cycles and overly long chains both end in a
    ``SymlinkLoopError`` once the limit is passed.
    """

    def __init__(self, flavour: PathFlavour, max_hops: int = DEFAULT_MAX_SYMLINK_HOPS):
        if max_hops < 1:
            raise ValueError(f"max_hops must be positive, got {max_hops}")
        self.flavour = flavour
        self.max_hops = max_hops
        self.hops = 0

    def follow(self, link_path: str, target: str) -> Splice:
        """Count a hop through ``link_path`` and split its immediate ``target``.

        Raises:
            SymlinkLoopError: if this hop exceeds the limit.
            MalformedPathError: if the stored target is not a valid path for the flavour.
        """
        self.hops += 1
        if self.hops > self.max_hops:
            logger.debug(f"Giving up on {link_path} after {self.max_hops} symlink hops")
            raise SymlinkLoopError(link_path, self.max_hops)

        try:
            components = split_path(target, self.flavour)
        except MalformedPathError as err:
            raise MalformedPathError(link_path, f"symlink target {target!r}: {err.reason}") from err

        logger.debug(f"Hop {self.hops}: {link_path} -> {target}")
        if components and isinstance(components[0], Root):
            return Splice(components[0], components[1:])
        return Splice(None, components)
