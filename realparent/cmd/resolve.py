# Copyright 2023 Lawrence Livermore National Security, LLC
# See the top-level LICENSE file for details.
#
# SPDX-License-Identifier: MIT
import sys
from typing import Optional, Tuple

import click
from loguru import logger

from realparent.errors import ResolutionError
from realparent.resolver import is_real_root, real_clean, real_parent

_strict_option = click.option(
    "--strict/--lenient",
    default=None,
    help="Fail when '..' follows a nonexistent segment (default: resolver.strict from the config file)",
)
_max_hops_option = click.option(
    "--max-hops",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum number of symlinks to follow per path (default: resolver.max_symlink_hops)",
)


@click.command("parent")
@click.argument("paths", nargs=-1, required=True)
@_strict_option
@_max_hops_option
def parent(paths: Tuple[str, ...], strict: Optional[bool], max_hops: Optional[int]):
    """Print the real parent directory of each PATH, following symlinks only where '..' requires it."""
    no_parent = False
    for path in paths:
        try:
            result = real_parent(path, strict=strict, max_symlink_hops=max_hops)
        except (ResolutionError, ValueError) as err:
            raise SystemExit(f"realparent: {err}") from err
        if result is None:
            click.echo(f"realparent: {path} has no parent", err=True)
            no_parent = True
            continue
        logger.debug(f"{path} -> {result}")
        click.echo(result)
    if no_parent:
        sys.exit(1)


@click.command("clean")
@click.argument("paths", nargs=-1, required=True)
@_strict_option
@_max_hops_option
def clean(paths: Tuple[str, ...], strict: Optional[bool], max_hops: Optional[int]):
    """Print each PATH with '..' folded away wherever symlinks allow it."""
    for path in paths:
        try:
            click.echo(real_clean(path, strict=strict, max_symlink_hops=max_hops))
        except (ResolutionError, ValueError) as err:
            raise SystemExit(f"realparent: {err}") from err


@click.command("is-root")
@click.argument("paths", nargs=-1, required=True)
@_max_hops_option
def is_root(paths: Tuple[str, ...], max_hops: Optional[int]):
    """Print 'true' or 'false' for each PATH depending on whether it is the root directory."""
    for path in paths:
        try:
            answer = is_real_root(path, max_symlink_hops=max_hops)
        except (ResolutionError, ValueError) as err:
            raise SystemExit(f"realparent: {err}") from err
        click.echo("true" if answer else "false")
