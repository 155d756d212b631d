# walker.py
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Set, Tuple, Union

from .errors import TraversalError
from .model import JobPath

logger = logging.getLogger(__name__)

JOBS_DIR = "jobs"
BUILDS_DIR = "builds"
CONFIG_XML = "config.xml"


def _child_dirs(jobs_dir: Path) -> List[Path]:
    # symlinks are not followed: a link back up the tree would never end
    with os.scandir(jobs_dir) as it:
        return [Path(e.path) for e in it if e.is_dir(follow_symlinks=False)]


def _inspect(folder: Path) -> Tuple[bool, bool]:
    """(has builds dir, has jobs dir); unreadable entries become TraversalError."""
    try:
        return (folder / BUILDS_DIR).is_dir(), (folder / JOBS_DIR).is_dir()
    except OSError as e:
        raise TraversalError(folder, f"cannot inspect: {e}") from None


def _has_config(folder: Path) -> bool:
    try:
        return (folder / CONFIG_XML).exists()
    except OSError as e:
        raise TraversalError(folder, f"cannot inspect: {e}") from None


def _walk_folder(
    folder: Path,
    root: Path,
    ignore: Set[str],
    errors: Optional[List[TraversalError]],
) -> Iterator[JobPath]:
    """
    Depth-first walk of one directory.

    A directory counts as handled if it has a builds dir (it's a job) or
    a listable jobs dir (it's a folder), both can be true. Otherwise it
    must at least have a config.xml (an empty folder) or it is an error.
    """
    if folder.name in ignore:
        logger.debug("ignoring %s", folder)
        return

    is_job, is_folder = _inspect(folder)
    if is_job:
        yield JobPath(folder, root)

    has_children = False
    if is_folder:
        jobs_dir = folder / JOBS_DIR
        try:
            children = _child_dirs(jobs_dir)
            has_children = True
        except OSError as e:
            logger.debug("cannot list %s: %s", jobs_dir, e)
            children = []

        for child in children:
            try:
                yield from _walk_folder(child, root, ignore, errors)
            except TraversalError as e:
                logger.warning("skipping %s", e)
                if errors is not None:
                    errors.append(e)

    if not is_job and not has_children and not _has_config(folder):
        raise TraversalError(folder, "neither a job nor a folder and no config.xml")


def walk(
    root: Union[str, Path],
    ignore: Iterable[str] = (),
    *,
    errors: Optional[List[TraversalError]] = None,
) -> Iterator[JobPath]:
    """
    Lazily yield every job directory below `root`.

    Args:
        root: Jenkins home (or any folder inside it)
        ignore: directory basenames whose subtree is skipped
        errors: optional list collecting the local (non-root) traversal errors

    Raises:
        TraversalError: only when `root` itself is not a valid job tree.
            Errors deeper down, unreadable directories included, are
            logged and that subtree is skipped.
    """
    root = Path(root)
    ignore_set = {name for name in ignore if name}
    yield from _walk_folder(root, root, ignore_set, errors)


class TreeWalker:
    """
    Iterable view of one walk that never raises.

    After iteration, `up` tells whether root was a valid tree and
    `errors` holds the subtrees that were skipped.
    """

    def __init__(self, root: Union[str, Path], ignore: Iterable[str] = ()):
        self.root = Path(root)
        self.ignore = [name for name in ignore if name]
        self.up: Optional[bool] = None
        self.errors: List[TraversalError] = []
        self.root_error: Optional[TraversalError] = None

    def __iter__(self) -> Iterator[JobPath]:
        self.up = None
        self.errors = []
        self.root_error = None
        try:
            yield from walk(self.root, self.ignore, errors=self.errors)
        except (TraversalError, OSError) as e:
            if not isinstance(e, TraversalError):
                e = TraversalError(self.root, str(e))
            logger.error("collecting job paths failed: %s", e)
            self.root_error = e
            self.up = False
            return
        self.up = True
