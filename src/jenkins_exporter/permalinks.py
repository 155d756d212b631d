# permalinks.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Protocol, Union

from .errors import NotFound
from .model import Category

logger = logging.getLogger(__name__)

PERMALINKS_FILE = "permalinks"

# Jenkins writes "-1" for a category that never had a build
NO_BUILD = "-1"


class CategoryResolver(Protocol):
    """Maps a category pointer to the build directory it names."""

    def resolve(self, category: Category) -> Path: ...


def parse_permalinks(path: Union[str, Path]) -> Dict[str, str]:
    """
    Parse a builds/permalinks index.

    Each line is "<permalink> <build dir>", e.g. "lastSuccessfulBuild 5".
    Lines that don't split into exactly two tokens are skipped, so a
    truncated or partially written file still yields the good entries.

    Raises:
        NotFound: the file does not exist.
    """
    path = Path(path)
    links: Dict[str, str] = {}
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError:
        raise NotFound(path, "no permalinks file") from None

    for lineno, line in enumerate(text.splitlines(), start=1):
        tokens = line.split()
        if not tokens:
            continue
        if len(tokens) != 2:
            logger.debug("%s:%d: unexpected amount of tokens (%d)", path, lineno, len(tokens))
            continue
        links[tokens[0]] = tokens[1]

    return links


class PermalinkIndex:
    """Resolver backed by the builds/permalinks file (current Jenkins)."""

    def __init__(self, builds_dir: Path, links: Dict[str, str]):
        self.builds_dir = builds_dir
        self.links = links

    @classmethod
    def load(cls, builds_dir: Path) -> PermalinkIndex:
        return cls(builds_dir, parse_permalinks(builds_dir / PERMALINKS_FILE))

    def resolve(self, category: Category) -> Path:
        target = self.links.get(category.permalink)
        if target is None or target == NO_BUILD:
            raise NotFound(self.builds_dir / PERMALINKS_FILE, f"no {category.permalink}")
        return self.builds_dir / target

    def __repr__(self) -> str:
        return f"PermalinkIndex({self.builds_dir})"


class SymbolicDirectories:
    """Resolver for older trees where builds/lastSuccessfulBuild etc. exist on disk."""

    def __init__(self, builds_dir: Path):
        self.builds_dir = builds_dir

    def resolve(self, category: Category) -> Path:
        candidate = self.builds_dir / category.permalink
        if not candidate.is_dir():
            raise NotFound(candidate, f"no {category.permalink}")
        return candidate

    def __repr__(self) -> str:
        return f"SymbolicDirectories({self.builds_dir})"


def select_resolver(builds_dir: Union[str, Path]) -> CategoryResolver:
    """Probe which on-disk layout the job uses and return a matching resolver."""
    builds_dir = Path(builds_dir)
    if (builds_dir / PERMALINKS_FILE).is_file():
        try:
            return PermalinkIndex.load(builds_dir)
        except NotFound:
            # removed between the check and the read
            pass
    return SymbolicDirectories(builds_dir)
