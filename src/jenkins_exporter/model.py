# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Tuple

from .selector import select_last_build


class Category(Enum):
    """
    The five build category pointers Jenkins keeps per job.

    value = permalink name on disk, label = metric label value.
    """
    SUCCESSFUL = "lastSuccessfulBuild"
    UNSUCCESSFUL = "lastUnsuccessfulBuild"
    STABLE = "lastStableBuild"
    UNSTABLE = "lastUnstableBuild"
    FAILED = "lastFailedBuild"

    @property
    def permalink(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class JobPath:
    """A directory on disk that may hold a job (opaque, no cached state)."""
    path: Path
    root: Optional[Path] = None  # walk root it was found under, for naming

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", Path(self.path))
        if self.root is not None:
            object.__setattr__(self, "root", Path(self.root))

    @property
    def builds_dir(self) -> Path:
        return self.path / "builds"

    def __str__(self) -> str:
        return str(self.path)


@dataclass(frozen=True)
class Build:
    """
    One build of a job.

    Build() (number == 0) means "no build in this category"; it is a
    normal value, not an error.
    """
    number: int = 0
    timestamp: int = 0        # epoch milliseconds
    duration: int = 0         # milliseconds
    result: str = ""          # SUCCESS / FAILURE / UNSTABLE / ABORTED / ""
    env_vars: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "env_vars", MappingProxyType(dict(self.env_vars)))

    @property
    def exists(self) -> bool:
        return self.number != 0

    def __bool__(self) -> bool:
        return self.exists

    @property
    def timestamp_seconds(self) -> float:
        return self.timestamp / 1000

    @property
    def duration_seconds(self) -> float:
        return self.duration / 1000


@dataclass(frozen=True)
class Job:
    """
    A Jenkins job and the latest build of each category.

    last_build is derived from the five slots and cannot be passed in;
    constructing a Job where every slot is Build() raises NoBuildsFound.
    """
    path: JobPath
    name: str
    folder: str
    last_successful_build: Build = field(default_factory=Build)
    last_unsuccessful_build: Build = field(default_factory=Build)
    last_stable_build: Build = field(default_factory=Build)
    last_unstable_build: Build = field(default_factory=Build)
    last_failed_build: Build = field(default_factory=Build)
    last_build: Build = field(init=False)

    def __post_init__(self) -> None:
        last = select_last_build(
            self.last_successful_build,
            self.last_unsuccessful_build,
            self.last_stable_build,
            self.last_unstable_build,
            self.last_failed_build,
            path=self.path,
        )
        object.__setattr__(self, "last_build", last)

    def build_for(self, category: Category) -> Build:
        return {
            Category.SUCCESSFUL: self.last_successful_build,
            Category.UNSUCCESSFUL: self.last_unsuccessful_build,
            Category.STABLE: self.last_stable_build,
            Category.UNSTABLE: self.last_unstable_build,
            Category.FAILED: self.last_failed_build,
        }[category]

    def builds(self) -> Iterator[Tuple[Category, Build]]:
        """Yield (category, build) for every category that has a build."""
        for category in Category:
            build = self.build_for(category)
            if build.exists:
                yield category, build
