# errors.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Union

PathLike = Union[str, Path]


@dataclass
class ExporterError(Exception):
    """
    Base error for everything the scan can fail on.

    Carries the filesystem location it refers to so log lines and
    CLI output can point at the offending job/build without a traceback.
    """
    path: PathLike
    message: str = ""

    def __str__(self) -> str:
        if self.message:
            return f"{self.path}: {self.message}"
        return str(self.path)


class NotFound(ExporterError):
    """Expected absence: a category without a build, a missing build.xml."""


class MalformedData(ExporterError):
    """The file exists but cannot be decoded or lacks a required field."""


class NotAJob(ExporterError):
    """The path has no builds directory."""


class NoBuildsFound(ExporterError):
    """None of the five build categories produced a usable build."""


class TraversalError(ExporterError):
    """A directory is neither a folder, a job nor an empty folder with config.xml."""


class ConfigError(ExporterError):
    """Invalid exporter configuration (flags / environment)."""
