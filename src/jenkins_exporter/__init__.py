__version__ = "0.3.0"

from .build import parse_build
from .errors import (
    ConfigError,
    ExporterError,
    MalformedData,
    NoBuildsFound,
    NotAJob,
    NotFound,
    TraversalError,
)
from .job import NameSource, assemble
from .model import Build, Category, Job, JobPath
from .pipeline import ParsePipeline, parse_jobs
from .selector import select_last_build
from .walker import TreeWalker, walk

__all__ = [
    "__version__",
    "parse_build",
    "select_last_build",
    "assemble",
    "walk",
    "TreeWalker",
    "ParsePipeline",
    "parse_jobs",
    "Build",
    "Category",
    "Job",
    "JobPath",
    "NameSource",
    "ExporterError",
    "NotFound",
    "MalformedData",
    "NotAJob",
    "NoBuildsFound",
    "TraversalError",
    "ConfigError",
]
