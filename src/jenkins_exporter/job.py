# job.py
from __future__ import annotations

import logging
import re
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from .build import parse_build
from .errors import MalformedData, NotAJob, NotFound
from .model import Build, Category, Job, JobPath
from .permalinks import CategoryResolver, select_resolver
from .selector import select_last_build

logger = logging.getLogger(__name__)

JOBS_DIR = "jobs"
ROOT_FOLDER = "/"
CONFIG_XML = "config.xml"

# everything up to and including the first "/jobs/"
_LEADING_JOBS = re.compile(r"^\S+?/jobs/")


class NameSource(str, Enum):
    """Where a job's name/folder comes from."""
    PATH = "path"   # directory layout under the Jenkins root (canonical)
    ENV = "env"     # JOB_NAME captured in the last build's environment


def _split_logical(logical: str, job_path: JobPath) -> Tuple[str, str]:
    tokens = [t for t in logical.split("/") if t]
    if not tokens:
        raise NotAJob(job_path.path, f"cannot derive a job name from {logical!r}")
    name = tokens[-1]
    folder = ROOT_FOLDER if len(tokens) == 1 else "/".join(tokens[:-1])
    return name, folder


def _root_prefix(root: Path) -> List[str]:
    """
    Logical folders above a walk root that sits inside a Jenkins home.

    home/jobs/a/jobs/b -> ["a", "b"]; climbing stops at the first parent
    that is not a Jenkins folder (no config.xml next to its jobs dir).
    """
    prefix: List[str] = []
    current = root
    while current.parent.name == JOBS_DIR:
        owner = current.parent.parent
        try:
            if not (owner / CONFIG_XML).exists():
                break
        except OSError:
            break
        prefix.insert(0, current.name)
        current = owner
    return prefix


def logical_path(job_path: JobPath) -> str:
    """
    Strip the filesystem "jobs" directories from a job location.

    root/jobs/folderA/jobs/job1 -> "folderA/job1"

    When the walk root is itself a folder inside a Jenkins home, the
    folders above it are kept: walking home/jobs/folderA still yields
    "folderA/job1".
    """
    path = job_path.path
    if job_path.root is not None:
        try:
            rel = path.relative_to(job_path.root)
        except ValueError:
            rel = None
        if rel is not None:
            parts = rel.parts
            # jobs/<a>/jobs/<b>/... : every even part is a "jobs" dir
            if len(parts) % 2 == 0 and all(p == JOBS_DIR for p in parts[0::2]):
                tokens = _root_prefix(job_path.root) + list(parts[1::2])
                # a walk root that is itself a top-level job
                return "/".join(tokens) if tokens else path.name

    fixed = _LEADING_JOBS.sub("", path.as_posix()).replace(f"{JOBS_DIR}/", "")
    return fixed


def derive_name_and_folder(
    job_path: JobPath,
    last_build: Optional[Build] = None,
    name_source: NameSource = NameSource.PATH,
) -> Tuple[str, str]:
    """
    Returns:
      (name, folder) where folder is "/" for top-level jobs.

    With NameSource.ENV the JOB_NAME variable of `last_build` is used when
    present; otherwise the directory layout decides.
    """
    if name_source == NameSource.ENV and last_build is not None:
        job_name = (last_build.env_vars.get("JOB_NAME") or "").strip()
        if job_name.strip("/"):
            return _split_logical(job_name, job_path)
        logger.debug("%s: no JOB_NAME in last build, using directory name", job_path)

    return _split_logical(logical_path(job_path), job_path)


def load_category_builds(
    resolver: CategoryResolver,
    job_path: JobPath,
) -> Dict[Category, Build]:
    """Parse every category build; a missing or broken one becomes Build()."""
    builds: Dict[Category, Build] = {}
    for category in Category:
        try:
            builds[category] = parse_build(resolver.resolve(category))
        except (NotFound, MalformedData) as e:
            logger.debug("%s: %s unavailable: %s", job_path, category.permalink, e)
            builds[category] = Build()
    return builds


def assemble(
    job_path: Union[JobPath, str, Path],
    name_source: NameSource = NameSource.PATH,
) -> Job:
    """
    Load a job from disk.

    Raises:
      NotAJob: job_path/builds is missing or not a directory
      NoBuildsFound: none of the categories has a usable build
    """
    if not isinstance(job_path, JobPath):
        job_path = JobPath(Path(job_path))

    builds_dir = job_path.builds_dir
    if not builds_dir.is_dir():
        raise NotAJob(job_path.path, f"{builds_dir} is not a directory")

    resolver = select_resolver(builds_dir)
    builds = load_category_builds(resolver, job_path)

    last = select_last_build(
        builds[Category.SUCCESSFUL],
        builds[Category.UNSUCCESSFUL],
        builds[Category.STABLE],
        builds[Category.UNSTABLE],
        builds[Category.FAILED],
        path=job_path.path,
    )
    name, folder = derive_name_and_folder(job_path, last, name_source)

    return Job(
        path=job_path,
        name=name,
        folder=folder,
        last_successful_build=builds[Category.SUCCESSFUL],
        last_unsuccessful_build=builds[Category.UNSUCCESSFUL],
        last_stable_build=builds[Category.STABLE],
        last_unstable_build=builds[Category.UNSTABLE],
        last_failed_build=builds[Category.FAILED],
    )
