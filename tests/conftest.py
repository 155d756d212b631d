"""Fixtures that lay out Jenkins home directories under tmp_path."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

import pytest


def build_xml(
    number: Optional[int] = None,
    result: str = "SUCCESS",
    timestamp: int = 1000,
    duration: int = 20,
    env: Optional[Dict[str, str]] = None,
    version: str = "1.0",
    root_tag: str = "build",
) -> str:
    """Render a build.xml the way Jenkins writes it."""
    entries = "".join(
        f"<entry><string>{k}</string><string>{v}</string></entry>"
        for k, v in (env or {}).items()
    )
    number_xml = f"<number>{number}</number>" if number is not None else ""
    return (
        f"<?xml version='{version}' encoding='UTF-8'?>\n"
        f"<{root_tag}>\n"
        "  <actions>\n"
        "    <org.jenkinsci.plugins.buildenvironment.actions.BuildEnvironmentBuildAction>\n"
        "      <dataHolders>\n"
        "        <org.jenkinsci.plugins.buildenvironment.data.EnvVarsData>\n"
        f"          <data>{entries}</data>\n"
        "        </org.jenkinsci.plugins.buildenvironment.data.EnvVarsData>\n"
        "      </dataHolders>\n"
        "    </org.jenkinsci.plugins.buildenvironment.actions.BuildEnvironmentBuildAction>\n"
        "  </actions>\n"
        f"  {number_xml}\n"
        f"  <result>{result}</result>\n"
        f"  <duration>{duration}</duration>\n"
        f"  <timestamp>{timestamp}</timestamp>\n"
        f"</{root_tag}>\n"
    )


class JenkinsTree:
    """Small builder for on-disk Jenkins trees."""

    def __init__(self, root: Path):
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)
        (self.root / "config.xml").write_text("<hudson/>")

    def job_dir(self, logical: str) -> Path:
        """"folderA/job1" -> root/jobs/folderA/jobs/job1"""
        path = self.root
        for segment in logical.split("/"):
            path = path / "jobs" / segment
        return path

    def folder(self, logical: str, config: bool = True) -> Path:
        path = self.job_dir(logical)
        path.mkdir(parents=True, exist_ok=True)
        if config:
            (path / "config.xml").write_text("<com.cloudbees.hudson.plugins.folder.Folder/>")
        return path

    def job(
        self,
        logical: str,
        builds: Optional[Dict[int, Dict]] = None,
        permalinks: Optional[Dict[str, object]] = None,
    ) -> Path:
        """
        Create a job.

        builds: {number: build_xml kwargs}
        permalinks: {"lastSuccessfulBuild": 5, ...}; None writes no index
        """
        path = self.job_dir(logical)
        builds_dir = path / "builds"
        builds_dir.mkdir(parents=True, exist_ok=True)
        (path / "config.xml").write_text("<project/>")

        for number, kwargs in (builds or {}).items():
            self.add_build(path, str(number), number=number, **kwargs)

        if permalinks is not None:
            lines = "".join(f"{name} {target}\n" for name, target in permalinks.items())
            (builds_dir / "permalinks").write_text(lines)
        return path

    def add_build(self, job_path: Path, dir_name: str, **kwargs) -> Path:
        build_dir = job_path / "builds" / dir_name
        build_dir.mkdir(parents=True, exist_ok=True)
        (build_dir / "build.xml").write_text(build_xml(**kwargs))
        return build_dir


@pytest.fixture
def tree(tmp_path: Path) -> JenkinsTree:
    return JenkinsTree(tmp_path / "jenkins")


@pytest.fixture
def make_build_xml():
    return build_xml
