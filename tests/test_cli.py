"""Tests for the command line interface."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from jenkins_exporter import __version__
from jenkins_exporter.cli import cli


@pytest.fixture
def runner(monkeypatch):
    for var in ("JENKINS_PATH", "JENKINS_IGNORE", "JENKINS_WORKERS", "JENKINS_ENVVARS",
                "JENKINS_NAME_SOURCE", "LOG_LEVEL", "METRICS_BIND", "METRICS_PATH"):
        monkeypatch.delenv(var, raising=False)
    return CliRunner()


def test_scan_lists_jobs(runner, tree):
    tree.job("folderA/job1", builds={5: dict(result="SUCCESS")}, permalinks={"lastSuccessfulBuild": 5})
    tree.job("skipme/job2", builds={1: {}}, permalinks={"lastSuccessfulBuild": 1})
    result = runner.invoke(cli, [
        "scan", "--jenkins.path", str(tree.root), "--jenkins.ignore", "skipme", "--jenkins.workers", "2",
    ])
    assert result.exit_code == 0, result.output
    assert "folderA  job1  #5 SUCCESS" in result.output
    assert "job2" not in result.output
    assert "Jobs: 1" in result.output


def test_scan_invalid_tree_exits_1(runner, tmp_path):
    result = runner.invoke(cli, ["scan", "--jenkins.path", str(tmp_path / "missing")])
    assert result.exit_code == 1
    assert "Tree valid: no" in result.output


def test_scan_reads_environment(runner, tree, monkeypatch):
    tree.job("envjob", builds={2: {}}, permalinks={"lastSuccessfulBuild": 2})
    monkeypatch.setenv("JENKINS_PATH", str(tree.root))
    result = runner.invoke(cli, ["scan"])
    assert result.exit_code == 0, result.output
    assert "envjob" in result.output


def test_invalid_workers(runner, tree):
    result = runner.invoke(cli, ["scan", "--jenkins.path", str(tree.root), "--jenkins.workers", "0"])
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


def test_serve_rejects_bad_envvars(runner, tree):
    result = runner.invoke(cli, ["serve", "--jenkins.path", str(tree.root), "--jenkins.envvars", "FOO"])
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


def test_version(runner):
    result = runner.invoke(cli, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_scan_debug_lists_skipped_subtrees(runner, tree):
    tree.job("ok", builds={1: {}}, permalinks={"lastSuccessfulBuild": 1})
    broken = tree.folder("broken", config=False)
    result = runner.invoke(cli, ["--debug", "scan", "--jenkins.path", str(tree.root)])
    assert result.exit_code == 0, result.output
    assert f"[DEBUG] skipped subtree {broken}" in result.output
    assert "Skipped subtrees: 1" in result.output


def test_scan_hides_skipped_subtrees_without_debug(runner, tree):
    tree.job("ok", builds={1: {}}, permalinks={"lastSuccessfulBuild": 1})
    tree.folder("broken", config=False)
    result = runner.invoke(cli, ["scan", "--jenkins.path", str(tree.root)])
    assert result.exit_code == 0, result.output
    assert "[DEBUG]" not in result.output
