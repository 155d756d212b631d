"""Tests for the Prometheus collector."""

from __future__ import annotations

import pytest
from prometheus_client import CollectorRegistry

from jenkins_exporter.collector import JenkinsCollector, scan
from jenkins_exporter.settings import ExporterSettings


@pytest.fixture
def jenkins(tree):
    tree.job(
        "folderA/job1",
        builds={
            4: dict(result="FAILURE", timestamp=2000, duration=3000, env={"TESTS_FAILED": "2"}),
            5: dict(result="SUCCESS", timestamp=5000, duration=1500, env={"TESTS_FAILED": "0"}),
        },
        permalinks={
            "lastSuccessfulBuild": 5,
            "lastStableBuild": 5,
            "lastFailedBuild": 4,
            "lastUnsuccessfulBuild": 4,
        },
    )
    tree.job(
        "rootjob",
        builds={1: dict(result="SUCCESS", env={"TESTS_FAILED": "n/a"})},
        permalinks={"lastSuccessfulBuild": 1},
    )
    return tree


def _registry(settings):
    registry = CollectorRegistry()
    registry.register(JenkinsCollector(settings))
    return registry


class TestScan:
    def test_scan(self, jenkins):
        result = scan(str(jenkins.root), workers=2)
        assert result.up is True
        assert {(j.folder, j.name) for j in result.jobs} == {("folderA", "job1"), ("/", "rootjob")}

    def test_scan_from_folder_keeps_folder_label(self, jenkins):
        result = scan(str(jenkins.job_dir("folderA")), workers=2)
        assert result.up is True
        assert [(j.folder, j.name) for j in result.jobs] == [("folderA", "job1")]

    def test_scan_invalid_root(self, tmp_path):
        result = scan(str(tmp_path / "missing"))
        assert result.up is False
        assert result.jobs == []


class TestJenkinsCollector:
    def test_build_metrics(self, jenkins):
        registry = _registry(ExporterSettings(jenkins_path=str(jenkins.root), workers=2))
        labels = {"folder": "folderA", "jenkins_job": "job1", "result": "successful"}
        assert registry.get_sample_value("jenkins_up") == 1
        assert registry.get_sample_value("jenkins_last_build_number", labels) == 5
        assert registry.get_sample_value("jenkins_last_build_timestamp_seconds", labels) == 5
        assert registry.get_sample_value("jenkins_last_build_duration_seconds", labels) == 1.5

        failed = dict(labels, result="failed")
        assert registry.get_sample_value("jenkins_last_build_number", failed) == 4
        unstable = dict(labels, result="unstable")
        assert registry.get_sample_value("jenkins_last_build_number", unstable) is None

    def test_custom_metrics(self, jenkins):
        settings = ExporterSettings(
            jenkins_path=str(jenkins.root),
            env_vars="TESTS_FAILED:tests_failed",
        )
        registry = _registry(settings)
        labels = {"folder": "folderA", "jenkins_job": "job1"}
        assert registry.get_sample_value(
            "jenkins_custom_last_tests_failed", dict(labels, result="failed")) == 2
        assert registry.get_sample_value(
            "jenkins_custom_last_tests_failed", dict(labels, result="successful")) == 0
        # non-numeric values are skipped
        assert registry.get_sample_value(
            "jenkins_custom_last_tests_failed",
            {"folder": "/", "jenkins_job": "rootjob", "result": "successful"},
        ) is None

    def test_invalid_tree_marks_down_and_counts_failures(self, tmp_path):
        registry = _registry(ExporterSettings(jenkins_path=str(tmp_path / "missing")))
        assert registry.get_sample_value("jenkins_up") == 0
        assert registry.get_sample_value("jenkins_collect_failures_total") == 2

    def test_each_scrape_is_fresh(self, jenkins):
        registry = _registry(ExporterSettings(jenkins_path=str(jenkins.root)))
        labels = {"folder": "/", "jenkins_job": "newjob", "result": "successful"}
        assert registry.get_sample_value("jenkins_last_build_number", labels) is None
        jenkins.job("newjob", builds={3: {}}, permalinks={"lastSuccessfulBuild": 3})
        assert registry.get_sample_value("jenkins_last_build_number", labels) == 3
