# settings.py
from __future__ import annotations

import os
import re
from typing import Any, Dict, List, Tuple

from pydantic import BaseModel, Field, field_validator

from .errors import ConfigError
from .job import NameSource
from .pipeline import DEFAULT_WORKERS

DEFAULT_JENKINS_PATH = "/var/lib/jenkins"
DEFAULT_BIND = ":9506"
DEFAULT_METRICS_PATH = "/metrics"
DEFAULT_LOG_LEVEL = "INFO"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

METRIC_NAME_RE = re.compile(r"^[a-z_]+$")

# flag name -> environment variable, used by the CLI as click envvars
ENV_VARS = {
    "jenkins_path": "JENKINS_PATH",
    "ignore": "JENKINS_IGNORE",
    "env_vars": "JENKINS_ENVVARS",
    "workers": "JENKINS_WORKERS",
    "name_source": "JENKINS_NAME_SOURCE",
    "bind": "METRICS_BIND",
    "metrics_path": "METRICS_PATH",
    "log_level": "LOG_LEVEL",
}


def parse_custom_metrics(value: str) -> Dict[str, str]:
    """
    Parse "ENVVAR1:metric_name;ENVVAR2:other_name" into {ENVVAR: metric_name}.

    Raises:
        ConfigError: a pair is not "ENV:name" or the name isn't [a-z_]+.
    """
    metrics: Dict[str, str] = {}
    if not value:
        return metrics

    for pair in value.split(";"):
        if not pair:
            continue
        parts = pair.split(":")
        if len(parts) != 2 or not parts[0]:
            raise ConfigError("--jenkins.envvars", f"custom metrics config format is invalid: {value}")
        env_var, metric_name = parts
        if not METRIC_NAME_RE.match(metric_name):
            raise ConfigError("--jenkins.envvars", f"provided invalid metric name: {metric_name}")
        metrics[env_var] = metric_name
    return metrics


def parse_bind(bind: str) -> Tuple[str, int]:
    """":9506" -> ("0.0.0.0", 9506), "127.0.0.1:9000" -> ("127.0.0.1", 9000)"""
    host, sep, port = bind.rpartition(":")
    if not sep or not port.isdigit():
        raise ConfigError("--metrics.bind", f"expected [host]:port, got {bind!r}")
    return host.strip("[]") or "0.0.0.0", int(port)


class ExporterSettings(BaseModel):
    """All knobs of the exporter; filled from CLI flags / environment."""

    jenkins_path: str = DEFAULT_JENKINS_PATH
    ignore: List[str] = Field(default_factory=list)
    env_vars: Dict[str, str] = Field(default_factory=dict)
    workers: int = Field(default=DEFAULT_WORKERS, ge=1)
    name_source: NameSource = NameSource.PATH
    bind: str = DEFAULT_BIND
    metrics_path: str = DEFAULT_METRICS_PATH
    log_level: str = DEFAULT_LOG_LEVEL

    @field_validator("ignore", mode="before")
    @classmethod
    def _split_ignore(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split(",")
        return [name.strip() for name in v if name and name.strip()]

    @field_validator("env_vars", mode="before")
    @classmethod
    def _parse_env_vars(cls, v: Any) -> Any:
        if v is None:
            return {}
        if isinstance(v, str):
            try:
                return parse_custom_metrics(v)
            except ConfigError as e:
                raise ValueError(e.message) from None
        return v

    @field_validator("metrics_path")
    @classmethod
    def _check_metrics_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError(f"metrics path must start with '/', got {v!r}")
        return v

    @field_validator("bind")
    @classmethod
    def _check_bind(cls, v: str) -> str:
        try:
            parse_bind(v)
        except ConfigError as e:
            raise ValueError(e.message) from None
        return v

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log level must be one of {', '.join(LOG_LEVELS)}, got {v!r}")
        return level

    @property
    def host_port(self) -> Tuple[str, int]:
        return parse_bind(self.bind)

    @classmethod
    def from_env(cls, environ: Dict[str, str] | None = None, **overrides: Any) -> ExporterSettings:
        """Build settings from environment variables, explicit overrides win."""
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {
            field: environ[var] for field, var in ENV_VARS.items() if var in environ
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
