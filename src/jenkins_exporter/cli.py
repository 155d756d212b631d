# cli.py
from __future__ import annotations

import logging
import sys
from typing import Callable

import click
from pydantic import ValidationError

from jenkins_exporter import __version__
from jenkins_exporter.collector import scan as run_scan
from jenkins_exporter.errors import ConfigError
from jenkins_exporter.settings import ExporterSettings
from jenkins_exporter.ui.console import Console, get_console, set_console

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    """Route all module loggers to stderr at `level`."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )


def jenkins_options(fn: Callable) -> Callable:
    """Options shared by every command that reads the Jenkins tree."""
    options = [
        click.option("--jenkins.path", "jenkins_path", default=None,
                     help="Path to the Jenkins folder [env JENKINS_PATH, default /var/lib/jenkins]"),
        click.option("--jenkins.ignore", "ignore", default=None,
                     help="Comma-separated list of folders to ignore [env JENKINS_IGNORE]"),
        click.option("--jenkins.workers", "workers", default=None, type=int,
                     help="Number of parallel job parsers [env JENKINS_WORKERS, default 20]"),
        click.option("--jenkins.name-source", "name_source", default=None,
                     type=click.Choice(["path", "env"]),
                     help="Derive job name/folder from the directory layout or from JOB_NAME "
                          "[env JENKINS_NAME_SOURCE, default path]"),
        click.option("--log.level", "log_level", default=None,
                     help="The minimal log level to be displayed [env LOG_LEVEL, default INFO]"),
    ]
    for option in reversed(options):
        fn = option(fn)
    return fn


def load_settings(ctx: click.Context, **overrides) -> ExporterSettings:
    """Build settings from flags + environment, exit 1 with a readable error if invalid."""
    console = get_console()
    try:
        return ExporterSettings.from_env(**overrides)
    except (ValidationError, ConfigError) as e:
        if isinstance(e, ValidationError):
            details = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        else:
            details = [str(e)]
        console.print_error(
            "Invalid configuration",
            "The exporter configuration could not be validated.",
            details=details,
            suggestion="Check the command line flags and JENKINS_* / METRICS_* environment variables.",
        )
        if ctx.obj.get("debug", False):
            import traceback
            traceback.print_exc()
        sys.exit(1)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.pass_context
def cli(ctx, debug):
    """Jenkins exporter: Prometheus metrics from a Jenkins home directory."""
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command()
@jenkins_options
@click.option("--jenkins.envvars", "env_vars", default=None,
              help="Custom environment variables to parse into metrics. "
                   "Format: ENVVAR1:metric_name;ENVVAR2:metric_name [env JENKINS_ENVVARS]")
@click.option("--metrics.bind", "bind", default=None,
              help="Address to expose the metrics on [env METRICS_BIND, default :9506]")
@click.option("--metrics.path", "metrics_path", default=None,
              help="Path to expose the metrics on [env METRICS_PATH, default /metrics]")
@click.pass_context
def serve(ctx, **flags):
    """Serve Prometheus metrics for the Jenkins tree."""
    from jenkins_exporter.server import serve as run_server

    console = get_console()
    settings = load_settings(ctx, **flags)
    configure_logging(settings.log_level)

    logger = logging.getLogger("jenkins_exporter")
    for env_var, metric_name in settings.env_vars.items():
        logger.info("Added custom metric custom_last_%s using %s", metric_name, env_var)

    try:
        run_server(settings)
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)


@cli.command()
@jenkins_options
@click.pass_context
def scan(ctx, **flags):
    """Scan the Jenkins tree once and print every job found."""
    console = get_console()
    settings = load_settings(ctx, **flags)
    configure_logging(settings.log_level)

    console.print_scan_started(settings.jenkins_path, settings.workers, settings.ignore)
    try:
        result = run_scan(
            settings.jenkins_path,
            settings.ignore,
            settings.workers,
            settings.name_source,
        )
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)

    for job in sorted(result.jobs, key=lambda j: (j.folder, j.name)):
        console.print_job(job)
    for error in result.skipped:
        console.print_debug(f"skipped subtree {error}")

    console.print_scan_summary(
        up=result.up,
        job_count=len(result.jobs),
        traversal_errors=result.traversal_errors,
        duration=result.duration,
    )

    if not result.up:
        console.print_error(
            "Not a Jenkins tree",
            f"{settings.jenkins_path} has no jobs, no builds and no config.xml.",
            suggestion="Point --jenkins.path at the Jenkins home directory (e.g. /var/lib/jenkins).",
        )
        sys.exit(1)


@cli.command()
def version():
    """Print the exporter version."""
    click.echo(f"jenkins-exporter {__version__}")


if __name__ == "__main__":
    cli()
