# server.py
from __future__ import annotations

import logging
import platform

from fastapi import FastAPI, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import HTMLResponse
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Info, generate_latest

from . import __version__
from .collector import JenkinsCollector
from .settings import DEFAULT_METRICS_PATH, ExporterSettings

logger = logging.getLogger(__name__)

LANDING_PAGE = """<html>
<head><title>Jenkins Exporter</title></head>
<body>
<h1>Jenkins Exporter</h1>
<p><a href='{metrics_path}'>Metrics</a></p>
</body>
</html>
"""


def create_app(registry: CollectorRegistry, metrics_path: str = DEFAULT_METRICS_PATH) -> FastAPI:
    """Build the HTTP app exposing `registry` on `metrics_path`."""
    app = FastAPI(title="Jenkins Exporter", version=__version__)

    async def metrics() -> Response:
        # generate_latest triggers the scan; keep it off the event loop
        body = await run_in_threadpool(generate_latest, registry)
        return Response(content=body, media_type=CONTENT_TYPE_LATEST)

    async def index() -> HTMLResponse:
        return HTMLResponse(LANDING_PAGE.format(metrics_path=metrics_path))

    app.add_api_route(metrics_path, metrics, methods=["GET"], include_in_schema=False)
    app.add_api_route("/", index, methods=["GET"], include_in_schema=False)
    return app


def build_registry(settings: ExporterSettings) -> CollectorRegistry:
    """Registry with the Jenkins collector and a constant build-info metric."""
    registry = CollectorRegistry()
    registry.register(JenkinsCollector(settings))

    build_info = Info(
        "jenkins_exporter_build",
        "Version of the running jenkins exporter",
        registry=registry,
    )
    build_info.info({"version": __version__, "python_version": platform.python_version()})
    return registry


def serve(settings: ExporterSettings) -> None:
    """Run the exporter until interrupted."""
    import uvicorn

    logger.info(
        "Starting jenkins exporter %s (python %s, %s)",
        __version__, platform.python_version(), platform.python_implementation(),
    )
    host, port = settings.host_port
    app = create_app(build_registry(settings), settings.metrics_path)

    logger.info("Listening on %s:%d", host, port)
    uvicorn.run(app, host=host, port=port, log_level=settings.log_level.lower())
