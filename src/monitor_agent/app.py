#!/usr/bin/env python3
# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""A control-plane API registering probes and scrape jobs with Prometheus and Blackbox Exporter."""

import argparse
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import uvicorn
import yaml
from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from monitor_agent.constants import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_HOST,
    DEFAULT_PORT,
    INVALID_PARAM_CODE,
    SUCCESS_CODE,
    SYSTEM_ERROR_CODE,
)
from monitor_agent.models import ProberRequest, ScrapeJobRequest
from monitor_agent.probe_modules import delete_probe_module, upsert_probe_module
from monitor_agent.reloader import ReloadNotifier
from monitor_agent.scrape_jobs import delete_scrape_job, upsert_scrape_job
from monitor_agent.store import DocumentError, DocumentStore, PersistenceError
from monitor_agent.utils import load_config

logger = logging.getLogger(__name__)

SUCCESS: Dict[str, Any] = {"code": SUCCESS_CODE, "message": "Success"}


class ApiError(Exception):
    """An outcome to report to the caller as `{code, message}` with an HTTP status."""

    def __init__(self, status_code: int, code: int, message: str):
        self.status_code = status_code
        self.code = code
        self.message = message
        super().__init__(message)


def system_error() -> ApiError:
    # Details stay in the log; callers only learn that something went wrong.
    return ApiError(500, SYSTEM_ERROR_CODE, "System error")


def register_error_handlers(app: FastAPI) -> None:
    """Render every handled failure as the `{code, message}` body."""

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"code": exc.code, "message": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("Cannot parse request for %s %s: %s", request.method, request.url.path, exc.errors())
        return JSONResponse(
            status_code=400,
            content={"code": INVALID_PARAM_CODE, "message": "Invalid param"},
        )


def persist_and_reload(save: Callable[[], None], notifier: ReloadNotifier) -> Dict[str, Any]:
    """Write the edited document, then ask its agent to pick it up.

    A failed write skips the reload; the agent keeps running the previous config.
    """
    try:
        save()
    except PersistenceError as e:
        logger.error(f"Cannot persist {notifier.name} config, skipping reload: {e}")
        raise system_error() from e

    result = notifier.reload()
    if not result.succeeded:
        logger.error(
            "Cannot reload %s config (%s): %s", notifier.name, result.outcome.value, result.detail
        )
        raise system_error()
    return SUCCESS


def create_app(
    store: DocumentStore,
    prometheus: ReloadNotifier,
    blackbox: ReloadNotifier,
) -> FastAPI:
    """Create the API over `store`, reloading the agents through the given notifiers."""
    app = FastAPI(title="monitor-agent")
    app.state.store = store
    register_error_handlers(app)

    @app.put("/prober")
    def upsert_prober(prober: ProberRequest) -> Dict[str, Any]:
        logger.info(f"Upsert prober {prober.unique_name}")
        document = store.probe
        with document.lock:
            modules = upsert_probe_module(prober, document.modules)
            return persist_and_reload(lambda: document.save(modules), blackbox)

    @app.delete("/prober")
    def delete_prober(unique_name: str = Query("", alias="uniqueName")) -> Dict[str, Any]:
        logger.info(f"Delete prober {unique_name}")
        document = store.probe
        with document.lock:
            modules, found = delete_probe_module(unique_name, document.modules)
            if not found:
                return SUCCESS
            return persist_and_reload(lambda: document.save(modules), blackbox)

    @app.put("/scrapeJob")
    def upsert_scrape(job: ScrapeJobRequest) -> Dict[str, Any]:
        logger.info(f"Upsert scrape config {job.unique_name}")
        document = store.scrape
        with document.lock:
            jobs = upsert_scrape_job(job, document.jobs)
            return persist_and_reload(lambda: document.save(jobs), prometheus)

    @app.delete("/scrapeJob")
    def delete_scrape(unique_name: str = Query("", alias="uniqueName")) -> Dict[str, Any]:
        logger.info(f"Delete scrape config {unique_name}")
        document = store.scrape
        with document.lock:
            jobs, found = delete_scrape_job(unique_name, document.jobs)
            if not found:
                logger.info(f"No such scrape config {unique_name}")
                return SUCCESS
            return persist_and_reload(lambda: document.save(jobs), prometheus)

    return app


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Config file path")
    parser.add_argument("--host", default=DEFAULT_HOST, help="Address to listen on")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="Startup port")
    parser.add_argument("--log-level", default="INFO", help="Logging level, e.g. DEBUG or INFO")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    """Load the config and both agent documents, then serve the API."""
    args = parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
        store = DocumentStore.load(config)
    except (OSError, ValueError, yaml.YAMLError, DocumentError) as e:
        logger.error("Startup failed: %s", e)
        raise SystemExit(1) from e

    app = create_app(
        store,
        prometheus=ReloadNotifier.from_config("prometheus", config.prometheus_agent),
        blackbox=ReloadNotifier.from_config("blackbox", config.blackbox_agent),
    )
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":  # pragma: nocover
    main()
