"""Upsert and removal of HTTP probe modules in a Blackbox Exporter module map."""

import logging
from typing import Any, Dict, Tuple

from monitor_agent.models import ProberRequest

logger = logging.getLogger(__name__)


def build_probe_module(request: ProberRequest) -> Dict[str, Any]:
    """Generate the Blackbox Exporter module for an HTTP probe.

    Optional parts are only added when the caller supplied them. Basic auth
    needs both a username and a password, otherwise it is left out.
    Certificate verification is always disabled.
    """
    http_config: Dict[str, Any] = {"method": request.method}

    if request.headers:
        http_config["headers"] = dict(request.headers)

    if request.body:
        http_config["body"] = request.body

    basic_auth = request.basic_auth
    if basic_auth.username and basic_auth.password:
        http_config["basic_auth"] = {
            "username": basic_auth.username,
            "password": basic_auth.password,
        }

    http_config["tls_config"] = {"insecure_skip_verify": True}

    return {
        "prober": "http",
        "http": http_config,
    }


def upsert_probe_module(request: ProberRequest, modules: Dict[str, Any]) -> Dict[str, Any]:
    """Set the module named `request.unique_name`, discarding any previous definition."""
    updated = dict(modules)
    updated[request.unique_name] = build_probe_module(request)
    return updated


def delete_probe_module(name: str, modules: Dict[str, Any]) -> Tuple[Dict[str, Any], bool]:
    """Remove the module called `name`; return the new map and whether it existed."""
    if name not in modules:
        logger.info("Probe module %s is not defined", name)
        return modules, False

    updated = dict(modules)
    del updated[name]
    return updated, True
