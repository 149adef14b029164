# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.


import threading

import pytest
from fastapi.testclient import TestClient

from monitor_agent.app import create_app
from monitor_agent.reloader import ReloadOutcome, ReloadResult
from monitor_agent.store import DocumentStore, ProbeDocument, ScrapeDocument

PROMETHEUS_CONFIG = """
global:
  scrape_interval: 15s
scrape_configs:
  - job_name: prometheus
    scrape_interval: 5s
    static_configs:
      - targets:
          - localhost:9090
rule_files:
  - /etc/prometheus/rules.yml
"""

BLACKBOX_CONFIG = """
modules:
  http_2xx:
    prober: http
    timeout: 10s
  icmp:
    prober: icmp
    timeout: 10s
    icmp:
      preferred_ip_protocol: "ip4"
"""


class FakeNotifier:
    """Stands in for a ReloadNotifier; answers with `result` and counts calls.

    When `release` is set to an Event, each reload signals `entered` and then
    waits for `release`, keeping the document lock held in the meantime.
    """

    def __init__(self, name: str):
        self.name = name
        self.result = ReloadResult(ReloadOutcome.SUCCEEDED)
        self.calls = 0
        self.entered = threading.Event()
        self.release: threading.Event | None = None

    def reload(self) -> ReloadResult:
        self.calls += 1
        self.entered.set()
        if self.release is not None:
            self.release.wait(timeout=10)
        return self.result


@pytest.fixture
def prometheus_config():
    return PROMETHEUS_CONFIG


@pytest.fixture
def blackbox_config():
    return BLACKBOX_CONFIG


@pytest.fixture
def prometheus_path(tmp_path, prometheus_config):
    path = tmp_path / "prometheus.yml"
    path.write_text(prometheus_config)
    return path


@pytest.fixture
def blackbox_path(tmp_path, blackbox_config):
    path = tmp_path / "blackbox.yml"
    path.write_text(blackbox_config)
    return path


@pytest.fixture
def store(prometheus_path, blackbox_path):
    return DocumentStore(
        scrape=ScrapeDocument.load(prometheus_path),
        probe=ProbeDocument.load(blackbox_path),
    )


@pytest.fixture
def prometheus_notifier():
    return FakeNotifier("prometheus")


@pytest.fixture
def blackbox_notifier():
    return FakeNotifier("blackbox")


@pytest.fixture
def client(store, prometheus_notifier, blackbox_notifier):
    return TestClient(create_app(store, prometheus_notifier, blackbox_notifier))
