import os
from unittest.mock import patch

import pytest
import yaml

from monitor_agent.models import ProberRequest, ScrapeJob
from monitor_agent.probe_modules import upsert_probe_module
from monitor_agent.store import (
    DocumentError,
    MonitoringDocument,
    PersistenceError,
    ProbeDocument,
    ScrapeDocument,
)

PROBE_YAML_WITHOUT_MODULES = """
http_2xx:
  prober: http
"""

INVALID_YAML = """
modules:
something
    somethingelse:
"""

SCRAPE_JOB_WITHOUT_NAME = """
scrape_configs:
  - static_configs:
      - targets: [localhost:9090]
"""


def test_load_scrape_document(store):
    assert [job.job_name for job in store.scrape.jobs] == ["prometheus"]
    assert store.scrape.jobs[0].scrape_interval == "5s"


@pytest.mark.parametrize("prometheus_config", ["global: {}\nscrape_configs:\n", "global: {}\n", ""])
def test_missing_scrape_configs_means_no_jobs(store):
    assert store.scrape.jobs == []


def test_load_probe_document(store):
    assert list(store.probe.modules) == ["http_2xx", "icmp"]


def test_save_scrape_document_keeps_other_keys(store, prometheus_path, prometheus_config):
    # GIVEN a Prometheus config with keys besides scrape_configs.
    original = yaml.safe_load(prometheus_config)
    # WHEN a job is added and the document saved.
    store.scrape.save([*store.scrape.jobs, ScrapeJob(job_name="svc-a", metrics_path="/probe")])
    # THEN untouched parts read back the same, in the same order.
    written = yaml.safe_load(prometheus_path.read_text())
    assert list(written) == ["global", "scrape_configs", "rule_files"]
    assert written["global"] == original["global"]
    assert written["rule_files"] == original["rule_files"]
    assert written["scrape_configs"][0] == original["scrape_configs"][0]
    assert written["scrape_configs"][1] == {"job_name": "svc-a", "metrics_path": "/probe"}


def test_save_uses_two_space_indentation(store, prometheus_path):
    store.scrape.save(store.scrape.jobs)

    assert "global:\n  scrape_interval: 15s\n" in prometheus_path.read_text()


def test_save_probe_document(store, blackbox_path, blackbox_config):
    modules = upsert_probe_module(ProberRequest(uniqueName="api", method="GET"), store.probe.modules)

    store.probe.save(modules)

    written = yaml.safe_load(blackbox_path.read_text())
    original = yaml.safe_load(blackbox_config)
    assert list(written["modules"]) == ["http_2xx", "icmp", "api"]
    assert written["modules"]["icmp"] == original["modules"]["icmp"]
    assert store.probe.to_dict() == written


def test_failed_write_keeps_previous_state(store, prometheus_path):
    before = prometheus_path.read_text()

    with patch("monitor_agent.store.write_yaml", side_effect=PermissionError("read-only file system")):
        with pytest.raises(PersistenceError):
            store.scrape.save([])

    assert [job.job_name for job in store.scrape.jobs] == ["prometheus"]
    assert prometheus_path.read_text() == before


def test_write_to_missing_directory_raises(tmp_path, store):
    document = ProbeDocument(tmp_path / "missing" / "blackbox.yml", {"modules": {}})

    with pytest.raises(PersistenceError):
        document.save({"api": {"prober": "http"}})
    assert document.modules == {}


@pytest.mark.parametrize("content", [PROBE_YAML_WITHOUT_MODULES, INVALID_YAML, "- a list\n"])
def test_invalid_probe_document(tmp_path, content):
    path = tmp_path / "blackbox.yml"
    path.write_text(content)

    with pytest.raises(DocumentError):
        ProbeDocument.load(path)


@pytest.mark.parametrize("content", [SCRAPE_JOB_WITHOUT_NAME, INVALID_YAML])
def test_invalid_scrape_document(tmp_path, content):
    path = tmp_path / "prometheus.yml"
    path.write_text(content)

    with pytest.raises(DocumentError):
        ScrapeDocument.load(path)


def test_missing_document(tmp_path):
    with pytest.raises(DocumentError):
        ScrapeDocument.load(tmp_path / "nope.yml")


NUMERIC_SCRAPE_FIELDS = """
scrape_configs:
  - job_name: 2024
    static_configs:
      - targets: [localhost:9100]
    relabel_configs:
      - target_label: __address__
        replacement: 9115
"""


@pytest.mark.parametrize("prometheus_config", [NUMERIC_SCRAPE_FIELDS])
def test_numeric_scrape_fields_are_read_as_strings(store):
    job = store.scrape.jobs[0]

    assert job.job_name == "2024"
    assert job.relabel_configs[0].replacement == "9115"


def test_failed_write_leaves_original_bytes(tmp_path, store, prometheus_path):
    before = prometheus_path.read_bytes()

    with patch("monitor_agent.utils.os.replace", side_effect=OSError(28, "No space left on device")):
        with pytest.raises(PersistenceError):
            store.scrape.save([])

    assert prometheus_path.read_bytes() == before
    assert [job.job_name for job in store.scrape.jobs] == ["prometheus"]
    # The temporary file is cleaned up.
    assert sorted(path.name for path in tmp_path.iterdir()) == ["blackbox.yml", "prometheus.yml"]


def test_encoding_error_becomes_persistence_error(store, blackbox_path):
    before = blackbox_path.read_bytes()
    error = UnicodeEncodeError("ascii", "café", 3, 4, "ordinal not in range(128)")

    with patch("monitor_agent.store.write_yaml", side_effect=error):
        with pytest.raises(PersistenceError):
            store.probe.save({"api": {"prober": "http", "http": {"headers": {"X-Name": "café"}}}})

    assert blackbox_path.read_bytes() == before
    assert list(store.probe.modules) == ["http_2xx", "icmp"]


def test_save_writes_utf8(store, blackbox_path):
    store.probe.save({"api": {"prober": "http", "http": {"headers": {"X-Name": "café"}}}})

    assert "X-Name: café" in blackbox_path.read_bytes().decode("utf-8")
    assert ProbeDocument.load(blackbox_path).modules["api"]["http"]["headers"] == {"X-Name": "café"}


def test_save_keeps_file_mode(store, prometheus_path):
    os.chmod(prometheus_path, 0o640)

    store.scrape.save(store.scrape.jobs)

    assert prometheus_path.stat().st_mode & 0o777 == 0o640


def test_scrape_document_to_dict(store, prometheus_config):
    assert store.scrape.to_dict() == yaml.safe_load(prometheus_config)


def test_monitoring_document_is_abstract(tmp_path):
    with pytest.raises(TypeError):
        MonitoringDocument(tmp_path / "any.yml", {})
