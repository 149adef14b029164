"""Docstring for monitor_agent.models.

This models module holds the pydantic classes used for data validation:
the agent's own config file, the two downstream documents and the request bodies.
"""
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from monitor_agent.constants import DEFAULT_RELOAD_TIMEOUT


class AgentConfig(BaseModel):
    """Where a downstream agent keeps its config and how to reload it."""
    config_path: Path = Field(alias="configPath")
    reload_endpoint: str = Field(alias="reloadEndpoint")
    reload_timeout: float = Field(DEFAULT_RELOAD_TIMEOUT, alias="reloadTimeout", gt=0)


class Config(BaseModel):
    """BaseModel for the monitor-agent config file."""
    prometheus_agent: AgentConfig = Field(alias="prometheusAgent")
    blackbox_agent: AgentConfig = Field(alias="blackboxAgent")


class StaticConfig(BaseModel):
    """Configuration for static scrape targets."""
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    targets: List[str] = []
    labels: Optional[Dict[str, Any]] = None


class RelabelConfig(BaseModel):
    """A single relabeling rule."""
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    source_labels: Optional[List[str]] = None
    target_label: Optional[str] = None
    replacement: Optional[str] = None


class ScrapeJob(BaseModel):
    """Represents a single scrape job configuration.

    Jobs that were not created by this service carry arbitrary Prometheus keys;
    those are kept as extras and written back untouched.
    """
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    job_name: str
    metrics_path: Optional[str] = None
    params: Optional[Dict[str, List[str]]] = None  # e.g., {"module": ["http_2xx"]}
    static_configs: Optional[List[StaticConfig]] = None
    relabel_configs: Optional[List[RelabelConfig]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Return the on-disk form, with only the keys that were set."""
        return self.model_dump(exclude_unset=True)


class PrometheusConfig(BaseModel):
    """The part of a Prometheus config file this service owns."""
    model_config = ConfigDict(extra="ignore")

    scrape_configs: List[ScrapeJob] = []

    @field_validator("scrape_configs", mode="before")
    @classmethod
    def null_means_empty(cls, v):
        """An empty `scrape_configs:` key is parsed by YAML as None."""
        return [] if v is None else v


class BlackboxConfig(BaseModel):
    """BaseModel for a Blackbox Exporter config file."""
    model_config = ConfigDict(extra="ignore")

    modules: Dict[str, Any]


class BasicAuth(BaseModel):
    username: str = ""
    password: str = ""


class ProberRequest(BaseModel):
    """Body of PUT /prober."""
    model_config = ConfigDict(populate_by_name=True)

    unique_name: str = Field("", alias="uniqueName")
    method: str = ""
    basic_auth: BasicAuth = Field(default_factory=BasicAuth, alias="basicAuth")
    body: str = ""
    headers: Dict[str, str] = {}


class ScrapeJobRequest(BaseModel):
    """Body of PUT /scrapeJob."""
    model_config = ConfigDict(populate_by_name=True)

    unique_name: str = Field("", alias="uniqueName")
    target_urls: List[str] = Field(default_factory=list, alias="targetUrls")
    prober: str = ""
    env: str = ""
    system_alert_id: str = Field("", alias="systemAlertId")
