"""Reload triggers for the downstream agents.

Both Prometheus and the Blackbox Exporter re-read their config when they receive
an empty POST on their reload endpoint.
"""

import enum
import logging
from dataclasses import dataclass

import requests

from monitor_agent.constants import DEFAULT_RELOAD_TIMEOUT
from monitor_agent.models import AgentConfig

logger = logging.getLogger(__name__)


class ReloadOutcome(enum.Enum):
    """How a reload attempt ended."""

    SUCCEEDED = "succeeded"
    # The endpoint could not be reached, or did not answer in time.
    TRANSPORT_ERROR = "transport_error"
    # The agent answered, but with a non-200 status.
    REJECTED = "rejected"


@dataclass(frozen=True)
class ReloadResult:
    outcome: ReloadOutcome
    detail: str = ""

    @property
    def succeeded(self) -> bool:
        return self.outcome is ReloadOutcome.SUCCEEDED


class ReloadNotifier:
    """Ask one downstream agent to reload its configuration."""

    def __init__(
        self,
        name: str,
        endpoint: str,
        timeout: float = DEFAULT_RELOAD_TIMEOUT,
        session: requests.Session | None = None,
    ):
        self.name = name
        self.endpoint = endpoint
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, name: str, agent: AgentConfig) -> "ReloadNotifier":
        return cls(name, agent.reload_endpoint, timeout=agent.reload_timeout)

    def reload(self) -> ReloadResult:
        """Trigger the reload and classify the answer. Never retried."""
        try:
            response = self.session.post(
                self.endpoint,
                data="",
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Failed to trigger reloading of {self.name} config: {e}")
            return ReloadResult(ReloadOutcome.TRANSPORT_ERROR, str(e))

        logger.info("%s reload answered with HTTP %s", self.name, response.status_code)
        if response.status_code == 200:
            logger.info(f"Successful to reload {self.name} config")
            return ReloadResult(ReloadOutcome.SUCCEEDED)

        body = response.text
        logger.error(f"{self.name} rejected the config reload: {body}")
        return ReloadResult(ReloadOutcome.REJECTED, body)
