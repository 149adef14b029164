"""In-memory copies of the Prometheus and Blackbox Exporter config files.

Each document is loaded once at startup and stays the single source of truth
until the process exits. Only one subtree of each document is owned here
(`scrape_configs` and `modules`); every other key is written back as it was read.
"""

import abc
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List

import yaml
from pydantic import ValidationError

from monitor_agent.constants import MODULES_KEY, SCRAPE_CONFIGS_KEY
from monitor_agent.models import BlackboxConfig, Config, PrometheusConfig, ScrapeJob
from monitor_agent.utils import read_yaml, write_yaml

logger = logging.getLogger(__name__)


class DocumentError(Exception):
    """Raised when a document cannot be read or does not have the expected shape."""


class PersistenceError(Exception):
    """Raised when a document cannot be written back to disk."""


def _read_document(path: Path) -> Dict[str, Any]:
    try:
        return read_yaml(path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise DocumentError(f"Cannot read {path}: {e}") from e


class MonitoringDocument(abc.ABC):
    """A parsed config file, guarded by a lock held for the whole edit-persist-reload cycle."""

    owned_key: str

    def __init__(self, path: Path, tree: Dict[str, Any]):
        self.path = path
        self.lock = threading.Lock()
        self._tree = tree

    @abc.abstractmethod
    def _owned_value(self) -> Any:
        """Return the owned subtree in its on-disk form."""

    def to_dict(self) -> Dict[str, Any]:
        """Return the full document with the owned subtree in its current state."""
        tree = dict(self._tree)
        tree[self.owned_key] = self._owned_value()
        return tree

    def _persist(self, tree: Dict[str, Any]) -> None:
        try:
            write_yaml(self.path, tree)
        except (OSError, UnicodeError, yaml.YAMLError) as e:
            logger.error("Failed to write %s: %s", self.path, e)
            raise PersistenceError(f"Cannot write {self.path}: {e}") from e
        logger.info(f"Wrote {self.path}")


class ScrapeDocument(MonitoringDocument):
    """A Prometheus config file whose `scrape_configs` list is edited by this service."""

    owned_key = SCRAPE_CONFIGS_KEY

    def __init__(self, path: Path, tree: Dict[str, Any], jobs: List[ScrapeJob]):
        super().__init__(path, tree)
        self._jobs = jobs

    @classmethod
    def load(cls, path: Path) -> "ScrapeDocument":
        tree = _read_document(path)
        try:
            jobs = PrometheusConfig.model_validate(tree).scrape_configs
        except ValidationError as e:
            raise DocumentError(f"Invalid scrape configs in {path}: {e}") from e
        logger.info("Loaded %d scrape jobs from %s", len(jobs), path)
        return cls(path, tree, jobs)

    @property
    def jobs(self) -> List[ScrapeJob]:
        return list(self._jobs)

    def _owned_value(self) -> List[Dict[str, Any]]:
        return [job.to_dict() for job in self._jobs]

    def save(self, jobs: List[ScrapeJob]) -> None:
        """Write the document with `jobs` as its scrape configs, then keep them in memory.

        If the write fails the in-memory list is left as it was.
        """
        tree = dict(self._tree)
        tree[self.owned_key] = [job.to_dict() for job in jobs]
        self._persist(tree)
        self._jobs = list(jobs)


class ProbeDocument(MonitoringDocument):
    """A Blackbox Exporter config file whose `modules` map is edited by this service."""

    owned_key = MODULES_KEY

    @classmethod
    def load(cls, path: Path) -> "ProbeDocument":
        tree = _read_document(path)
        try:
            BlackboxConfig.model_validate(tree)
        except ValidationError as e:
            raise DocumentError(f"Invalid probe modules in {path}: {e}") from e
        logger.info("Loaded %d probe modules from %s", len(tree[MODULES_KEY]), path)
        return cls(path, tree)

    @property
    def modules(self) -> Dict[str, Any]:
        return dict(self._tree[self.owned_key])

    def _owned_value(self) -> Dict[str, Any]:
        return dict(self._tree[self.owned_key])

    def save(self, modules: Dict[str, Any]) -> None:
        """Write the document with `modules` as its module map, then keep it in memory.

        If the write fails the in-memory map is left as it was.
        """
        tree = dict(self._tree)
        tree[self.owned_key] = dict(modules)
        self._persist(tree)
        self._tree = tree


class DocumentStore:
    """The two live documents, one per downstream agent."""

    def __init__(self, scrape: ScrapeDocument, probe: ProbeDocument):
        self.scrape = scrape
        self.probe = probe

    @classmethod
    def load(cls, config: Config) -> "DocumentStore":
        """Read both documents from the paths given in the agent config."""
        return cls(
            scrape=ScrapeDocument.load(config.prometheus_agent.config_path),
            probe=ProbeDocument.load(config.blackbox_agent.config_path),
        )
