"""Agent constants, for better testability."""

from pathlib import Path
from typing import Final

DEFAULT_CONFIG_PATH: Final[Path] = Path("/etc/monitor-agent/config.yml")
DEFAULT_HOST: Final[str] = "0.0.0.0"
DEFAULT_PORT: Final[int] = 8080
DEFAULT_RELOAD_TIMEOUT: Final[float] = 10.0

# Scrape jobs are redirected through the local Blackbox Exporter.
PROBE_METRICS_PATH: Final[str] = "/probe"
BLACKBOX_EXPORTER_ADDRESS: Final[str] = "127.0.0.1:9115"

SCRAPE_CONFIGS_KEY: Final[str] = "scrape_configs"
MODULES_KEY: Final[str] = "modules"

SUCCESS_CODE: Final[int] = 0
INVALID_PARAM_CODE: Final[int] = -998
SYSTEM_ERROR_CODE: Final[int] = -999
