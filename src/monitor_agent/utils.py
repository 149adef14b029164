"""Docstring for monitor_agent.utils.

This utils module holds the file helpers shared by the config loader and the document store.
"""
import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import Any, Dict

import yaml

from monitor_agent.models import Config

logger = logging.getLogger(__name__)


def file_contents(path: Path) -> str | None:
    """Return the content of a file at path `path`."""
    if not path.exists():
        return None
    return path.read_text(encoding="utf-8")


def read_yaml(path: Path) -> Dict[str, Any]:
    """Parse the YAML mapping stored at `path`.

    An empty file is read as an empty mapping.

    Raises:
        FileNotFoundError: if `path` does not exist.
        yaml.YAMLError: if the content is not valid YAML.
        ValueError: if the top-level node is not a mapping.
    """
    content = file_contents(path)
    if content is None:
        raise FileNotFoundError(f"No such file: {path}")
    data = yaml.safe_load(content)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at the top of {path}, got {type(data).__name__}")
    return data


def write_yaml(path: Path, data: Dict[str, Any]) -> None:
    """Replace `path` with `data`, block style and 2-space indentation.

    Key order is kept as is so that a rewrite only shows the edited entries in a diff.
    The content goes to a temporary file next to `path` which is then renamed over it,
    so a failed write leaves the previous file in place.
    """
    content = yaml.safe_dump(
        data,
        indent=2,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
    )
    # Keep the mode of the file being replaced; new files get 0664.
    mode = stat.S_IMODE(path.stat().st_mode) if path.exists() else 0o664

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as tmp:
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def load_config(path: Path) -> Config:
    """Read and validate the monitor-agent config file."""
    try:
        provided_config = read_yaml(path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error("Failed to load the configuration at %s: %s", path, e)
        raise

    # Now we validate the config with the Config BaseModel.
    config = Config(**provided_config)
    logger.info(f"Loaded config from {path}")
    return config
