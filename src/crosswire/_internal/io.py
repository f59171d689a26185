"""Configuration file I/O helpers (internal)."""

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Dict, Union

from crosswire.kernel.transform import ConfigLoadError

logger = logging.getLogger(__name__)


def load_raw_config(source: Union[str, Path, Mapping]) -> Dict[str, Any]:
    """Load raw graph configuration from a JSON file, or pass a mapping through.

    Raises:
        ConfigLoadError: If the file cannot be read, is not valid JSON, or
            does not contain a JSON object.
    """
    if isinstance(source, Mapping):
        return dict(source)

    path = Path(source)
    logger.debug("Loading config from %s", path)
    try:
        data = json.loads(path.read_bytes())
    except OSError as e:
        raise ConfigLoadError(f"Unable to read config file '{path}': {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigLoadError(f"Config file '{path}' is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigLoadError(f"Config file '{path}' must contain a JSON object, got {type(data).__name__}")
    return data
