"""Runtime settings.

Loaded from ``config/routeweave.yaml`` inside the package (installed as
package data), then overridden by environment variables (a local ``.env``
is read first):

    ROUTEWEAVE_MAX_WORKERS        per-file worker pool size
    ROUTEWEAVE_MAX_FILE_SIZE_KB   files above this pass through unchanged
    ROUTEWEAVE_LOG_LEVEL          CLI log level
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

load_dotenv()

logger = logging.getLogger(__name__)

CONFIG_PATH = Path(__file__).parent / "config" / "routeweave.yaml"

_ENV_OVERRIDES = {
    "ROUTEWEAVE_MAX_WORKERS": "max_workers",
    "ROUTEWEAVE_MAX_FILE_SIZE_KB": "max_file_size_kb",
    "ROUTEWEAVE_LOG_LEVEL": "log_level",
}


class RouteweaveSettings(BaseModel):
    max_workers: int = Field(4, ge=1, description="Worker threads for per-file rewrites")
    max_file_size_kb: int = Field(512, ge=1, description="Larger script files are passed through")
    log_level: str = Field("INFO", description="Default CLI log level")
    skip_directories: List[str] = Field(
        default_factory=list,
        description="Directories ignored during ingestion, in addition to the built-in list",
    )

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return level


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.debug(f"{path.name} not found at {path}, using defaults")
        return {}
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        logger.error(f"Error loading {path.name}: {e}")
        return {}
    if not isinstance(data, dict):
        logger.error(f"{path.name} must contain a mapping, got {type(data).__name__}")
        return {}
    return data.get("routeweave", data)


def load_settings(path: Optional[Path] = None) -> RouteweaveSettings:
    """Build settings from the YAML file and environment overrides.

    Invalid values are logged and replaced by defaults.
    """
    values = _load_yaml(path or CONFIG_PATH)
    for env_name, field_name in _ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            values[field_name] = value

    try:
        return RouteweaveSettings(**values)
    except ValidationError as e:
        logger.error(f"Invalid routeweave settings, using defaults: {e}")
        return RouteweaveSettings()


@lru_cache(maxsize=1)
def get_settings() -> RouteweaveSettings:
    return load_settings()
