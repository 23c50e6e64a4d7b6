import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

ENV_API_URL = "STOREDESK_API_URL"
ENV_DATA_DIR = "STOREDESK_DATA_DIR"
ENV_LOG_LEVEL = "STOREDESK_LOG_LEVEL"
ENV_CONFIG_PATH = "STOREDESK_CONFIG"

DEFAULT_DATA_DIR = Path.home() / ".storedesk"


class ClientSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    api_url: str | None = None
    data_dir: Path | None = DEFAULT_DATA_DIR
    token_key: str = "token"
    # No client-side timeout unless configured
    timeout_seconds: float | None = Field(default=None, gt=0)
    log_level: str = "INFO"


def load_settings(path: Path | None = None, environ: Mapping[str, str] | None = None) -> ClientSettings:
    """
    Load client settings.

    Order: defaults, then the YAML file (if given or named by STOREDESK_CONFIG),
    then environment overrides.
    Raises FileNotFoundError if an explicitly given file is missing.
    Raises ValueError if the file is not valid YAML or fails validation.
    """
    env = os.environ if environ is None else environ

    if path is None and env.get(ENV_CONFIG_PATH):
        path = Path(env[ENV_CONFIG_PATH])

    data: dict[str, Any] = {}
    if path is not None:
        data = _read_yaml(path)

    if env.get(ENV_API_URL):
        data["api_url"] = env[ENV_API_URL]
    if env.get(ENV_DATA_DIR):
        data["data_dir"] = env[ENV_DATA_DIR]
    if env.get(ENV_LOG_LEVEL):
        data["log_level"] = env[ENV_LOG_LEVEL]

    try:
        settings = ClientSettings.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Settings validation failed:\n{e}") from e

    if not settings.api_url:
        logger.warning(f"{ENV_API_URL} is not set; network calls will fail until it is configured")
    return settings


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found at: {path}")

    with open(path) as f:
        content = f.read()

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in settings file: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Settings file must contain a mapping, got {type(data).__name__}")
    return data
