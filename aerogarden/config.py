"""Configuration of one Aerogarden light.

The host hands over its plugin config as a dict (original key names
`macAddress` / `userID`). For standalone use the same values can come from
the environment or a .env file.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import (BaseModel, ConfigDict, Field, ValidationError,
                      field_validator)

from .AGController.AGExceptions import AerogardenConfigError
from .const import (ACK_WINDOW, API_BASE_URL, DEFAULT_NAME, DOUBLE_STEP_DELAY,
                    POLL_INTERVAL, REQUEST_TIMEOUT)

_LOGGER = logging.getLogger(__name__)

ENV_PREFIX = "AEROGARDEN_"


class AerogardenConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    mac_address: str = Field(alias="macAddress")
    user_id: str = Field(alias="userID")
    name: str = DEFAULT_NAME
    base_url: str = API_BASE_URL
    request_timeout: float = Field(default=REQUEST_TIMEOUT, gt=0)
    ack_window: float = Field(default=ACK_WINDOW, gt=0)
    double_step_delay: float = Field(default=DOUBLE_STEP_DELAY, ge=0)
    poll_interval: float = Field(default=POLL_INTERVAL, gt=0)

    @field_validator("mac_address", "user_id")
    @classmethod
    def _required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("name")
    @classmethod
    def _name(cls, value: str) -> str:
        return value.strip() or DEFAULT_NAME

    @field_validator("base_url")
    @classmethod
    def _base_url(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError("must start with http:// or https://")
        return value.rstrip("/")


def from_dict(data: Dict[str, Any]) -> AerogardenConfig:
    """Validate a host supplied config dict."""
    try:
        return AerogardenConfig.model_validate(data)
    except ValidationError as e:
        raise AerogardenConfigError(f"Invalid Aerogarden config: {e}") from e


def from_env(env_file: Optional[Path] = None) -> AerogardenConfig:
    """Build the config from AEROGARDEN_* variables, loading a .env file first."""
    if env_file is not None and Path(env_file).exists():
        load_dotenv(env_file)
        _LOGGER.debug(f"Loaded environment from {env_file}")

    keys = {
        "macAddress": "MAC_ADDRESS",
        "userID": "USER_ID",
        "name": "NAME",
        "base_url": "BASE_URL",
        "request_timeout": "REQUEST_TIMEOUT",
        "ack_window": "ACK_WINDOW",
        "double_step_delay": "DOUBLE_STEP_DELAY",
        "poll_interval": "POLL_INTERVAL",
    }
    data = {
        field: os.environ[f"{ENV_PREFIX}{suffix}"]
        for field, suffix in keys.items()
        if os.environ.get(f"{ENV_PREFIX}{suffix}") is not None
    }
    for required in ("macAddress", "userID"):
        data.setdefault(required, "")
    return from_dict(data)
