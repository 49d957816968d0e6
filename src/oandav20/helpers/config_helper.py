"""Configuration loading.

The config is a JSON file::

    {
        "log_level": "INFO",
        "log_path": "logs/oanda_v20.log",
        "exchange": {
            "type": "oanda.v20",
            "name": "oanda-main",
            "access_key": "101-004-1234567-001",
            "secret_key": "<token>",
            "trader_id": "trader-1",
            "host": "https://api-fxtrade.oanda.com",
            "timeout": 10,
            "limit": 10
        }
    }
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Union

from oandav20.core.models import DEFAULT_HOST, Option
from oandav20.helpers.convert import to_float


def load_config(config_path: Union[str, Path]) -> dict:
    """Load configuration from JSON file.

    Args:
        config_path: Path to config JSON file

    Returns:
        Dictionary with configuration parameters
    """
    with open(config_path, 'r') as f:
        return json.load(f)


def load_option(config: Union[str, Path, dict]) -> Option:
    """Build the exchange ``Option`` from a config dict or JSON file path.

    Raises:
        ValueError: If the ``exchange`` section lacks credentials
    """
    if not isinstance(config, dict):
        config = load_config(config)
    section = config.get("exchange", {})

    for key in ("access_key", "secret_key"):
        if not section.get(key):
            raise ValueError(f"exchange.{key} is missing from the config")

    return Option(
        access_key=str(section["access_key"]),
        secret_key=str(section["secret_key"]),
        trader_id=str(section.get("trader_id", "")),
        type=str(section.get("type", "oanda.v20")),
        name=str(section.get("name", "oanda.v20")),
        host=str(section.get("host", DEFAULT_HOST)),
        timeout=to_float(section.get("timeout"), default=10.0),
        limit=to_float(section.get("limit"), default=10.0),
    )
