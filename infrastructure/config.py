"""
GENEALOGY CONFIG - TOML settings for the command-line surface

The engine functions never read configuration: every query gets its graph
and options as arguments. This module only feeds defaults to main.py
(default output shape, family depth, edge table column names, logging).

Resolution order for the file:
1. explicit path argument
2. GENEALOGY_CONFIG environment variable
3. config/genealogy.toml next to the project
"""
import os
import tomllib
import warnings
from pathlib import Path
from typing import Optional, Union

import msgspec

CONFIG_ENV_VAR = "GENEALOGY_CONFIG"
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "genealogy.toml"


class GenealogyConfig(msgspec.Struct, frozen=True, kw_only=True):
    """Settings of the [genealogy] table."""
    default_output: str = "codes_only"
    family_max_depth: int = 1
    from_column: str = "from"
    to_column: str = "to"
    log_level: str = "WARNING"
    query_log_path: Optional[str] = None
    query_buffer_size: int = 1000


def resolve_config_path(path: Optional[Union[str, Path]] = None) -> Path:
    if path is not None:
        return Path(path)
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_PATH


def load_config(path: Optional[Union[str, Path]] = None) -> GenealogyConfig:
    """
    Load the [genealogy] table of a TOML file.

    A missing or unreadable file falls back to defaults with a warning.

    Raises:
        msgspec.ValidationError: If the table holds values of the wrong type
    """
    config_path = resolve_config_path(path)
    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        warnings.warn(f"Failed to load config from {config_path}, using defaults: {e}")
        return GenealogyConfig()

    return msgspec.convert(data.get("genealogy", {}), type=GenealogyConfig)
