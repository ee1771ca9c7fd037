"""
GENEALOGY INFRASTRUCTURE - Ambient Modules

This package contains the components around the engine:
- config: TOML settings decoded into a msgspec struct
- logger: logging setup and the query event log
"""

from infrastructure.config import GenealogyConfig, load_config
from infrastructure.logger import (
    LoggerConfig,
    QueryEvent,
    QueryLogger,
    configure_logging,
    read_query_log,
)

__all__ = [
    "GenealogyConfig",
    "load_config",
    "LoggerConfig",
    "QueryEvent",
    "QueryLogger",
    "configure_logging",
    "read_query_log",
]
