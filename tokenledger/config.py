"""
tokenledger.config — runtime configuration for the ledger CLI and embedders.

Configuration is read from environment variables with safe defaults so a local
run works out of the box against an in-memory store.

Environment variables (all optional):
  TOKENLEDGER_DB           -> store URI (default: memory://)
                              e.g. "sqlite:///ledger.db", "ledger.db", "memory://"
  TOKENLEDGER_LOG_LEVEL    -> DEBUG|INFO|WARNING|ERROR (default: INFO)
  TOKENLEDGER_LOG_FORMAT   -> json|text (default: auto; JSON when not a TTY)
  TOKENLEDGER_LOG_FILE     -> optional path for a JSON log tee

Programmatic usage:
    from tokenledger.config import get_config
    cfg = get_config()
    kv = open_kv(cfg.db_uri)

The ledger operations themselves take no configuration: they receive a store
handle and typed arguments. This module only feeds the outer surfaces.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

from .errors import ConfigError

DEFAULT_DB_URI = "memory://"

_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET")
_FORMATS = ("json", "text")


@dataclass(frozen=True)
class LedgerConfig:
    db_uri: str = DEFAULT_DB_URI
    log_level: str = "INFO"
    log_format: Optional[str] = None  # None → decide from TTY
    log_file: Optional[Path] = None

    def to_dict(self) -> Dict[str, object]:
        d = asdict(self)
        d["log_file"] = str(self.log_file) if self.log_file else None
        return d


def _validate(cfg: LedgerConfig) -> LedgerConfig:
    if not cfg.db_uri.strip():
        raise ConfigError("db_uri must be non-empty")
    if cfg.log_level not in _LEVELS:
        raise ConfigError("unknown log level", log_level=cfg.log_level)
    if cfg.log_format is not None and cfg.log_format not in _FORMATS:
        raise ConfigError("log format must be json or text", log_format=cfg.log_format)
    return cfg


def load_config(
    env: Optional[Mapping[str, str]] = None,
    *,
    overrides: Optional[Mapping[str, Union[str, Path, None]]] = None,
) -> LedgerConfig:
    """
    Build a LedgerConfig from the environment and optional overrides.

    Overrides win over the environment; keys: 'db_uri', 'log_level',
    'log_format', 'log_file'. A None override is ignored.
    """
    env = os.environ if env is None else env
    ov = {k: v for k, v in dict(overrides or {}).items() if v is not None}

    db_uri = str(ov.get("db_uri", env.get("TOKENLEDGER_DB", DEFAULT_DB_URI)))
    level = str(ov.get("log_level", env.get("TOKENLEDGER_LOG_LEVEL", "INFO"))).strip().upper()

    fmt_raw = ov.get("log_format", env.get("TOKENLEDGER_LOG_FORMAT"))
    fmt = str(fmt_raw).strip().lower() if fmt_raw else None

    file_raw = ov.get("log_file", env.get("TOKENLEDGER_LOG_FILE"))
    log_file = Path(str(file_raw)).expanduser() if file_raw else None

    return _validate(
        LedgerConfig(db_uri=db_uri.strip(), log_level=level, log_format=fmt, log_file=log_file)
    )


@lru_cache(maxsize=1)
def get_config() -> LedgerConfig:
    """Cached process-wide config (environment only)."""
    return load_config()


def summary(cfg: Optional[LedgerConfig] = None) -> str:
    """One-line description of the active knobs."""
    cfg = cfg or get_config()
    return (
        "ledger{"
        f"db={cfg.db_uri}, level={cfg.log_level}, "
        f"format={cfg.log_format or 'auto'}, file={cfg.log_file or '-'}"
        "}"
    )


__all__ = ["DEFAULT_DB_URI", "LedgerConfig", "load_config", "get_config", "summary"]
