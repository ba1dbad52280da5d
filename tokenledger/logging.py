"""
tokenledger.logging
-------------------

Structured logging on top of the stdlib `logging` package:

- JSON lines (machine ingestion) or one-line text (terminals)
- Context fields carried in a ContextVar: trace_id, op, caller, key
- `bind` / `unbind` / `trace_scope` helpers for per-invocation context
- Optional JSON file tee

Usage
-----
    from tokenledger import logging as tlog

    tlog.configure(json=False, level="DEBUG")
    log = tlog.get_logger(__name__)

    with tlog.trace_scope(op="TransferTokens"):
        log.info("transfer committed", extra={"amount": 5.0})
"""

from __future__ import annotations

import datetime as _dt
import io
import json
import logging
import os
import sys
import traceback
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple

_LOG_CONTEXT: ContextVar[Dict[str, Any]] = ContextVar("_TOKENLEDGER_LOG_CONTEXT", default={})

CONTEXT_KEYS = ("trace_id", "op", "caller", "key")

# Attributes every LogRecord carries; anything else came in via `extra=`.
_RECORD_ATTRS = frozenset(
    (
        "name", "msg", "args", "levelname", "levelno", "pathname", "filename",
        "module", "exc_info", "exc_text", "stack_info", "lineno", "funcName",
        "created", "msecs", "relativeCreated", "thread", "threadName",
        "processName", "process", "taskName", "message", "asctime",
    )
)


# ----------------------------
# Context
# ----------------------------


def context() -> Dict[str, Any]:
    """Copy of the active logging context."""
    return dict(_LOG_CONTEXT.get())


def bind(**fields: Any) -> None:
    cur = dict(_LOG_CONTEXT.get())
    cur.update({k: _coerce_value(v) for k, v in fields.items()})
    _LOG_CONTEXT.set(cur)


def unbind(*keys: str) -> None:
    cur = dict(_LOG_CONTEXT.get())
    for k in keys:
        cur.pop(k, None)
    _LOG_CONTEXT.set(cur)


def clear_context() -> None:
    _LOG_CONTEXT.set({})


def short_uuid() -> str:
    return uuid.uuid4().hex[:12]


@contextmanager
def trace_scope(trace_id: Optional[str] = None, **fields: Any) -> Iterator[str]:
    """
    Bind a trace_id (fresh unless given) plus `fields` for the scope and
    restore the previous context on exit. Yields the trace_id.
    """
    prev = _LOG_CONTEXT.get()
    tid = trace_id or prev.get("trace_id") or short_uuid()
    try:
        bind(trace_id=tid, **fields)
        yield tid
    finally:
        _LOG_CONTEXT.set(prev)


# ----------------------------
# Formatters
# ----------------------------


def _utcnow_iso() -> str:
    return _dt.datetime.now(_dt.timezone.utc).isoformat(timespec="milliseconds")


def _coerce_value(v: Any) -> Any:
    if v is None or isinstance(v, (bool, int, float, str)):
        return v
    if isinstance(v, (list, tuple)):
        return [_coerce_value(i) for i in v]
    if isinstance(v, dict):
        return {str(k): _coerce_value(i) for k, i in v.items()}
    if isinstance(v, (bytes, bytearray)):
        return v.hex()
    if isinstance(v, Path):
        return str(v)
    to_dict = getattr(v, "to_dict", None)
    if callable(to_dict):
        return _coerce_value(to_dict())
    return str(v)


def _extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        k: _coerce_value(v)
        for k, v in record.__dict__.items()
        if not k.startswith("_") and k not in _RECORD_ATTRS
    }


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": _utcnow_iso(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(context())
        for k, v in _extras(record).items():
            payload.setdefault(k, v)
        if record.exc_info:
            payload["err"] = "".join(traceback.format_exception(*record.exc_info)).rstrip()
        return json.dumps(payload, separators=(",", ":"), default=str)


class TextFormatter(logging.Formatter):
    """
    2026-01-05T12:34:56.789+00:00 | INFO  | tokenledger.contract.token | trace_id=ab12 op=MintTokens | amount=5.0 | tokens minted
    """

    def format(self, record: logging.LogRecord) -> str:
        ctx = context()
        ctx_str = " ".join(f"{k}={ctx[k]}" for k in CONTEXT_KEYS if ctx.get(k) is not None)
        extras = " ".join(
            f"{k}={v}" for k, v in _extras(record).items() if k not in ctx
        )

        line = f"{_utcnow_iso()} | {record.levelname:<5} | {record.name}"
        if ctx_str:
            line += f" | {ctx_str}"
        if extras:
            line += f" | {extras}"
        line += f" | {record.getMessage()}"
        if record.exc_info:
            line += "\n" + "".join(traceback.format_exception(*record.exc_info)).rstrip()
        return line


# ----------------------------
# Setup
# ----------------------------


def _is_tty(stream: io.TextIOBase) -> bool:
    try:
        return bool(stream.isatty())
    except (AttributeError, ValueError):
        return False


def _decide_json(json_flag: Optional[bool], stream: io.TextIOBase) -> bool:
    if json_flag is not None:
        return json_flag
    env = os.environ.get("TOKENLEDGER_LOG_FORMAT", "").strip().lower()
    if env in ("json", "text"):
        return env == "json"
    return not _is_tty(stream)


_LEVEL_TO_INT = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "NOTSET": logging.NOTSET,
}


def _coerce_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return _LEVEL_TO_INT.get(level.upper(), logging.INFO)


def configure(
    *,
    json: Optional[bool] = None,
    level: str | int = "INFO",
    stream: Optional[io.TextIOBase] = None,
    file_path: Optional[Path | str] = None,
) -> None:
    """
    Configure the `tokenledger` logger tree (not the root logger, so embedding
    hosts keep their own handlers).
    """
    stream = stream or sys.stderr  # type: ignore[assignment]
    lvl = _coerce_level(level)

    logger = logging.getLogger("tokenledger")
    logger.setLevel(lvl)
    logger.propagate = False
    for h in list(logger.handlers):
        logger.removeHandler(h)

    console = logging.StreamHandler(stream)
    console.setLevel(lvl)
    console.setFormatter(JSONFormatter() if _decide_json(json, stream) else TextFormatter())
    logger.addHandler(console)

    if file_path:
        p = Path(file_path).expanduser()
        p.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(p, encoding="utf-8")
        fh.setLevel(lvl)
        fh.setFormatter(JSONFormatter())
        logger.addHandler(fh)


def configure_from_config(cfg: Any) -> None:
    """Apply a `tokenledger.config.LedgerConfig`."""
    fmt = getattr(cfg, "log_format", None)
    configure(
        json=None if fmt is None else fmt == "json",
        level=getattr(cfg, "log_level", "INFO"),
        file_path=getattr(cfg, "log_file", None),
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or "tokenledger")


class ContextAdapter(logging.LoggerAdapter):
    """Adapter injecting constant fields; call-site `extra` wins on clashes."""

    def process(self, msg: Any, kwargs: Dict[str, Any]) -> Tuple[Any, Dict[str, Any]]:
        extra = kwargs.get("extra") or {}
        kwargs["extra"] = {**(self.extra or {}), **extra}
        return msg, kwargs


def with_fields(logger: logging.Logger, **fields: Any) -> ContextAdapter:
    return ContextAdapter(logger, {k: _coerce_value(v) for k, v in fields.items()})


__all__ = [
    "CONTEXT_KEYS",
    "context",
    "bind",
    "unbind",
    "clear_context",
    "trace_scope",
    "short_uuid",
    "JSONFormatter",
    "TextFormatter",
    "configure",
    "configure_from_config",
    "get_logger",
    "with_fields",
    "ContextAdapter",
]
