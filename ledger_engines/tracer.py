"""
ledger_engines.tracer -- LEDGER_ENGINE_TRACE records for engine calls.

Responsibility:
    ``@traced_engine`` wraps a pure engine method and logs one
    LEDGER_ENGINE_TRACE record per call: engine name and version, a
    fingerprint of the inputs that decide the result, the duration and
    whether the call returned or raised.

Architecture position:
    Engines -- support for the pure calculation layer.  Emits a log record
    and nothing else.

Invariants enforced:
    - Fingerprints are stable across processes: values are reduced to a
      canonical text form (dates as ISO, Decimals as text, enums by value,
      dataclasses field by field, mappings with sorted keys) and hashed with
      SHA-256, truncated to 16 hex chars.
    - Posting streams are never fingerprinted; only the scalar selectors
      named in ``fingerprint_fields``.

Failure modes:
    - A field named in ``fingerprint_fields`` but not passed is recorded as
      "null".
    - Exceptions from the engine are logged with ``status="error"`` and
      re-raised unchanged.
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import time
from collections.abc import Callable, Mapping
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from ledger_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")

TRACE_EVENT = "LEDGER_ENGINE_TRACE"


def _canonical(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return _canonical(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, Decimal)):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _canonical(
            {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
        )
    if isinstance(value, Mapping):
        pairs = sorted((str(k), _canonical(v)) for k, v in value.items())
        return "{" + ",".join(f"{k}:{v}" for k, v in pairs) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonical(v) for v in value) + "]"
    return repr(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: Mapping[str, Any],
) -> str:
    """16-hex-char SHA-256 prefix over the named keyword arguments."""
    canonical = "|".join(
        f"{name}={_canonical(kwargs.get(name))}" for name in fingerprint_fields
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """
    Decorate an engine method so each call emits LEDGER_ENGINE_TRACE.

    Args:
        engine_name: Engine identifier (e.g., "ageing").
        engine_version: Engine version (e.g., "1.0").
        fingerprint_fields: Keyword argument names hashed into the input
            fingerprint.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = (
                compute_input_fingerprint(fingerprint_fields, kwargs)
                if fingerprint_fields
                else ""
            )
            status = "error"
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
                status = "ok"
                return result
            finally:
                _logger.info(
                    TRACE_EVENT,
                    extra={
                        "trace_type": TRACE_EVENT,
                        "engine_name": engine_name,
                        "engine_version": engine_version,
                        "input_fingerprint": fingerprint,
                        "duration_ms": round((time.perf_counter() - started) * 1000, 3),
                        "function": func.__qualname__,
                        "status": status,
                    },
                )

        return wrapper

    return decorator
