"""
analytic_engines.tracer -- Engine invocation tracer emitting ANALYTIC_ENGINE_TRACE.

Responsibility:
    A lightweight decorator (``@traced_engine``) that wraps pure engine
    invocations with one structured log record: engine_name,
    engine_version, input_fingerprint (SHA-256 prefix of selected keyword
    arguments) and duration_ms.

Invariants enforced:
    - The fingerprint is deterministic: dict keys are sorted, sequences keep
      their order, dataclasses are canonicalized field by field.
    - The decorator only reads arguments and emits a log record; it never
      mutates inputs.

Usage:
    from analytic_engines.tracer import traced_engine

    @traced_engine("budget_performance", "1.0", fingerprint_fields=("budget",))
    def compute_performance(*, budget, facts):
        ...
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import time
from collections.abc import Callable
from enum import Enum
from typing import Any

from analytic_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")

TRACE_TYPE = "ANALYTIC_ENGINE_TRACE"


def _canonicalize(value: Any) -> str:
    """Stable text form of ``value``; mappings and sets are order-independent."""
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return str(value.value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
    if isinstance(value, dict):
        parts = sorted(f"{k}:{_canonicalize(v)}" for k, v in value.items())
        return "{" + ",".join(parts) + "}"
    if isinstance(value, (set, frozenset)):
        return "{" + ",".join(sorted(map(_canonicalize, value))) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(map(_canonicalize, value)) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: dict[str, Any],
) -> str:
    """16-hex-char SHA-256 prefix over the named kwargs. Missing ones hash as null."""
    canonical = "|".join(
        f"{name}={_canonicalize(kwargs.get(name))}" for name in fingerprint_fields
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Wrap a keyword-only engine function so each call logs one trace record.

    Args:
        engine_name: Engine identifier, e.g. "budget_projection".
        engine_version: Bumped whenever the engine's results can change.
        fingerprint_fields: Keyword arguments hashed into input_fingerprint.
    """

    def decorator(func: Callable) -> Callable:
        trace_base = {
            "trace_type": TRACE_TYPE,
            "engine_name": engine_name,
            "engine_version": engine_version,
            "function": func.__qualname__,
        }

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = (
                compute_input_fingerprint(fingerprint_fields, kwargs)
                if fingerprint_fields
                else ""
            )
            started = time.perf_counter()
            result = func(*args, **kwargs)
            elapsed = time.perf_counter() - started

            _logger.info(
                TRACE_TYPE,
                extra={
                    **trace_base,
                    "input_fingerprint": fingerprint,
                    "duration_ms": round(elapsed * 1000, 3),
                },
            )
            return result

        return wrapper

    return decorator
