"""Diagnostic trace events emitted by the analytics pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

__all__ = ["TraceEvent", "TraceSink", "Tracer"]


@dataclass(frozen=True)
class TraceEvent:
    name: str
    fields: Mapping[str, Any] = field(default_factory=dict)


TraceSink = Callable[[TraceEvent], None]


class Tracer:
    """Log trace events at DEBUG and forward them to an optional sink."""

    def __init__(self, logger: logging.Logger, sink: Optional[TraceSink] = None) -> None:
        self._logger = logger
        self._sink = sink

    def emit(self, name: str, **fields: Any) -> None:
        if self._logger.isEnabledFor(logging.DEBUG):
            self._logger.debug("%s %s", name, fields, extra={"trace_fields": dict(fields)})
        if self._sink is not None:
            self._sink(TraceEvent(name=name, fields=fields))
