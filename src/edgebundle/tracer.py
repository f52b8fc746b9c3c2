"""
Hierarchical runtime tracing for the edge bundling engine.

Spans nest per render stage (plan, compatibility, relax, interpolate) and
report wall time on exit; events attach to the innermost open span. Output
goes to stderr, optionally mirrored to a file and as JSON lines.
"""

import functools
import json
import sys
import time
from contextlib import contextmanager
from datetime import datetime

import networkx as nx
import numpy as np


class TracerConfig:
    """Where and how much the tracer writes."""

    def __init__(self):
        self.enabled = False
        self.level = "INFO"
        self.file_path = None
        self.json_output = False
        self._file_handle = None

    def configure(self, enabled=False, level="INFO", file_path=None, json_output=False):
        self.enabled = enabled
        self.level = level.upper()
        self.file_path = file_path
        self.json_output = json_output

        self.close()
        if file_path and enabled:
            self._file_handle = open(file_path, "w", encoding="utf-8")

    def close(self):
        if self._file_handle:
            self._file_handle.close()
            self._file_handle = None


class Tracer:
    """Nested span and event logger for one process."""

    LEVELS = {"ERROR": 0, "WARN": 1, "INFO": 2, "DEBUG": 3}

    def __init__(self):
        self.config = TracerConfig()
        self._spans = []

    @property
    def span_path(self):
        """Names of the open spans, outermost first, joined with '/'."""
        return "/".join(name for name, _, _ in self._spans)

    def _should_log(self, level):
        if not self.config.enabled:
            return False
        return self.LEVELS.get(level, 2) <= self.LEVELS.get(self.config.level, 2)

    def _emit(self, line):
        print(line, file=sys.stderr)
        if self.config._file_handle:
            self.config._file_handle.write(line + "\n")
            self.config._file_handle.flush()

    def _write(self, level, module, func, message, meta=None):
        if not self._should_log(level):
            return

        now = datetime.now()
        timestamp = now.strftime("%H:%M:%S.") + f"{now.microsecond // 1000:03d}"
        depth = len(self._spans)
        location = f"{module}:{func}" if func else module

        self._emit(f"{timestamp} {level:<5} {'  ' * depth}{location}  {message}")

        if self.config.json_output:
            self._emit(json.dumps({
                "timestamp": timestamp,
                "level": level,
                "span": self.span_path,
                "module": module,
                "function": func,
                "message": message,
                "meta": {k: summarize(v) for k, v in (meta or {}).items()},
            }))

    @contextmanager
    def span(self, name, module="", **meta):
        """
        Trace a block as a named span.

        Logs start and end with elapsed time; an exception is logged at
        ERROR with the span's timing and re-raised.
        """
        if not self.config.enabled:
            yield
            return

        started = time.perf_counter()
        self._write("INFO", module, name, _with_meta("start", meta), meta)
        self._spans.append((name, module, started))

        try:
            yield
        except Exception as e:
            self._spans.pop()
            elapsed = (time.perf_counter() - started) * 1000
            self._write("ERROR", module, name, f"failed dt={elapsed:.0f}ms error={type(e).__name__}: {str(e)[:100]}")
            raise

        self._spans.pop()
        elapsed = (time.perf_counter() - started) * 1000
        self._write("INFO", module, name, f"end ok dt={elapsed:.0f}ms")

    def event(self, message, level="INFO", **meta):
        """Log a one-off event within the current span."""
        if not self._should_log(level):
            return

        func, module = "", ""
        if self._spans:
            func, module, _ = self._spans[-1]

        self._write(level, module, func, _with_meta(message, meta), meta)


def _with_meta(message, meta):
    if not meta:
        return message
    return message + " " + " ".join(f"{k}={summarize(v)}" for k, v in meta.items())


def summarize(obj, max_len=200):
    """
    Compact one-line description of a traced value, at most max_len chars.

    Control-point arrays report shape and how many rows are finite, edge
    states their point count and role, graphs their size, and short tuples
    such as edge index pairs their values.
    """
    try:
        text = _describe(obj)
    except Exception:
        text = f"<{type(obj).__name__}>"
    if len(text) > max_len:
        return text[:max_len - 3] + "..."
    return text


def _describe(obj):
    from edgebundle.bundling.state import EdgeState

    if obj is None:
        return "None"

    if isinstance(obj, (bool, int, np.integer)):
        return str(obj)

    if isinstance(obj, (float, np.floating)):
        return f"{obj:.4g}"

    if isinstance(obj, str):
        return obj

    if isinstance(obj, np.ndarray):
        shape = "x".join(str(s) for s in obj.shape)
        finite = 0
        if obj.size:
            rows = obj.reshape(obj.shape[0], -1) if obj.ndim > 1 else obj.reshape(-1, 1)
            finite = int(np.isfinite(rows).all(axis=1).sum())
        return f"ndarray({obj.dtype},{shape},finite={finite})"

    if isinstance(obj, EdgeState):
        role = "degenerate" if obj.degenerate else ("bundling" if obj.bundling else "static")
        return f"EdgeState(#{obj.index},points={obj.point_count},length={obj.chord_length:.1f},{role})"

    if isinstance(obj, nx.Graph):
        return f"{type(obj).__name__}(nodes={obj.number_of_nodes()},edges={obj.number_of_edges()})"

    if isinstance(obj, (list, tuple)):
        if len(obj) <= 4 and all(isinstance(v, (int, float, str)) for v in obj):
            return "(" + ", ".join(str(v) for v in obj) + ")"
        return f"{type(obj).__name__}(len={len(obj)})"

    return f"<{type(obj).__name__}>"


def trace(label=None):
    """Run the decorated function inside a span named after it or ``label``."""
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            if not _tracer.config.enabled:
                return func(*args, **kwargs)

            module = func.__module__.split(".")[-1] if func.__module__ else ""
            with _tracer.span(label or func.__name__, module=module):
                return func(*args, **kwargs)

        return wrapper
    return decorator


# Global tracer instance
_tracer = Tracer()


def get_tracer():
    """Get the global tracer instance."""
    return _tracer


def configure_tracer(enabled=False, level="INFO", file_path=None, json_output=False):
    """Configure the global tracer."""
    _tracer.config.configure(
        enabled=enabled,
        level=level,
        file_path=file_path,
        json_output=json_output,
    )
