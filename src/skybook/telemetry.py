"""OpenTelemetry spans and trace-aware logging for Skybook.

The Telemetry facade is shared by the autocomplete controller (search
spans, failure reporting) and the Textual form. Span helpers never raise,
so a broken tracing backend cannot take a form field down with it.
"""

from __future__ import annotations

import json
import logging
import os
from contextlib import contextmanager
from datetime import datetime
from typing import Generator

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

LOGGER_NAME = "skybook"
TRACER_NAME = "skybook"

# Span names and attribute keys recorded by the autocomplete fields and form.
SEARCH_SPAN = "autocomplete.search"
SUBMIT_SPAN = "tui.form_submit"
ATTR_KEYWORD = "search.keyword"
ATTR_SEQ = "search.seq"
ATTR_RESULT_COUNT = "search.result_count"


class _Span:
    """Wraps an OTel span; attribute and exception recording are best-effort."""

    def __init__(self, span: object) -> None:
        self._span = span

    def set_attribute(self, key: str, value: object) -> None:
        try:
            self._span.set_attribute(key, value)  # type: ignore[attr-defined]
        except Exception:
            pass

    def record_exception(self, exc: BaseException) -> None:
        try:
            self._span.record_exception(exc)  # type: ignore[attr-defined]
        except Exception:
            pass


class _TraceContextAdapter(logging.LoggerAdapter):
    """Adds the active trace_id/span_id to each record's ``extra``."""

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:  # type: ignore[override]
        ctx = trace.get_current_span().get_span_context()
        extra = kwargs.get("extra", {})
        if ctx.is_valid:
            extra["trace_id"] = format(ctx.trace_id, "032x")
            extra["span_id"] = format(ctx.span_id, "016x")
        kwargs["extra"] = extra
        return msg, kwargs


class Telemetry:
    """Span factory plus a logger that carries trace context.

    Usage::

        tel = get_telemetry()
        with tel.span("autocomplete.search") as span:
            span.set_attribute("search.keyword", "NY")
            tel.log.info("searching")
    """

    def __init__(self, tracer: object) -> None:
        self._tracer = tracer
        self.log: _TraceContextAdapter = _TraceContextAdapter(
            logging.getLogger(LOGGER_NAME), {}
        )

    @contextmanager
    def span(self, name: str) -> Generator[_Span, None, None]:
        """Open an OTel span for the duration of the ``with`` block."""
        with self._tracer.start_as_current_span(name) as otel_span:  # type: ignore[attr-defined]
            yield _Span(otel_span)

    @classmethod
    def for_testing(cls) -> tuple["Telemetry", InMemorySpanExporter]:
        """Build a Telemetry whose finished spans land in memory.

        Returns:
            ``(Telemetry, InMemorySpanExporter)``; assert against
            ``exporter.get_finished_spans()``.
        """
        exporter = InMemorySpanExporter()
        provider = TracerProvider()
        provider.add_span_processor(SimpleSpanProcessor(exporter))
        return cls(provider.get_tracer(TRACER_NAME)), exporter

    @classmethod
    def noop(cls) -> "Telemetry":
        """Build a Telemetry with no span processors (spans are dropped)."""
        return cls(TracerProvider().get_tracer(TRACER_NAME))

    # ------------------------------------------------------------------
    # Autocomplete and form instrumentation
    # ------------------------------------------------------------------

    @contextmanager
    def search_span(self, keyword: str, seq: int) -> Generator[_Span, None, None]:
        """Span around one suggestion lookup, tagged with its keyword and sequence number.

        A lookup that raises has the exception recorded before it propagates.
        """
        with self.span(SEARCH_SPAN) as span:
            span.set_attribute(ATTR_KEYWORD, keyword)
            span.set_attribute(ATTR_SEQ, seq)
            try:
                yield span
            except Exception as exc:
                span.record_exception(exc)
                raise

    def search_failed(
        self, keyword: str, seq: int, latest_seq: int, exc: BaseException
    ) -> None:
        """Log a failed lookup; superseded requests are marked stale."""
        self.log.warning(
            f"suggestion search failed keyword={keyword!r} seq={seq} "
            f"stale={seq != latest_seq} error={exc!r}"
        )

    @contextmanager
    def submit_span(self, query: dict[str, str]) -> Generator[_Span, None, None]:
        """Span around a flight search submission; *query* keys become ``form.*`` attributes."""
        with self.span(SUBMIT_SPAN) as span:
            for key, value in query.items():
                span.set_attribute(f"form.{key}", value)
            yield span


# Process-wide instance so controllers created deep inside widgets can
# report without being handed the App's Telemetry explicitly.
_active: Telemetry | None = None


def get_telemetry() -> Telemetry:
    """Return the active Telemetry, creating a no-op one on first use."""
    global _active
    if _active is None:
        _active = Telemetry.noop()
    return _active


def set_telemetry(tel: Telemetry) -> None:
    """Install *tel* as the active Telemetry."""
    global _active
    _active = tel


class _TraceDefaultsFilter(logging.Filter):
    """Fill in zero trace/span ids for records logged outside any span."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "trace_id"):
            record.trace_id = "0" * 32  # type: ignore[attr-defined]
        if not hasattr(record, "span_id"):
            record.span_id = "0" * 16  # type: ignore[attr-defined]
        return True


class _JsonLineFormatter(logging.Formatter):
    """One JSON object per line: ts, level, logger, trace, span, msg."""

    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(
            {
                "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
                "level": record.levelname,
                "logger": record.name,
                "trace": getattr(record, "trace_id", "0" * 32),
                "span": getattr(record, "span_id", "0" * 16),
                "msg": record.getMessage(),
            },
            ensure_ascii=False,
        )


def configure_file_logging(log_dir: str = "logs") -> str:
    """Send the ``skybook`` logger to ``{log_dir}/tui-YYYYMMDD.log`` as JSON lines.

    Calling it again is harmless: an existing FileHandler is left alone.

    Returns:
        The path of the log file.
    """
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, f"tui-{datetime.now().strftime('%Y%m%d')}.log")

    logger = logging.getLogger(LOGGER_NAME)
    if any(isinstance(h, logging.FileHandler) for h in logger.handlers):
        return log_path

    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.addFilter(_TraceDefaultsFilter())
    handler.setFormatter(_JsonLineFormatter())

    logger.setLevel(logging.DEBUG)
    logger.addHandler(handler)
    return log_path
