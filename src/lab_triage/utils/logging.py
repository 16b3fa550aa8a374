# ============================================================================
# src/lab_triage/utils/logging.py
# ============================================================================
"""
Logging configuration and utilities for the lab triage engine.

Patient identifiers never reach a handler in clear text: every handler
installed by setup_logging carries a RutRedactionFilter.
"""

import functools
import json
import logging
import re
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .rut import anonymize_rut

# Record attributes stamped by LogContext that the JSON formatter emits
CONTEXT_FIELDS = ("document_id", "source", "batch_size")

_RUT_IN_TEXT = re.compile(r'\b\d{1,2}\.?\d{3}\.?\d{3}\s*-\s*[0-9Kk]\b')


class RutRedactionFilter(logging.Filter):
    """Mask anything shaped like a RUT in the rendered message."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = _RUT_IN_TEXT.sub(lambda m: anonymize_rut(m.group(0)), message)
        if masked != message:
            record.msg = masked
            record.args = ()
        return True


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[Path] = None,
    format_json: Optional[bool] = None
) -> None:
    """
    Configure the root logger.

    Arguments left as None fall back to LAB_TRIAGE_LOG_* settings.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file that mirrors console output
        format_json: Emit one JSON object per record
    """
    from ..config import logging_settings

    level = level or logging_settings.LOG_LEVEL
    log_file = log_file or logging_settings.LOG_FILE
    if format_json is None:
        format_json = logging_settings.FORMAT_JSON

    if format_json:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    # stdout is reserved for the JSON result
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    redaction = RutRedactionFilter()
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(redaction)

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        handlers=handlers,
        force=True
    )


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with LogContext fields when present."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'function': record.funcName,
            'line': record.lineno
        }

        for name in CONTEXT_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LogContext:
    """
    Stamp attributes on every log record created inside the block.

    Usage:
        with LogContext(document_id="informe.pdf"):
            pipeline.process_document(path)

    The record factory is process-wide, so this is meant for the
    single-document CLI path rather than for batch worker threads.
    """

    def __init__(self, **context):
        self.context = context
        self._previous = None

    def __enter__(self):
        previous = self._previous = logging.getLogRecordFactory()
        context = self.context

        def record_factory(*args, **kwargs):
            record = previous(*args, **kwargs)
            for key, value in context.items():
                setattr(record, key, value)
            return record

        logging.setLogRecordFactory(record_factory)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        logging.setLogRecordFactory(self._previous)


def log_performance(logger: logging.Logger, stage: str):
    """
    Log a pipeline stage's wall time at DEBUG, or its failure at ERROR.

    Args:
        logger: Logger of the module owning the stage
        stage: Stage name used in the message
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(f"{stage} failed after {time.perf_counter() - start:.3f}s: {e}")
                raise
            logger.debug(f"{stage} completed in {time.perf_counter() - start:.3f}s")
            return result

        return wrapper
    return decorator
