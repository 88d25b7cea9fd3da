"""Logging for the canvas service.

Two file-backed channels, each also echoed to the console:

- flowcanvas.api: graph commits made through the HTTP routes (api.log)
- flowcanvas.sse: outcome events fanned out to stream subscribers (sse.log)

Every line carries the job it concerns (``job=-`` when none); use
``get_api_logger(job_id)`` / ``get_sse_logger(job_id)`` to bind one.
LOG_DIR and LOG_LEVEL come from the environment.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Union

LOG_DIR = Path(os.getenv("LOG_DIR", str(Path(__file__).parent.parent / "logs")))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

FILE_FORMAT = "%(asctime)s [%(name)s] [%(levelname)s] [job=%(job_id)s] %(message)s"
CONSOLE_FORMAT = "%(asctime)s [%(name)s] [job=%(job_id)s] %(message)s"

API_LOGGER = "flowcanvas.api"
SSE_LOGGER = "flowcanvas.sse"

JobLogger = Union[logging.Logger, logging.LoggerAdapter]


class JobContextFilter(logging.Filter):
    """Give records without a bound job a ``job_id`` of ``-``."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "job_id"):
            record.job_id = "-"
        return True


def setup_logger(name: str, filename: str) -> logging.Logger:
    """Attach file and console handlers to ``name`` once.

    Calling it again for the same name returns the configured logger.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    LOG_DIR.mkdir(parents=True, exist_ok=True)
    logger.setLevel(LOG_LEVEL)
    logger.propagate = False

    context = JobContextFilter()
    for handler, fmt in (
        (logging.FileHandler(LOG_DIR / filename, encoding="utf-8"), FILE_FORMAT),
        (logging.StreamHandler(), CONSOLE_FORMAT),
    ):
        handler.addFilter(context)
        handler.setFormatter(logging.Formatter(fmt))
        logger.addHandler(handler)
    return logger


def for_job(logger: logging.Logger, job_id: Optional[str]) -> JobLogger:
    """Bind ``job_id`` to every record written through the returned logger."""
    if not job_id:
        return logger
    return logging.LoggerAdapter(logger, {"job_id": job_id})


def get_api_logger(job_id: Optional[str] = None) -> JobLogger:
    return for_job(setup_logger(API_LOGGER, "api.log"), job_id)


def get_sse_logger(job_id: Optional[str] = None) -> JobLogger:
    return for_job(setup_logger(SSE_LOGGER, "sse.log"), job_id)
