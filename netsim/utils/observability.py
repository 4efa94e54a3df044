from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Iterator

from netsim.utils.request_id import current_request_id


def configure_logging(level: str) -> None:
    """Install a key=value friendly root format once; later calls only adjust the level."""
    resolved = logging.getLevelName((level or "INFO").upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=resolved,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
    root.setLevel(resolved)


@contextmanager
def log_duration(logger: logging.Logger, operation: str, **fields: object) -> Iterator[None]:
    """Log duration of an operation at debug level as op=<name> duration_ms=<ms> k=v ..."""
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        rid = current_request_id()
        if rid and "request_id" not in fields:
            fields = {"request_id": rid, **fields}
        extras = " ".join(f"{k}={v}" for k, v in fields.items())
        if extras:
            logger.debug("op=%s duration_ms=%.2f %s", operation, elapsed_ms, extras)
        else:
            logger.debug("op=%s duration_ms=%.2f", operation, elapsed_ms)
