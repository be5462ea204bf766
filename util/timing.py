# util/timing.py
import time
from contextlib import contextmanager
from typing import Iterator, Dict, Any
import logging


@contextmanager
def timed(logger: logging.Logger, name: str, **kv: Dict[str, Any]) -> Iterator[None]:
    """
    Usage:
      with timed(logger, "runner.item", lang="spanish"):
          ...
    Emits one INFO on exit: "<name>.done ms=<int> key=val ...", or
    "<name>.failed ..." when the block raised (cancellation included).
    """
    t0 = time.perf_counter()
    outcome = "failed"
    try:
        yield
        outcome = "done"
    finally:
        dt_ms = int((time.perf_counter() - t0) * 1000)
        suffix = "".join(f" {k}={v}" for k, v in kv.items())
        logger.info("%s.%s ms=%d%s", name, outcome, dt_ms, suffix)
