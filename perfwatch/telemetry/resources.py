"""Process resource probes backed by psutil."""

import os
from typing import Optional

import psutil

from perfwatch.core.logging import get_logger

logger = get_logger(__name__)

_process: Optional[psutil.Process] = None


def _get_process() -> psutil.Process:
    global _process
    if _process is None or _process.pid != os.getpid():
        _process = psutil.Process(os.getpid())
    return _process


def process_memory_usage() -> Optional[float]:
    """
    Resident set size of the current process in bytes.

    Returns:
        RSS in bytes, or None if psutil cannot read it.
    """
    try:
        return float(_get_process().memory_info().rss)
    except psutil.Error as e:
        logger.error("Failed to read process memory usage", exc_info=e)
        return None
