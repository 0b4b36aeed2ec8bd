"""Runtime information for the `/system-info` demo endpoint."""

from __future__ import annotations

import os
import platform
from datetime import datetime, timezone


def _physical_memory_mib() -> int | None:
    try:
        pages = os.sysconf("SC_PHYS_PAGES")
        page_size = os.sysconf("SC_PAGE_SIZE")
    except (AttributeError, ValueError, OSError):
        return None
    if pages <= 0 or page_size <= 0:
        return None
    return (pages * page_size) // (1024 * 1024)


def system_info() -> dict:
    """Return interpreter, OS and hardware details plus a timestamp."""
    return {
        "pythonVersion": platform.python_version(),
        "implementation": platform.python_implementation(),
        "osName": platform.system(),
        "availableProcessors": os.cpu_count(),
        "maxMemory": _physical_memory_mib(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
