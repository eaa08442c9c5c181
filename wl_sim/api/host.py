# wl_sim/api/host.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

import psutil

log = logging.getLogger(__name__)

CGROUP_MEMORY_PATHS = (
    Path("/sys/fs/cgroup/memory.max"),                    # cgroup v2
    Path("/sys/fs/cgroup/memory/memory.limit_in_bytes"),  # cgroup v1
)

# cgroup v1 пишет это значение, когда лимита нет
_V1_UNLIMITED = "9223372036854771712"


def memory_limit_mb(paths: Iterable[Path] = CGROUP_MEMORY_PATHS) -> Optional[int]:
    """Лимит памяти контейнера в MB или None, если лимита нет / не нашли."""
    for p in paths:
        try:
            raw = p.read_text("utf-8").strip()
        except OSError:
            continue
        if raw in ("max", _V1_UNLIMITED):
            return None
        try:
            return round(int(raw) / (1024 * 1024))
        except ValueError:
            log.warning("Unexpected cgroup memory limit in %s: %r", p, raw)
            continue
    return None


def process_rss_mb() -> int:
    return round(psutil.Process().memory_info().rss / (1024 * 1024))


def format_uptime(seconds: float) -> str:
    total = int(seconds)
    return f"{total // 3600}h {(total % 3600) // 60}m"
