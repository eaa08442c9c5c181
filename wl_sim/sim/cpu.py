# wl_sim/sim/cpu.py
from __future__ import annotations

import time
from typing import Callable

from ..types import Millis

# burn_cpu(duration_budget_ms) -> фактически потраченные миллисекунды
CpuBurner = Callable[[float], float]

_MODULUS = 1_000_000_007
_CHUNK = 2_000  # итераций между проверками часов


def burn_cpu(duration_budget_ms: float) -> Millis:
    """
    Крутит процессор примерно duration_budget_ms миллисекунд.

    Ограничение по времени, а не по итерациям.
    """
    start = time.perf_counter()
    if duration_budget_ms <= 0:
        return Millis(0.0)

    deadline = start + duration_budget_ms / 1000.0
    acc = 0
    i = 0
    while time.perf_counter() < deadline:
        for _ in range(_CHUNK):
            acc = (acc * 31 + i) % _MODULUS
            i += 1

    return Millis((time.perf_counter() - start) * 1000.0)
