# wl_sim/model/entities.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from ..types import Users, Megabytes, Millis, Seconds


class CyclePhase(str, Enum):
    """Позиция внутри цикла. Никогда не хранится, всегда вычисляется из elapsed."""
    RAMP_UP = "ramp-up"
    PEAK_PLATEAU = "peak-plateau"
    RAMP_DOWN = "ramp-down"
    OFF_PLATEAU = "off-plateau"


@dataclass(frozen=True)
class BurstEvent:
    """Отметка последнего случайного всплеска трафика."""
    elapsed: Seconds
    at: datetime

    def iso(self) -> str:
        return self.at.isoformat()


@dataclass(frozen=True)
class SignalSample:
    """Результат одного вызова генератора."""
    elapsed: Seconds
    position: Seconds          # elapsed mod cycle_length
    phase: CyclePhase
    base_level: float          # детерминированная часть, без шума
    noise_factor: float
    burst_multiplier: float    # 1.0, если всплеска не было
    users: Users

    @property
    def is_burst(self) -> bool:
        return self.burst_multiplier > 1.0


@dataclass(frozen=True)
class RunningStatistics:
    """
    Монотонные счётчики. Только append/max, сбрасываются лишь рестартом процесса.
    """
    tick_count: int = 0
    total_requests: int = 0
    peak_users: Users = Users(0)
    peak_cpu_ms: Millis = Millis(0.0)
    peak_pool_mb: Megabytes = Megabytes(0)

    def advance(self, users: int, cpu_ms: float, pool_mb: int) -> "RunningStatistics":
        return RunningStatistics(
            tick_count=self.tick_count + 1,
            total_requests=self.total_requests + users,
            peak_users=Users(max(self.peak_users, users)),
            peak_cpu_ms=Millis(max(self.peak_cpu_ms, cpu_ms)),
            peak_pool_mb=Megabytes(max(self.peak_pool_mb, pool_mb)),
        )


@dataclass(frozen=True)
class ShadowResult:
    """Что сделал контроллер теневых ресурсов за тик."""
    cpu_budget_ms: Millis
    cpu_ms: Millis
    target_mb: Megabytes
    pool_mb_before: Megabytes
    pool_mb: Megabytes
    allocation_failed: bool = False

    @property
    def pool_delta_mb(self) -> int:
        return int(self.pool_mb) - int(self.pool_mb_before)


@dataclass(frozen=True)
class SimulatorState:
    """
    Полное состояние симулятора между тиками (кроме самого пула памяти,
    которым владеет контроллер).
    """
    started_at: float                       # monotonic, момент старта
    elapsed: Seconds = Seconds(0.0)         # никогда не убывает
    last_sample: Optional[SignalSample] = None
    last_burst: Optional[BurstEvent] = None
    last_target_mb: Megabytes = Megabytes(0)
    pool_mb: Megabytes = Megabytes(0)      # размер пула после того же тика
    stats: RunningStatistics = field(default_factory=RunningStatistics)

    @property
    def current_users(self) -> Optional[Users]:
        if self.last_sample is None:
            return None
        return self.last_sample.users


@dataclass(frozen=True)
class TickObservation:
    sample: SignalSample
    shadow: ShadowResult
    burst: Optional[BurstEvent] = None
