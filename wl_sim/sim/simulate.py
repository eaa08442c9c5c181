# wl_sim/sim/simulate.py
from __future__ import annotations

import logging
import math
import random
import threading
import time
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from ..config import SignalConfig, SimulatorConfig
from ..model.entities import BurstEvent, SignalSample, SimulatorState, TickObservation
from ..types import Megabytes, Seconds
from .shadow import ResourceShadowController
from .signal import RandomSource, compute_users

log = logging.getLogger(__name__)

MAX_PREVIEW_POINTS = 10_000


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def tick(
    state: SimulatorState,
    now: float,
    rng: RandomSource,
    controller: ResourceShadowController,
    signal_config: SignalConfig,
    wall_now: Optional[datetime] = None,
) -> Tuple[SimulatorState, TickObservation]:
    """
    Один шаг симуляции: сигнал -> CPU/память -> статистика.

    now: монотонное время того же источника, что и state.started_at.
    Пул памяти мутируется контроллером, всё остальное возвращается
    новым состоянием.
    """
    elapsed = Seconds(max(state.elapsed, now - state.started_at))
    sample = compute_users(signal_config, elapsed, rng)

    burst: Optional[BurstEvent] = None
    if sample.is_burst:
        burst = BurstEvent(elapsed=sample.elapsed, at=wall_now or _utcnow())
        log.info(
            "Traffic burst at %.0fs: x%.2f -> %d users",
            sample.elapsed, sample.burst_multiplier, sample.users,
        )

    shadow = controller.step(sample.users)

    new_state = replace(
        state,
        elapsed=elapsed,
        last_sample=sample,
        last_burst=burst or state.last_burst,
        last_target_mb=shadow.target_mb,
        pool_mb=shadow.pool_mb,
        stats=state.stats.advance(sample.users, shadow.cpu_ms, shadow.pool_mb),
    )
    return new_state, TickObservation(sample=sample, shadow=shadow, burst=burst)


@dataclass(frozen=True)
class StatusSnapshot:
    """Согласованный срез для читателя статуса."""
    state: SimulatorState
    pool_mb: Megabytes
    uptime: Seconds


class Simulator:
    """
    Владелец состояния симуляции.

    Тики сериализованы локом: одновременно идёт не больше одного
    CPU-burn. Состояние заменяется целиком, поэтому snapshot() видит
    либо старое, либо новое, но не промежуточное.
    """

    def __init__(
        self,
        config: SimulatorConfig,
        controller: Optional[ResourceShadowController] = None,
        rng: Optional[RandomSource] = None,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], datetime] = _utcnow,
    ):
        self.config = config.validate()
        self.rng = rng if rng is not None else random.Random(config.seed)
        self.controller = controller or ResourceShadowController(config.shadow)
        self._clock = clock
        self._wall_clock = wall_clock
        self._state = SimulatorState(started_at=clock())
        self._tick_lock = threading.Lock()

    @property
    def state(self) -> SimulatorState:
        return self._state

    def tick(self) -> TickObservation:
        with self._tick_lock:
            new_state, obs = tick(
                self._state,
                self._clock(),
                self.rng,
                self.controller,
                self.config.signal,
                wall_now=self._wall_clock(),
            )
            self._state = new_state
        return obs

    def snapshot(self) -> StatusSnapshot:
        state = self._state
        uptime = max(0.0, self._clock() - state.started_at)
        return StatusSnapshot(
            state=state,
            pool_mb=state.pool_mb,
            uptime=Seconds(uptime),
        )


# ---------------------------------------------------------------------------
# Предпросмотр кривой (без реального CPU/памяти)
# ---------------------------------------------------------------------------


class _NoiseFree:
    """Источник случайности, который гасит шум (x1.0) и не даёт всплесков."""

    def random(self) -> float:
        return 1.0

    def uniform(self, a: float, b: float) -> float:
        return 1.0


def simulate_series(
    config: SignalConfig,
    step: float = 60.0,
    cycles: float = 1.0,
    noise: bool = True,
    seed: Optional[int] = None,
    start: float = 0.0,
) -> List[SignalSample]:
    """
    Сэмплирует сигнал на отрезке [start, start + cycles * cycle_length).

    При noise=False отдаём детерминированную базу (округлённая и зажатая в границы).
    """
    if step <= 0:
        raise ValueError(f"step must be positive, got {step}")
    if cycles <= 0:
        raise ValueError(f"cycles must be positive, got {cycles}")

    duration = cycles * config.cycle_length
    span = duration / step
    if not math.isfinite(span):
        raise ValueError(
            f"preview over {cycles} cycle(s) with step {step}s is unbounded, limit is "
            f"{MAX_PREVIEW_POINTS} points"
        )
    points = int(math.ceil(span))
    if points > MAX_PREVIEW_POINTS:
        raise ValueError(
            f"preview would produce {points} points, limit is {MAX_PREVIEW_POINTS}; increase step"
        )

    rng: RandomSource = random.Random(seed) if noise else _NoiseFree()
    return [compute_users(config, start + i * step, rng) for i in range(points)]
