# wl_sim/sim/signal.py
"""
Генератор "одновременных пользователей".

Волна: [ramp-up] [peak plateau] [ramp-down] [off plateau] [repeat].
Рампы обеспечивают непрерывность на границах фаз; шум и всплески
накладываются поверх детерминированной базы и на классификацию фаз
не влияют, поэтому расписание фаз строго периодично.
"""
from __future__ import annotations

import math
from typing import Protocol, Tuple

from ..config import SignalConfig
from ..model.entities import CyclePhase, SignalSample
from ..types import Seconds, Users


class RandomSource(Protocol):
    """Подмножество random.Random, которое нужно генератору."""

    def random(self) -> float:
        ...

    def uniform(self, a: float, b: float) -> float:
        ...


def round_half_up(value: float) -> int:
    """Округление x.5 вверх (а не банковское, как у round())."""
    return int(math.floor(value + 0.5))


def cycle_position(config: SignalConfig, elapsed: float) -> float:
    return max(0.0, elapsed) % config.cycle_length


def classify_phase(config: SignalConfig, position: float) -> CyclePhase:
    ramp = config.ramp_duration
    peak = config.peak_duration
    if position < ramp:
        return CyclePhase.RAMP_UP
    if position < ramp + peak:
        return CyclePhase.PEAK_PLATEAU
    if position < ramp + peak + ramp:
        return CyclePhase.RAMP_DOWN
    return CyclePhase.OFF_PLATEAU


def _progress(offset: float, ramp: float) -> float:
    return min(1.0, max(0.0, offset / ramp))


def base_level_at(config: SignalConfig, elapsed: float) -> Tuple[CyclePhase, float, float]:
    """
    Детерминированная часть сигнала.

    Возвращает (phase, position, base_level).
    """
    position = cycle_position(config, elapsed)
    phase = classify_phase(config, position)
    low = config.off_base_level
    high = config.peak_base_level

    if phase is CyclePhase.RAMP_UP:
        base = low + (high - low) * _progress(position, config.ramp_duration)
    elif phase is CyclePhase.PEAK_PLATEAU:
        base = high
    elif phase is CyclePhase.RAMP_DOWN:
        offset = position - config.ramp_duration - config.peak_duration
        base = high - (high - low) * _progress(offset, config.ramp_duration)
    else:
        base = low

    return phase, position, base


def clamp_users(config: SignalConfig, value: float) -> Users:
    # Потолок считаем по настроенному burst_multiplier, даже на тиках без всплеска.
    return Users(int(min(config.upper_bound, max(config.min_users, value))))


def compute_users(config: SignalConfig, elapsed: float, rng: RandomSource) -> SignalSample:
    """
    Один отсчёт сигнала для момента elapsed (секунды с начала симуляции).

    Шум перетягивается на каждом вызове; всплеск разыгрывается
    только в peak plateau.
    """
    phase, position, base = base_level_at(config, elapsed)

    noise = rng.uniform(config.noise_low, config.noise_high)
    noisy = base * noise

    burst = 1.0
    if phase is CyclePhase.PEAK_PLATEAU and rng.random() < config.burst_probability:
        burst = config.burst_multiplier

    users = clamp_users(config, round_half_up(noisy * burst))

    return SignalSample(
        elapsed=Seconds(max(0.0, elapsed)),
        position=Seconds(position),
        phase=phase,
        base_level=base,
        noise_factor=noise,
        burst_multiplier=burst,
        users=users,
    )
