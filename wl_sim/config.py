# wl_sim/config.py
"""
Конфигурация симулятора нагрузки.

Все параметры фиксируются на старте процесса. Невалидная конфигурация
считается фатальной ошибкой, симулятор с ней не запускается.
"""
from __future__ import annotations

import math
import os
from dataclasses import dataclass, field, replace
from typing import Callable, Mapping, Optional, TypeVar

T = TypeVar("T")


class ConfigError(ValueError):
    """Невалидная конфигурация симулятора."""


@dataclass(frozen=True)
class SignalConfig:
    """
    Параметры волны "пользователей".

    Цикл: [ramp-up] [peak plateau] [ramp-down] [off plateau] [repeat].
    Все длительности в секундах.
    """
    peak_duration: float = 3600.0
    off_duration: float = 3600.0
    ramp_duration: float = 300.0   # применяется на обоих переходах

    peak_base_level: float = 65.0
    off_base_level: float = 10.0

    min_users: int = 5
    max_users: int = 80

    burst_probability: float = 0.02  # на тик, только в peak plateau
    burst_multiplier: float = 1.8

    # мультипликативный шум +/- 12%
    noise_low: float = 0.88
    noise_high: float = 1.12

    @property
    def cycle_length(self) -> float:
        return self.peak_duration + self.off_duration + 2 * self.ramp_duration

    @property
    def upper_bound(self) -> float:
        return self.max_users * self.burst_multiplier

    def validate(self) -> "SignalConfig":
        for name in ("peak_duration", "off_duration", "ramp_duration"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be positive, got {getattr(self, name)}")
        for name in ("peak_base_level", "off_base_level", "min_users", "max_users"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be positive, got {getattr(self, name)}")
        for name in ("min_users", "max_users"):
            value = getattr(self, name)
            if isinstance(value, bool) or not math.isfinite(value) or int(value) != value:
                raise ConfigError(f"{name} must be a whole number of users, got {value}")
        if self.min_users > self.max_users:
            raise ConfigError(
                f"min_users ({self.min_users}) must not exceed max_users ({self.max_users})"
            )
        if not 0.0 <= self.burst_probability <= 1.0:
            raise ConfigError(f"burst_probability must be in [0, 1], got {self.burst_probability}")
        if self.burst_multiplier <= 1.0:
            raise ConfigError(f"burst_multiplier must be > 1, got {self.burst_multiplier}")
        if self.noise_low <= 0 or self.noise_low > self.noise_high:
            raise ConfigError(
                f"noise range must satisfy 0 < low <= high, got [{self.noise_low}, {self.noise_high}]"
            )
        return self


@dataclass(frozen=True)
class ShadowConfig:
    """Как нагрузка превращается в CPU-burn и удерживаемую память."""
    per_user_mb: float = 0.5     # сессии/кэш на пользователя
    block_mb: int = 1            # размер одного блока пула
    hysteresis_mb: float = 2.0   # мёртвая зона перед освобождением памяти

    cpu_ms_per_user: float = 0.4
    max_cpu_burn_ms: float = 1500.0  # жёсткий потолок на тик

    def validate(self) -> "ShadowConfig":
        for name in ("per_user_mb", "block_mb", "cpu_ms_per_user", "max_cpu_burn_ms"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be positive, got {getattr(self, name)}")
        if self.hysteresis_mb < 0:
            raise ConfigError(f"hysteresis_mb must not be negative, got {self.hysteresis_mb}")
        return self


@dataclass(frozen=True)
class SimulatorConfig:
    signal: SignalConfig = field(default_factory=SignalConfig)
    shadow: ShadowConfig = field(default_factory=ShadowConfig)

    tick_interval: float = 2.0
    seed: Optional[int] = None
    ticker_enabled: bool = True

    # только для отображения
    pod_name: str = "unknown"
    namespace: str = "unknown"

    def validate(self) -> "SimulatorConfig":
        self.signal.validate()
        self.shadow.validate()
        if self.tick_interval <= 0:
            raise ConfigError(f"tick_interval must be positive, got {self.tick_interval}")
        if self.shadow.max_cpu_burn_ms >= self.tick_interval * 1000.0:
            raise ConfigError(
                f"max_cpu_burn_ms ({self.shadow.max_cpu_burn_ms}) must fit into "
                f"tick_interval ({self.tick_interval}s)"
            )
        return self


# ---------------------------------------------------------------------------
# Загрузка из окружения
# ---------------------------------------------------------------------------

_SIGNAL_ENV = {
    "WLSIM_PEAK_SECONDS": ("peak_duration", float),
    "WLSIM_OFF_SECONDS": ("off_duration", float),
    "WLSIM_RAMP_SECONDS": ("ramp_duration", float),
    "WLSIM_PEAK_BASE": ("peak_base_level", float),
    "WLSIM_OFF_BASE": ("off_base_level", float),
    "WLSIM_MIN_USERS": ("min_users", int),
    "WLSIM_MAX_USERS": ("max_users", int),
    "WLSIM_BURST_PROBABILITY": ("burst_probability", float),
    "WLSIM_BURST_MULTIPLIER": ("burst_multiplier", float),
}

_SHADOW_ENV = {
    "WLSIM_PER_USER_MB": ("per_user_mb", float),
    "WLSIM_HYSTERESIS_MB": ("hysteresis_mb", float),
    "WLSIM_CPU_MS_PER_USER": ("cpu_ms_per_user", float),
    "WLSIM_MAX_CPU_BURN_MS": ("max_cpu_burn_ms", float),
}


def _parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {raw!r}")


def _read(environ: Mapping[str, str], name: str, conv: Callable[[str], T]) -> Optional[T]:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return conv(raw.strip())
    except ValueError as e:
        raise ConfigError(f"{name}={raw!r} is not valid: {e}") from e


def _overrides(environ: Mapping[str, str], table) -> dict:
    result = {}
    for env_name, (attr, conv) in table.items():
        value = _read(environ, env_name, conv)
        if value is not None:
            result[attr] = value
    return result


def load_config_from_env(environ: Optional[Mapping[str, str]] = None) -> SimulatorConfig:
    """Собирает и валидирует SimulatorConfig из переменных WLSIM_*."""
    env = os.environ if environ is None else environ

    signal = replace(SignalConfig(), **_overrides(env, _SIGNAL_ENV))
    shadow = replace(ShadowConfig(), **_overrides(env, _SHADOW_ENV))

    kwargs = {}
    tick = _read(env, "WLSIM_TICK_INTERVAL", float)
    if tick is not None:
        kwargs["tick_interval"] = tick
    seed = _read(env, "WLSIM_SEED", int)
    if seed is not None:
        kwargs["seed"] = seed
    enabled = _read(env, "WLSIM_TICKER_ENABLED", _parse_bool)
    if enabled is not None:
        kwargs["ticker_enabled"] = enabled

    cfg = SimulatorConfig(
        signal=signal,
        shadow=shadow,
        pod_name=env.get("HOSTNAME", "unknown"),
        namespace=env.get("NAMESPACE", "unknown"),
        **kwargs,
    )
    return cfg.validate()
