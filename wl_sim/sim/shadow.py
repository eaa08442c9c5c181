# wl_sim/sim/shadow.py
from __future__ import annotations

import logging
from typing import Optional

from ..config import ShadowConfig
from ..model.entities import ShadowResult
from ..types import Megabytes, Millis
from .cpu import CpuBurner, burn_cpu
from .memory_pool import MemoryPool
from .signal import round_half_up

log = logging.getLogger(__name__)


def memory_target_mb(config: ShadowConfig, users: int) -> Megabytes:
    return Megabytes(round_half_up(users * config.per_user_mb))


def cpu_budget_ms(config: ShadowConfig, users: int) -> Millis:
    return Millis(min(config.max_cpu_burn_ms, max(0, users) * config.cpu_ms_per_user))


class ResourceShadowController:
    """
    Переводит текущую нагрузку в CPU-burn и удерживаемую память.

    Явных состояний нет: шаг это реактивная функция от
    (текущий размер пула, target_mb). Память освобождаем только за
    пределами гистерезиса, рост к более высокой цели не задерживаем.
    """

    def __init__(
        self,
        config: ShadowConfig,
        pool: Optional[MemoryPool] = None,
        burner: Optional[CpuBurner] = None,
    ):
        self.config = config
        self.pool = pool or MemoryPool(block_mb=config.block_mb)
        self._burner = burner or burn_cpu

    def burn(self, users: int) -> tuple[Millis, Millis]:
        budget = cpu_budget_ms(self.config, users)
        spent = Millis(float(self._burner(budget)))
        return budget, spent

    def adjust_memory(self, users: int) -> tuple[Megabytes, Megabytes, Megabytes, bool]:
        """Возвращает (target_mb, size_before, size_after, allocation_failed)."""
        target = memory_target_mb(self.config, users)
        before = self.pool.size_mb()
        failed = False

        if before < target:
            failed = not self.pool.grow_to(target)
        elif before > target + self.config.hysteresis_mb:
            removed = self.pool.shrink_to(target)
            log.debug("Released %d block(s), target %d MB", removed, target)

        return target, before, self.pool.size_mb(), failed

    def step(self, users: int) -> ShadowResult:
        budget, spent = self.burn(users)
        target, before, after, failed = self.adjust_memory(users)
        return ShadowResult(
            cpu_budget_ms=budget,
            cpu_ms=spent,
            target_mb=target,
            pool_mb_before=before,
            pool_mb=after,
            allocation_failed=failed,
        )
