# wl_sim/sim/memory_pool.py
from __future__ import annotations

import logging
import random
import threading
from typing import Callable, List, Optional

from ..types import Megabytes

log = logging.getLogger(__name__)

MIB = 1024 * 1024

# block_factory(size_bytes) -> буфер; MemoryError = давление по памяти
BlockFactory = Callable[[int], bytes]


def default_block_factory(size_bytes: int) -> bytes:
    # Заполняем случайным байтом, чтобы страницы реально закоммитились.
    return bytes([random.randrange(256)]) * size_bytes


class MemoryPool:
    """
    Упорядоченный набор блоков фиксированного размера ("сессии/кэш").

    Растёт добавлением в конец, сжимается удалением с конца.
    Мутации и чтение размера идут под одним локом, так что читатель
    статуса не увидит пул посреди изменения.
    """

    def __init__(self, block_mb: int = 1, block_factory: Optional[BlockFactory] = None):
        if block_mb <= 0:
            raise ValueError(f"block_mb must be positive, got {block_mb}")
        self.block_mb = block_mb
        self._block_factory = block_factory or default_block_factory
        self._blocks: List[bytes] = []
        self._lock = threading.Lock()

    @property
    def block_count(self) -> int:
        with self._lock:
            return len(self._blocks)

    def size_mb(self) -> Megabytes:
        with self._lock:
            return Megabytes(len(self._blocks) * self.block_mb)

    def grow_to(self, target_mb: float) -> bool:
        """
        Добавляет блоки, пока размер < target_mb.

        Возвращает False, если аллокация упала: рост на этом тике
        прекращается, ошибка наружу не выходит.
        """
        size_bytes = self.block_mb * MIB
        with self._lock:
            while len(self._blocks) * self.block_mb < target_mb:
                try:
                    block = self._block_factory(size_bytes)
                except MemoryError:
                    log.warning(
                        "Memory block allocation failed at %d MB (target %.1f MB); growth paused",
                        len(self._blocks) * self.block_mb,
                        target_mb,
                    )
                    return False
                self._blocks.append(block)
        return True

    def shrink_to(self, target_mb: float) -> int:
        """Снимает блоки с конца, пока размер > target_mb. Возвращает число снятых."""
        removed = 0
        with self._lock:
            while self._blocks and len(self._blocks) * self.block_mb > target_mb:
                self._blocks.pop()
                removed += 1
        return removed

    def clear(self) -> None:
        with self._lock:
            self._blocks.clear()
