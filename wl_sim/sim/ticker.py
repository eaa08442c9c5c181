# wl_sim/sim/ticker.py
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

log = logging.getLogger(__name__)


class PeriodicTicker:
    """
    Вызывает fn раз в interval секунд в одном фоновом потоке.

    Тики не перекрываются: следующий стартует только после завершения
    предыдущего. Если тик не уложился в интервал, пропущенные слоты
    не догоняем. Остановка между тиками безопасна, дренировать нечего.
    """

    def __init__(
        self,
        fn: Callable[[], object],
        interval: float,
        name: str = "wl-sim-ticker",
        clock: Callable[[], float] = time.monotonic,
    ):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._fn = fn
        self.interval = interval
        self._name = name
        self._clock = clock
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()
        log.info("Ticker started, interval %.2fs", self.interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None
        log.info("Ticker stopped")

    def _run(self) -> None:
        next_at = self._clock() + self.interval
        while not self._stop.wait(max(0.0, next_at - self._clock())):
            try:
                self._fn()
            except Exception:
                log.exception("Simulation tick failed")
            now = self._clock()
            next_at += self.interval
            if next_at <= now:
                next_at = now + self.interval
