# wl_sim/api/server.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from ..config import ConfigError, SimulatorConfig, load_config_from_env
from ..sim.preview_cli import samples_to_rows
from ..sim.simulate import Simulator, simulate_series
from ..sim.ticker import PeriodicTicker
from .host import format_uptime, memory_limit_mb, process_rss_mb
from .schema import (
    MemoryModel, PreviewPointModel, PreviewResponse, SimulationModel, StatsModel, StatusResponse
)

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

log = logging.getLogger("uvicorn")

# --- STATE ---
SIMULATOR: Simulator | None = None
TICKER: PeriodicTicker | None = None
MEMORY_LIMIT_MB: Optional[int] = None

# --- Helpers ---

def init_simulator(config: SimulatorConfig | None = None, simulator: Simulator | None = None) -> Simulator:
    """Создаёт (или принимает готовый) симулятор и, если разрешено, запускает тикер."""
    global SIMULATOR, TICKER
    shutdown_simulator()

    if simulator is None:
        simulator = Simulator(config or load_config_from_env())
    SIMULATOR = simulator

    cfg = simulator.config
    if cfg.ticker_enabled:
        TICKER = PeriodicTicker(simulator.tick, cfg.tick_interval)
        TICKER.start()
    return simulator

def shutdown_simulator() -> None:
    global SIMULATOR, TICKER
    if TICKER is not None:
        TICKER.stop(timeout=5.0)
    TICKER = None
    if SIMULATOR is not None:
        SIMULATOR.controller.pool.clear()
    SIMULATOR = None

def _require_simulator() -> Simulator:
    if SIMULATOR is None:
        raise HTTPException(status_code=503, detail="Simulator is not initialized")
    return SIMULATOR

@app.on_event("startup")
async def startup_event() -> None:
    global MEMORY_LIMIT_MB
    MEMORY_LIMIT_MB = memory_limit_mb()
    try:
        sim = init_simulator()
    except ConfigError as e:
        log.error(f"Invalid simulator configuration: {e}")
        raise

    s = sim.config.signal
    log.info(f"Memory limit detected: {f'{MEMORY_LIMIT_MB} MB' if MEMORY_LIMIT_MB else 'none'}")
    log.info(
        f"Pattern: {s.peak_duration / 60:g}min peak ({s.peak_base_level:g} users) + "
        f"{s.off_duration / 60:g}min off ({s.off_base_level:g} users) | Ramp: {s.ramp_duration / 60:g}min"
    )

@app.on_event("shutdown")
async def shutdown_event() -> None:
    shutdown_simulator()

# --- Endpoints ---

@app.get("/api/status", response_model=StatusResponse)
def status() -> StatusResponse:
    sim = _require_simulator()
    snap = sim.snapshot()
    state = snap.state
    cfg = sim.config
    s = cfg.signal
    stats = state.stats
    sample = state.last_sample

    return StatusResponse(
        pod=cfg.pod_name,
        namespace=cfg.namespace,
        memory_limit_mb=MEMORY_LIMIT_MB,
        uptime=format_uptime(snap.uptime),
        uptime_seconds=int(snap.uptime),
        simulation=SimulationModel(
            current_users=int(sample.users) if sample else None,
            phase=sample.phase.value if sample else None,
            target_mem_mb=int(state.last_target_mb),
            cycle_minutes=s.cycle_length / 60,
            peak_minutes=s.peak_duration / 60,
            off_minutes=s.off_duration / 60,
            ramp_minutes=s.ramp_duration / 60,
            peak_base=s.peak_base_level,
            off_base=s.off_base_level,
            max_users=s.max_users,
            min_users=s.min_users,
            burst_probability=s.burst_probability,
            burst_multiplier=s.burst_multiplier,
            tick_interval_ms=int(cfg.tick_interval * 1000),
        ),
        memory=MemoryModel(
            rss_mb=process_rss_mb(),
            held_blocks_mb=int(snap.pool_mb),
        ),
        stats=StatsModel(
            total_requests=stats.total_requests,
            tick_count=stats.tick_count,
            peak_users=int(stats.peak_users),
            peak_cpu_ms=round(float(stats.peak_cpu_ms), 3),
            peak_pool_mb=int(stats.peak_pool_mb),
            last_burst=state.last_burst.iso() if state.last_burst else None,
        ),
    )

@app.get("/api/preview", response_model=PreviewResponse)
def preview(
    step: float = Query(60.0, gt=0),
    cycles: float = Query(1.0, gt=0),
    noise: bool = False,
    seed: Optional[int] = None,
) -> PreviewResponse:
    sim = _require_simulator()
    try:
        samples = simulate_series(sim.config.signal, step=step, cycles=cycles, noise=noise, seed=seed)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return PreviewResponse(
        cycle_length_s=sim.config.signal.cycle_length,
        step_s=step,
        noise=noise,
        points=[PreviewPointModel(**row) for row in samples_to_rows(samples)],
    )
