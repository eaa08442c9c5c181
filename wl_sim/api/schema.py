# wl_sim/api/schema.py
from __future__ import annotations

from typing import List, Optional
from pydantic import BaseModel

class SimulationModel(BaseModel):
    current_users: Optional[int]
    phase: Optional[str]
    target_mem_mb: int
    cycle_minutes: float
    peak_minutes: float
    off_minutes: float
    ramp_minutes: float
    peak_base: float
    off_base: float
    max_users: int
    min_users: int
    burst_probability: float
    burst_multiplier: float
    tick_interval_ms: int

class MemoryModel(BaseModel):
    rss_mb: int
    held_blocks_mb: int

class StatsModel(BaseModel):
    total_requests: int
    tick_count: int
    peak_users: int
    peak_cpu_ms: float
    peak_pool_mb: int
    last_burst: Optional[str]

class StatusResponse(BaseModel):
    pod: str
    namespace: str
    memory_limit_mb: Optional[int]
    uptime: str
    uptime_seconds: int
    simulation: SimulationModel
    memory: MemoryModel
    stats: StatsModel

class PreviewPointModel(BaseModel):
    elapsed_s: float
    phase: str
    base_level: float
    users: int
    burst: bool

class PreviewResponse(BaseModel):
    cycle_length_s: float
    step_s: float
    noise: bool
    points: List[PreviewPointModel]
