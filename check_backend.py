# check_backend.py
from __future__ import annotations

import argparse
import time

import requests

from wl_sim.config import load_config_from_env
from wl_sim.sim.signal import base_level_at


def fetch_status(base_url: str) -> dict:
    resp = requests.get(f"{base_url}/api/status", timeout=10)
    resp.raise_for_status()
    return resp.json()


def check_config(status: dict, expected) -> list[str]:
    """Сверяем конфиг сервера с локальным (из тех же WLSIM_* переменных)."""
    problems = []
    sim = status["simulation"]
    s = expected.signal
    pairs = [
        ("peak_base", sim["peak_base"], s.peak_base_level),
        ("off_base", sim["off_base"], s.off_base_level),
        ("min_users", sim["min_users"], s.min_users),
        ("max_users", sim["max_users"], s.max_users),
        ("cycle_minutes", sim["cycle_minutes"], s.cycle_length / 60),
    ]
    for name, api_val, cli_val in pairs:
        if abs(float(api_val) - float(cli_val)) > 1e-6:
            problems.append(f"{name}: API={api_val}, CLI={cli_val}")
    return problems


def check_invariants(status: dict, expected) -> list[str]:
    problems = []
    s = expected.signal
    users = status["simulation"]["current_users"]
    if users is not None and not (s.min_users <= users <= s.upper_bound):
        problems.append(f"current_users={users} outside [{s.min_users}, {s.upper_bound}]")

    held = status["memory"]["held_blocks_mb"]
    target = status["simulation"]["target_mem_mb"]
    if held > target + expected.shadow.hysteresis_mb:
        problems.append(f"held_blocks_mb={held} above target {target} + hysteresis")

    stats = status["stats"]
    if stats["peak_users"] < (users or 0):
        problems.append(f"peak_users={stats['peak_users']} below current users {users}")
    return problems


def check_monotonic(first: dict, second: dict) -> list[str]:
    problems = []
    for key in ("tick_count", "total_requests", "peak_users", "peak_cpu_ms", "peak_pool_mb"):
        a, b = first["stats"][key], second["stats"][key]
        if b < a:
            problems.append(f"{key} decreased: {a} -> {b}")
    return problems


def main():
    parser = argparse.ArgumentParser(description="Smoke-check a running workload simulator")
    parser.add_argument("--url", default="http://127.0.0.1:8080")
    parser.add_argument("--wait", type=float, default=5.0, help="Seconds between two status polls")
    args = parser.parse_args()

    expected = load_config_from_env()

    print("Fetching API status...")
    first = fetch_status(args.url)
    time.sleep(args.wait)
    second = fetch_status(args.url)

    sim = second["simulation"]
    _phase, _pos, base = base_level_at(expected.signal, second["uptime_seconds"])
    print(f"- phase:  {sim['phase']}")
    print(f"  users:  API={sim['current_users']}, expected base ~{base:.1f}")
    print(f"  memory: held={second['memory']['held_blocks_mb']} MB, target={sim['target_mem_mb']} MB")
    print(f"  ticks:  {first['stats']['tick_count']} -> {second['stats']['tick_count']}")
    print()

    problems = check_config(second, expected) + check_invariants(second, expected)
    problems += check_monotonic(first, second)
    if problems:
        for p in problems:
            print(f"FAIL {p}")
        raise SystemExit(1)
    print("OK")


if __name__ == "__main__":
    main()
