# wl_sim/sim/preview_cli.py
from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, List

from ..config import ConfigError, load_config_from_env
from ..model.entities import SignalSample
from .simulate import simulate_series


def samples_to_rows(samples: List[SignalSample]) -> List[Dict[str, Any]]:
    return [
        {
            "elapsed_s": s.elapsed,
            "phase": s.phase.value,
            "base_level": round(s.base_level, 3),
            "users": int(s.users),
            "burst": s.is_burst,
        }
        for s in samples
    ]


# ---------------------------
# CLI
# ---------------------------


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Print the simulated users curve (WLSIM_* env vars apply).",
    )
    parser.add_argument("--step", type=float, default=60.0, help="Шаг в секундах (по умолчанию 60).")
    parser.add_argument("--cycles", type=float, default=1.0, help="Сколько циклов сэмплировать.")
    parser.add_argument("--seed", type=int, help="Seed для шума и всплесков.")
    parser.add_argument(
        "--no-noise",
        action="store_true",
        help="Только детерминированная база, без шума и всплесков.",
    )
    parser.add_argument(
        "--out",
        help="Путь к JSON-файлу для записи результата. Если не указан, печатаем в stdout.",
    )
    return parser.parse_args(argv)


def main_cli(argv=None) -> int:
    args = _parse_args(argv)
    try:
        cfg = load_config_from_env()
        samples = simulate_series(
            cfg.signal,
            step=args.step,
            cycles=args.cycles,
            noise=not args.no_noise,
            seed=args.seed,
        )
    except (ConfigError, ValueError) as e:
        print(f"error: {e}")
        return 2

    data = {
        "cycle_length_s": cfg.signal.cycle_length,
        "step_s": args.step,
        "points": samples_to_rows(samples),
    }

    if args.out:
        Path(args.out).write_text(json.dumps(data, indent=2))
        print(f"Written {len(samples)} points to {args.out}")
    else:
        print(json.dumps(data, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main_cli())
