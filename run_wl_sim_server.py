# run_wl_sim_server.py
import argparse
import logging
import os
import uvicorn

from wl_sim.config import ConfigError, load_config_from_env

# Настраиваем логирование для лаунчера
logging.basicConfig(level=logging.INFO)
log = logging.getLogger("launcher")

def export_overrides(args: argparse.Namespace) -> None:
    """
    Переносит флаги CLI в WLSIM_* переменные окружения.
    Сервер (в том числе перезапущенный reload-ом) читает конфиг только оттуда.
    """
    if args.tick_interval is not None:
        os.environ["WLSIM_TICK_INTERVAL"] = str(args.tick_interval)
    if args.seed is not None:
        os.environ["WLSIM_SEED"] = str(args.seed)

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Workload Simulator Server Launcher")

    parser.add_argument("--tick-interval", type=float, help="Seconds between simulation ticks")
    parser.add_argument("--seed", type=int, help="Seed for noise and burst draws")

    # Стандартные настройки uvicorn
    parser.add_argument("--host", default="0.0.0.0", help="Bind host")
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", "8080")), help="Bind port")
    parser.add_argument("--no-reload", action="store_true", help="Disable auto-reload")

    args = parser.parse_args()
    export_overrides(args)

    # Проверяем конфиг до старта, чтобы не поднимать сервер с мусором
    try:
        load_config_from_env()
    except ConfigError as e:
        log.error(f"Refusing to start: {e}")
        raise SystemExit(2)

    uvicorn.run(
        "wl_sim.api.server:app",
        host=args.host,
        port=args.port,
        reload=not args.no_reload,
    )
