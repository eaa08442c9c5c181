# wl_sim/types.py
from __future__ import annotations

from typing import NewType


# Нагрузка
Users = NewType("Users", int)  # одновременные (симулированные) пользователи

# Ресурсы
Megabytes = NewType("Megabytes", int)  # MiB, размер пула держим целыми блоками
Millis = NewType("Millis", float)      # миллисекунды CPU-burn

# Время
Seconds = NewType("Seconds", float)    # секунды с момента старта процесса
