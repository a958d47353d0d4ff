from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict


def config_path() -> str:
    return os.getenv("SESSION_LEDGER_CONFIG", "session_ledger.json")


@lru_cache(maxsize=1)
def load_config(path: str = "session_ledger.json") -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        return {}
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def _get(cfg: Dict[str, Any], *path: str, default: Any = None) -> Any:
    cur: Any = cfg
    for k in path:
        if not isinstance(cur, dict) or k not in cur:
            return default
        cur = cur[k]
    return cur


def _int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def db_path() -> str:
    env = os.getenv("LEDGER_DB_PATH")
    if env:
        return env
    cfg = load_config(config_path())
    return str(_get(cfg, "data", "db_path", default="./data/session_ledger.db"))


def busy_timeout_ms() -> int:
    cfg = load_config(config_path())
    return _int(_get(cfg, "data", "busy_timeout_ms", default=5000), 5000)


def server_host() -> str:
    env = os.getenv("LEDGER_HOST")
    if env:
        return env
    cfg = load_config(config_path())
    return str(_get(cfg, "server", "host", default="127.0.0.1"))


def server_port() -> int:
    env = os.getenv("LEDGER_PORT")
    if env:
        return _int(env, 8000)
    cfg = load_config(config_path())
    return _int(_get(cfg, "server", "port", default=8000), 8000)


def default_page_limit() -> int:
    cfg = load_config(config_path())
    return max(1, _int(_get(cfg, "api", "default_page_limit", default=50), 50))


def max_page_limit() -> int:
    cfg = load_config(config_path())
    return max(1, _int(_get(cfg, "api", "max_page_limit", default=500), 500))


def log_level() -> str:
    env = os.getenv("LOG_LEVEL")
    if env:
        return env.upper()
    cfg = load_config(config_path())
    return str(_get(cfg, "logging", "level", default="INFO")).upper()
