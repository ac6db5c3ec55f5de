from __future__ import annotations

import os
from pathlib import Path


def _parse_env_line(line: str) -> tuple[str, str] | None:
    line = line.strip()
    if not line or line.startswith("#"):
        return None
    if line.startswith("export "):
        line = line[len("export "):]
    if "=" not in line:
        return None
    key, value = line.split("=", 1)
    key = key.strip()
    value = value.strip()
    if not key:
        return None
    # Strip optional quotes: KEY="value" or KEY='value'
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        value = value[1:-1]
    return key, value


def load_env_if_present(*, override: bool = False) -> None:
    """Load .env files into process env if present.

    - Searches repo root `.env` then `backend/.env` (if exist).
    - Does NOT override existing environment variables unless override=True.
    """

    # backend/restful_api/core/env.py -> core -> restful_api -> backend -> repo root
    repo_root = Path(__file__).resolve().parents[3]
    candidates = [
        repo_root / ".env",
        repo_root / "backend" / ".env",
    ]

    for p in candidates:
        if not p.is_file():
            continue
        try:
            content = p.read_text(encoding="utf-8")
        except OSError:
            continue
        for raw in content.splitlines():
            parsed = _parse_env_line(raw)
            if not parsed:
                continue
            k, v = parsed
            if not override and k in os.environ:
                continue
            os.environ[k] = v


def env_str(name: str, default: str) -> str:
    """Read from the process env only; `.env` files are loaded once at startup."""
    value = os.environ.get(name, "").strip()
    return value or default


def env_int(name: str, default: int) -> int:
    raw = env_str(name, "")
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"Env var {name} must be an integer (got {raw!r}).") from exc
