"""Upgrade Alembic to head (no downgrade).

Usage:
  python scripts/migrate_upgrade_head.py [revision]

Reads DATABASE_URL from:
- existing environment
- or `.env` (repo root) / `backend/.env` via restful_api.core.env.load_env_if_present()
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from alembic import command
from alembic.config import Config


ROOT = Path(__file__).resolve().parents[1]
BACKEND_DIR = ROOT / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from restful_api.core.env import load_env_if_present  # noqa: E402


def main(argv: list[str]) -> int:
    load_env_if_present()
    url = os.environ.get("DATABASE_URL")
    if not url:
        print("Missing DATABASE_URL (set env var or create .env).")
        return 2

    revision = argv[0] if argv else "head"
    cfg = Config(str(BACKEND_DIR / "alembic.ini"))
    cfg.set_main_option("script_location", str(BACKEND_DIR / "alembic"))
    cfg.set_main_option("sqlalchemy.url", url)

    print(f"Upgrading Alembic to {revision}…")
    command.upgrade(cfg, revision)
    print(f"PASS: upgraded to {revision}.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
