"""Dump the portal's MySQL database into ./backups and prune old dumps.

BACKUP_KEEP (default 14) sets how many dumps are retained.
"""

from __future__ import annotations

import importlib
import os
import subprocess
from datetime import datetime
from pathlib import Path

from config import get_settings_module

BACKUP_DIR = Path(__file__).resolve().parents[1] / "backups"


def dump_command(db_config: dict) -> list[str]:
    return [
        "mysqldump",
        f"--host={db_config['host']}",
        f"--port={db_config.get('port', 3306)}",
        f"--user={db_config['user']}",
        "--single-transaction",
        "--routines",
        "--default-character-set=utf8mb4",
        db_config["database"],
    ]


def prune(directory: Path, database: str, keep: int) -> list[Path]:
    dumps = sorted(directory.glob(f"{database}_*.sql"), reverse=True)
    removed = dumps[keep:]
    for path in removed:
        path.unlink()
    return removed


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = settings.DB_CONFIG
    keep = int(os.getenv("BACKUP_KEEP", "14"))

    BACKUP_DIR.mkdir(parents=True, exist_ok=True)
    out_file = BACKUP_DIR / f"{db_config['database']}_{datetime.now():%Y%m%d_%H%M%S}.sql"

    # MYSQL_PWD keeps the password out of the process list
    env = {**os.environ, "MYSQL_PWD": str(db_config.get("password", ""))}
    try:
        with out_file.open("wb") as f:
            result = subprocess.run(dump_command(db_config), stdout=f, stderr=subprocess.PIPE, env=env)
    except FileNotFoundError:
        raise SystemExit("`mysqldump` が見つかりません。MySQL client tools をインストールしてください。")

    if result.returncode != 0:
        out_file.unlink(missing_ok=True)
        raise SystemExit(f"バックアップに失敗しました: {result.stderr.decode(errors='replace').strip()}")

    removed = prune(BACKUP_DIR, db_config["database"], keep)
    print(f"OK: backup created -> {out_file} (pruned {len(removed)})")


if __name__ == "__main__":
    main()
