from __future__ import annotations

import os
from pathlib import Path

from .dao import get_connection


ROOT = Path(__file__).resolve().parents[1]
DEFAULT_DB_PATH = os.environ.get("APP_DB_PATH", str(ROOT / "app.sqlite"))
INIT_SQL = ROOT / "db" / "init.sql"


def init_db(db_path: str = DEFAULT_DB_PATH, schema_path: Path = INIT_SQL) -> str:
	"""Create/connect to the SQLite goods DB and apply the schema file.

	The schema uses IF NOT EXISTS throughout, so this is safe to run on
	every application start.
	"""
	Path(db_path).parent.mkdir(parents=True, exist_ok=True)
	conn = get_connection(db_path)
	try:
		if schema_path.exists():
			sql = schema_path.read_text(encoding="utf-8")
			if sql.strip():
				conn.executescript(sql)
				conn.commit()
	finally:
		conn.close()
	return db_path


if __name__ == "__main__":
	path = init_db()
	print(f"Initialized SQLite DB at: {path}")
	print("Set APP_DB_PATH to override location.")
