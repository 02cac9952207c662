from __future__ import annotations

import sqlite3
from contextlib import closing
from datetime import datetime
from typing import Any, Dict, List, Optional

from .errors import DataSourceUnavailable


GOODS_COLUMNS = """
    id, name, title, img, detail, price_cents, flash_price_cents,
    stock, sale_start, sale_end
"""


def get_connection(db_path: str, timeout: float = 5.0) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path, timeout=timeout)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def _parse_instant(value):
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    return value


def _to_record(row: sqlite3.Row) -> Dict[str, Any]:
    record = dict(row)
    record["sale_start"] = _parse_instant(record["sale_start"])
    record["sale_end"] = _parse_instant(record["sale_end"])
    return record


class GoodsRepo:
    """Reads flash sale goods for the page cache.

    Opens one connection per call so a single instance can be shared by
    request threads. Database errors surface as DataSourceUnavailable.
    """

    def __init__(self, db_path: str, timeout: float = 5.0):
        self.db_path = db_path
        self.timeout = timeout

    def fetch_listing(self) -> List[Dict[str, Any]]:
        """All active goods that carry a sale window, soonest end first"""
        rows = self._query(
            f"""
            SELECT {GOODS_COLUMNS}
            FROM product
            WHERE active = 1
              AND flash_price_cents IS NOT NULL
              AND sale_start IS NOT NULL
              AND sale_end IS NOT NULL
            ORDER BY sale_end ASC, id ASC
            """
        )
        return [_to_record(row) for row in rows]

    def fetch_by_id(self, goods_id: int) -> Optional[Dict[str, Any]]:
        rows = self._query(
            f"""
            SELECT {GOODS_COLUMNS}
            FROM product
            WHERE id = ?
              AND active = 1
              AND flash_price_cents IS NOT NULL
              AND sale_start IS NOT NULL
              AND sale_end IS NOT NULL
            """,
            (goods_id,),
        )
        return _to_record(rows[0]) if rows else None

    def _query(self, sql: str, params: tuple = ()) -> List[sqlite3.Row]:
        try:
            with closing(get_connection(self.db_path, self.timeout)) as conn:
                return conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise DataSourceUnavailable(f"Goods query failed: {e}") from e


class UserRepo:
    """Looks up the viewer resolved by the session layer"""

    def __init__(self, db_path: str):
        self.db_path = db_path

    def get_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        try:
            with closing(get_connection(self.db_path)) as conn:
                row = conn.execute(
                    "SELECT id, name, username FROM user WHERE id = ?",
                    (user_id,),
                ).fetchone()
        except sqlite3.Error as e:
            raise DataSourceUnavailable(f"User lookup failed: {e}") from e
        return dict(row) if row else None
