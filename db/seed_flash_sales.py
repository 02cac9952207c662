"""
Seed script: demo goods covering every sale state, plus a demo viewer
"""
import os
import sqlite3
import sys
from datetime import datetime, timedelta
from pathlib import Path

from werkzeug.security import generate_password_hash


def demo_goods(now: datetime):
    return [
        {
            'name': 'Lightning Laptop Pro',
            'title': '14-inch ultralight',
            'price_cents': 129999,
            'flash_price_cents': 99999,
            'stock': 15,
            'sale_start': now - timedelta(hours=1),  # active
            'sale_end': now + timedelta(hours=2),
        },
        {
            'name': 'Flash Gaming Mouse',
            'title': 'Wireless, 26k DPI',
            'price_cents': 7999,
            'flash_price_cents': 4999,
            'stock': 50,
            'sale_start': now + timedelta(minutes=30),  # not started
            'sale_end': now + timedelta(hours=4),
        },
        {
            'name': 'Quick Charge Power Bank',
            'title': '20000 mAh',
            'price_cents': 4999,
            'flash_price_cents': 2999,
            'stock': 8,
            'sale_start': now - timedelta(hours=3),  # ended
            'sale_end': now - timedelta(hours=1),
        },
    ]


def seed_flash_sales(db_path: str, now: datetime = None) -> int:
    """Insert or refresh the demo goods; returns how many were written"""
    now = now or datetime.now()
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row

    try:
        written = 0
        for goods in demo_goods(now):
            existing = conn.execute(
                "SELECT id FROM product WHERE name = ?",
                (goods['name'],)
            ).fetchone()
            values = (
                goods['title'],
                goods['price_cents'],
                goods['flash_price_cents'],
                goods['stock'],
                goods['sale_start'].isoformat(),
                goods['sale_end'].isoformat(),
                goods['name'],
            )
            if existing:
                conn.execute("""
                    UPDATE product
                    SET title = ?, price_cents = ?, flash_price_cents = ?,
                        stock = ?, sale_start = ?, sale_end = ?, active = 1
                    WHERE name = ?
                """, values)
                print(f"Updated: {goods['name']}")
            else:
                conn.execute("""
                    INSERT INTO product (title, price_cents, flash_price_cents, stock, sale_start, sale_end, name, active)
                    VALUES (?, ?, ?, ?, ?, ?, ?, 1)
                """, values)
                print(f"Created: {goods['name']}")
            written += 1

        if conn.execute("SELECT id FROM user WHERE username = ?", ("demo",)).fetchone() is None:
            conn.execute(
                "INSERT INTO user (name, username, password) VALUES (?, ?, ?)",
                ("Demo Viewer", "demo", generate_password_hash("demo", method="pbkdf2:sha256")),
            )

        conn.commit()
        return written
    except sqlite3.Error:
        conn.rollback()
        raise
    finally:
        conn.close()


if __name__ == "__main__":
    root = Path(__file__).resolve().parents[1]
    db_path = Path(os.environ.get("APP_DB_PATH") or root / "app.sqlite")

    if not db_path.exists():
        print("Database not found at", db_path)
        print("Run `python -m salepages.main` first to create the database")
        sys.exit(1)

    count = seed_flash_sales(str(db_path))
    print(f"\nSeeded {count} goods. Start the app and visit: http://127.0.0.1:5000/goods/to_list")
