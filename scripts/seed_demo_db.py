#!/usr/bin/env python3
"""
Seed a local SQLite database with demo tables for Codegen development.
Usage (from the repository root):
    python scripts/seed_demo_db.py
    DATABASE_URL=sqlite:///scripts/demo.db uvicorn main:app --app-dir backend
Creates: scripts/demo.db
"""
import sqlite3
import random
from datetime import datetime, timedelta
from pathlib import Path

DB_PATH = Path(__file__).parent / "demo.db"

DDL = [
    """
    CREATE TABLE IF NOT EXISTS la_demo_order (
        id           INTEGER PRIMARY KEY AUTOINCREMENT,
        order_no     VARCHAR(32)  NOT NULL,
        buyer_name   VARCHAR(64)  NOT NULL,
        buyer_mobile VARCHAR(20),
        amount       DECIMAL(10,2) NOT NULL DEFAULT 0,
        status       TINYINT      NOT NULL DEFAULT 0,
        pay_type     TINYINT      NOT NULL DEFAULT 1,
        remark       TEXT,
        create_time  DATETIME,
        update_time  DATETIME,
        delete_time  DATETIME
    )""",
    """
    CREATE TABLE IF NOT EXISTS la_article (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        cid         INTEGER      NOT NULL,
        title       VARCHAR(200) NOT NULL,
        intro       VARCHAR(600),
        cover_image VARCHAR(255),
        content     LONGTEXT,
        is_show     TINYINT      NOT NULL DEFAULT 1,
        is_delete   TINYINT      NOT NULL DEFAULT 0,
        create_time DATETIME,
        update_time DATETIME
    )""",
    """
    CREATE TABLE IF NOT EXISTS la_article_cate (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        pid         INTEGER      NOT NULL DEFAULT 0,
        name        VARCHAR(60)  NOT NULL,
        sort        INTEGER      NOT NULL DEFAULT 0,
        is_disable  TINYINT      NOT NULL DEFAULT 0,
        create_time DATETIME,
        update_time DATETIME
    )""",
    # Hidden from the generator by prefix
    """
    CREATE TABLE IF NOT EXISTS qrtz_triggers (
        trigger_name  VARCHAR(200) PRIMARY KEY,
        next_fire     DATETIME
    )""",
]

STATUSES = [0, 1, 2, 3]
NAMES = ["Alice", "Bob", "Chen", "Dana", "Emeka", "Farah"]
CATES = [(1, 0, "News"), (2, 1, "Company"), (3, 1, "Industry"), (4, 0, "Guides")]


def seed(conn: sqlite3.Connection) -> None:
    cur = conn.cursor()
    for stmt in DDL:
        cur.execute(stmt)

    now = datetime.utcnow()
    for i in range(50):
        ts = (now - timedelta(days=random.randint(0, 90))).strftime("%Y-%m-%d %H:%M:%S")
        cur.execute(
            "INSERT INTO la_demo_order (order_no, buyer_name, buyer_mobile, amount, status, pay_type, remark, create_time, update_time) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (f"NO{100000 + i}", random.choice(NAMES), f"1380000{i:04d}",
             round(random.uniform(5, 500), 2), random.choice(STATUSES), random.randint(1, 3), "", ts, ts),
        )

    for cid, pid, name in CATES:
        cur.execute(
            "INSERT OR IGNORE INTO la_article_cate (id, pid, name, sort) VALUES (?, ?, ?, ?)",
            (cid, pid, name, cid),
        )
    for i in range(10):
        cur.execute(
            "INSERT INTO la_article (cid, title, intro, content, create_time) VALUES (?, ?, ?, ?, ?)",
            (random.choice(CATES)[0], f"Article {i}", "Short intro", "<p>Body</p>", now.strftime("%Y-%m-%d %H:%M:%S")),
        )
    conn.commit()


if __name__ == "__main__":
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(DB_PATH) as conn:
        seed(conn)
    print(f"Seeded demo database at {DB_PATH}")
