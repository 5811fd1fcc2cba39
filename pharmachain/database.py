"""
Database engine initialisation and the local key/value table that backs
the persisted session.
"""

import sys
from typing import Optional

from sqlalchemy import create_engine, text

from pharmachain.config import DB_URI


def init_engine(db_uri: Optional[str] = None):
    """Create a SQLAlchemy engine, verify the connection and ensure the schema."""
    uri = db_uri or DB_URI
    engine = create_engine(uri, echo=False, future=True)
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        print("ERROR: could not open local storage:", e, file=sys.stderr)
        sys.exit(1)
    ensure_schema(engine)
    print(f"[init] Local storage ready ({engine.url.drivername}).")
    return engine


def ensure_schema(engine) -> None:
    with engine.begin() as conn:
        conn.execute(text("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key   VARCHAR(128) PRIMARY KEY,
                value TEXT NOT NULL
            )
        """))


def kv_get(engine, key: str) -> Optional[str]:
    with engine.connect() as conn:
        row = conn.execute(
            text("SELECT value FROM kv_store WHERE key = :k"), {"k": key}
        ).mappings().first()
    return row["value"] if row else None


def kv_set(engine, key: str, value: str) -> None:
    with engine.begin() as conn:
        conn.execute(text("DELETE FROM kv_store WHERE key = :k"), {"k": key})
        conn.execute(text("INSERT INTO kv_store (key, value) VALUES (:k, :v)"), {"k": key, "v": value})


def kv_delete(engine, key: str) -> None:
    with engine.begin() as conn:
        conn.execute(text("DELETE FROM kv_store WHERE key = :k"), {"k": key})
