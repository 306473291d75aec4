import sqlite3, os, pathlib
from functools import wraps

from errors import StorageError

DB_PATH = os.environ.get("DREAM_DB", "user_attempts.db")

SCHEMA = """
PRAGMA journal_mode=WAL;
CREATE TABLE IF NOT EXISTS attempts (
  userId TEXT PRIMARY KEY,
  attempts INTEGER NOT NULL DEFAULT 0,
  lastAttempt INTEGER NOT NULL
);
"""

def _storage(fn):
    @wraps(fn)
    def w(*a, **k):
        try:
            return fn(*a, **k)
        except sqlite3.Error as e:
            raise StorageError(e) from e
    return w

def get_conn():
    need_init = not pathlib.Path(DB_PATH).exists()
    conn = sqlite3.connect(DB_PATH, check_same_thread=False, timeout=10)
    conn.row_factory = sqlite3.Row
    if need_init:
        try:
            conn.executescript(SCHEMA)
            conn.commit()
        except sqlite3.Error:
            conn.close()
            raise
    return conn

@_storage
def init_db():
    conn = get_conn()
    try:
        conn.executescript(SCHEMA)
        conn.commit()
    finally:
        conn.close()

# Attempts
@_storage
def get_attempt(user_id):
    conn = get_conn()
    try:
        return conn.execute(
            "SELECT userId, attempts, lastAttempt FROM attempts WHERE userId=?",
            (user_id,),
        ).fetchone()
    finally:
        conn.close()

@_storage
def reset_attempts(user_id, now, cooldown_ms):
    """
    Zero the counter of a stale window.
    The staleness test is repeated in SQL so a reset never wipes an
    increment that landed after the caller read the row.
    """
    conn = get_conn()
    try:
        conn.execute(
            "UPDATE attempts SET attempts=0 WHERE userId=? AND ? - lastAttempt >= ?",
            (user_id, now, cooldown_ms),
        )
        conn.commit()
    finally:
        conn.close()

@_storage
def inc_attempt(user_id, now):
    conn = get_conn()
    try:
        conn.execute(
            """
            INSERT INTO attempts (userId, attempts, lastAttempt)
            VALUES (?, 1, ?)
            ON CONFLICT(userId) DO UPDATE SET
                attempts=attempts + 1,
                lastAttempt=excluded.lastAttempt
            """,
            (user_id, now),
        )
        conn.commit()
    finally:
        conn.close()

@_storage
def consume_attempt(user_id, now, max_attempts, cooldown_ms):
    """
    Conditional upsert: start a new window, increment an open one, or
    leave a full one untouched. Returns True when a row was written.
    """
    conn = get_conn()
    try:
        cur = conn.execute(
            """
            INSERT INTO attempts (userId, attempts, lastAttempt)
            VALUES (?, 1, ?)
            ON CONFLICT(userId) DO UPDATE SET
                attempts=CASE
                    WHEN excluded.lastAttempt - attempts.lastAttempt >= ? THEN 1
                    ELSE attempts.attempts + 1
                END,
                lastAttempt=excluded.lastAttempt
            WHERE excluded.lastAttempt - attempts.lastAttempt >= ?
               OR attempts.attempts < ?
            """,
            (user_id, now, cooldown_ms, cooldown_ms, max_attempts),
        )
        conn.commit()
        return cur.rowcount > 0
    finally:
        conn.close()
