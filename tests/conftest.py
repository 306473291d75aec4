import pytest

import db
import config_loader

DAY_MS = 24 * 60 * 60 * 1000
HOUR_MS = 60 * 60 * 1000
T0 = 1_700_000_000_000


class FakeClock:
    def __init__(self, now=T0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


@pytest.fixture(autouse=True)
def store(tmp_path, monkeypatch):
    """Point the database and config file at a temporary directory."""
    monkeypatch.setattr(db, "DB_PATH", str(tmp_path / "attempts.db"))
    monkeypatch.setattr(config_loader, "CONFIG_PATH", str(tmp_path / "config.toml"))
    db.init_db()
    return tmp_path


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def seed():
    def _seed(user_id, attempts, last_attempt):
        conn = db.get_conn()
        try:
            conn.execute(
                "INSERT OR REPLACE INTO attempts (userId, attempts, lastAttempt) VALUES (?,?,?)",
                (user_id, attempts, last_attempt),
            )
            conn.commit()
        finally:
            conn.close()
    return _seed
