import pytest
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from sprintboard.core.config import Settings
from sprintboard.db.session import Database


@pytest.fixture()
def break_store(client, settings, tmp_path, monkeypatch):
    """Returns a callable that swaps the app's store for one that cannot open."""
    handles = []

    def _break():
        broken = Database(
            Settings(
                DATABASE_URL=f"sqlite:///{tmp_path / 'missing-dir' / 'store.sqlite'}",
                JWT_SECRET=settings.JWT_SECRET,
                DB_TIMEOUT_S=1,
            )
        )
        handles.append(broken)
        monkeypatch.setattr(client.app.state, "database", broken)

    yield _break
    for h in handles:
        h.dispose()


def _assert_upstream_failure(res):
    assert res.status_code == 503
    body = res.json()
    assert body["code"] == "upstream_failure"
    assert body["retryable"] is True
    assert "totals" not in body
    assert "no-store" in res.headers["cache-control"]


def test_dbcheck_ok(client):
    body = client.get("/api/dbcheck").json()
    assert body["ok"] is True
    assert body["ms"] >= 0


def test_dbcheck_reports_unreachable_store(client, break_store):
    break_store()
    _assert_upstream_failure(client.get("/api/dbcheck"))
    # Liveness does not depend on the store
    assert client.get("/health").json() == {"ok": True}


def test_reads_and_writes_are_503_not_empty(client, make_user, auth, break_store):
    make_user("Alice", team="Blue")
    headers = auth("alice")
    break_store()

    for path in ("/api/scoreboard", "/api/leaderboard", "/api/player/avg", "/api/player/runs"):
        _assert_upstream_failure(client.get(path, headers=headers))

    res = client.post("/api/runs/submit", json={"duration_ms": 7000}, headers=headers)
    _assert_upstream_failure(res)


@pytest.mark.parametrize(
    "exc",
    [
        OperationalError("select 1", {}, Exception("server closed the connection")),
        InterfaceError("select 1", {}, Exception("connection already closed")),
        PoolTimeoutError("QueuePool limit reached, connection timed out"),
    ],
)
def test_store_errors_map_to_503(client, monkeypatch, exc):
    def ping(self):
        raise exc

    monkeypatch.setattr(Database, "ping", ping)
    _assert_upstream_failure(client.get("/api/dbcheck"))
