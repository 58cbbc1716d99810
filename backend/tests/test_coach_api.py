import pytest


@pytest.fixture()
def coach(make_user, auth):
    make_user("Coach", role="coach")
    return auth("coach")


@pytest.fixture()
def roster(make_user):
    make_user("Alice", team="Blue")
    make_user("Bob", team="White")
    make_user("Cara", team="Blue")
    make_user("Dan")


def test_players_cannot_use_coach_routes(client, roster, auth):
    alice = auth("alice")
    assert client.get("/api/coach/users", headers=alice).status_code == 403
    assert client.post("/api/coach/runs", json={"username": "bob", "duration_ms": 7000}, headers=alice).status_code == 403
    assert client.post("/api/coach/balance/propose", json={}, headers=alice).status_code == 403


def test_list_users(client, coach, roster):
    users = client.get("/api/coach/users", headers=coach).json()
    assert {u["username"]: u["team"] for u in users} == {
        "Alice": "Blue",
        "Bob": "White",
        "Cara": "Blue",
        "Coach": None,
        "Dan": None,
    }


def test_update_user_role_and_team(client, coach, roster):
    res = client.post("/api/coach/update-user", json={"username": "DAN", "role": "Coach", "team": "white"}, headers=coach)
    assert res.status_code == 200
    assert res.json() == {"username": "Dan", "role": "coach", "team": "White"}

    # team "none" benches the user
    res = client.post("/api/coach/update-user", json={"username": "dan", "team": "None"}, headers=coach)
    assert res.json()["team"] is None
    assert res.json()["role"] == "coach"


def test_update_user_errors(client, coach, roster):
    res = client.post("/api/coach/update-user", json={"username": "nobody", "team": "Blue"}, headers=coach)
    assert res.status_code == 404
    assert res.json()["code"] == "not_found"

    res = client.post("/api/coach/update-user", json={"username": "dan", "role": "admin"}, headers=coach)
    assert res.status_code == 400

    res = client.post("/api/coach/set-team", json={"username": "dan", "team": "Red"}, headers=coach)
    assert res.status_code == 400

    res = client.post("/api/coach/update-user", json={"username": "dan"}, headers=coach)
    assert res.status_code == 400


def test_coach_run_crud(client, coach, roster):
    res = client.post("/api/coach/runs", json={"username": "Alice", "duration_ms": 7000}, headers=coach)
    assert res.status_code == 201
    run_id = res.json()["id"]

    # Unknown usernames are stored, they just never count for a team
    assert client.post("/api/coach/runs", json={"username": "ghost", "duration_ms": 5000}, headers=coach).status_code == 201

    rows = client.get("/api/coach/runs", headers=coach).json()
    assert {(r["username"], r["team"]) for r in rows} == {("alice", "Blue"), ("ghost", None)}

    res = client.patch(f"/api/coach/runs/{run_id}", json={"duration_ms": 6500}, headers=coach)
    assert res.status_code == 200
    assert res.json()["duration_ms"] == 6500

    res = client.patch(f"/api/coach/runs/{run_id}", json={"username": "bob"}, headers=coach)
    assert res.json()["username"] == "bob"

    res = client.patch(f"/api/coach/runs/{run_id}", json={"duration_ms": 0}, headers=coach)
    assert res.status_code == 400

    assert client.delete(f"/api/coach/runs/{run_id}", headers=coach).status_code == 200
    assert client.delete(f"/api/coach/runs/{run_id}", headers=coach).status_code == 404
    assert client.patch(f"/api/coach/runs/{run_id}", json={"duration_ms": 7000}, headers=coach).status_code == 404


def test_coach_run_rejects_infinite_duration(client, coach, roster):
    headers = {**coach, "Content-Type": "application/json"}
    res = client.post("/api/coach/runs", content='{"username": "alice", "duration_ms": 1e400}', headers=headers)
    assert res.status_code == 400

    run_id = client.post("/api/coach/runs", json={"username": "alice", "duration_ms": 7000}, headers=coach).json()["id"]
    res = client.patch(f"/api/coach/runs/{run_id}", content='{"duration_ms": 1e400}', headers=headers)
    assert res.status_code == 400
    assert client.get("/api/coach/runs", headers=coach).json()[0]["duration_ms"] == 7000


def test_deleting_a_run_frees_a_daily_slot(client, coach, roster, auth):
    alice = auth("alice")
    ids = [
        client.post("/api/runs/submit", json={"duration_ms": 7000}, headers=alice).json()["id"]
        for _ in range(10)
    ]
    assert client.post("/api/runs/submit", json={"duration_ms": 7000}, headers=alice).status_code == 400

    client.delete(f"/api/coach/runs/{ids[3]}", headers=coach)
    assert client.post("/api/runs/submit", json={"duration_ms": 7000}, headers=alice).status_code == 201


def test_balance_propose_then_confirm(client, coach, roster):
    for username, ms in [("alice", 10000), ("bob", 12000), ("cara", 11000)]:
        client.post("/api/coach/runs", json={"username": username, "duration_ms": ms}, headers=coach)

    proposal = client.post("/api/coach/balance/propose", json={}, headers=coach).json()
    assert proposal["blue"]["members"] == ["bob"]
    assert proposal["white"]["members"] == ["alice", "cara"]
    assert proposal["delta_ms"] == 9000
    assert proposal["imputed"] == []

    # Nothing changes before confirmation
    users = {u["username"]: u["team"] for u in client.get("/api/coach/users", headers=coach).json()}
    assert users["Bob"] == "White"

    res = client.post(
        "/api/coach/balance/confirm",
        json={"blue": proposal["blue"]["members"], "white": proposal["white"]["members"]},
        headers=coach,
    )
    assert res.status_code == 200
    assert res.json()["blue"]["sum_ms"] == 12000
    assert res.json()["white"]["sum_ms"] == 21000
    assert res.json()["delta_ms"] == 9000

    users = {u["username"]: u["team"] for u in client.get("/api/coach/users", headers=coach).json()}
    assert users["Bob"] == "Blue"
    assert users["Alice"] == "White"

    # Past runs moved with their players
    board = client.get("/api/scoreboard", headers=coach).json()
    assert board["totals"] == {"Blue": 12000, "White": 21000}


def test_balance_imputes_bench_players_when_asked(client, coach, roster):
    client.post("/api/coach/runs", json={"username": "alice", "duration_ms": 9000}, headers=coach)
    client.post("/api/coach/runs", json={"username": "bob", "duration_ms": 11000}, headers=coach)

    proposal = client.post("/api/coach/balance/propose", json={"include_bench": True}, headers=coach).json()
    assert sorted(proposal["imputed"]) == ["cara", "dan"]
    assert proposal["averages"]["dan"] == 10000
    members = proposal["blue"]["members"] + proposal["white"]["members"]
    assert sorted(members) == ["alice", "bob", "cara", "dan"]


def test_balance_rejections(client, coach, roster):
    res = client.post("/api/coach/balance/propose", json={"usernames": ["alice"]}, headers=coach)
    assert res.status_code == 400
    assert res.json()["code"] == "not_enough_players"

    res = client.post("/api/coach/balance/propose", json={"usernames": ["alice", "coach"]}, headers=coach)
    assert res.status_code == 400

    res = client.post("/api/coach/balance/confirm", json={"blue": ["alice"], "white": ["alice"]}, headers=coach)
    assert res.status_code == 400

    res = client.post("/api/coach/balance/confirm", json={"blue": ["alice", "bob", "cara"], "white": ["dan"]}, headers=coach)
    assert res.status_code == 400
