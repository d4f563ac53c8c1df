"""
tests/test_router.py - HTTP surface tests.

Uses FastAPI's TestClient against a per-test SQLite file, so every request
goes through the full load -> command -> save cycle.
"""

NAMES_8 = "Ann\nBob\nCat\nDan\nEve\nFay\nGus\nHal"


def _state(client):
    resp = client.get("/cornhole/state")
    assert resp.status_code == 200
    return resp.json()


def _setup(client, names=NAMES_8, mode="groups", target=21, count=None):
    data = {"mode": mode, "target": str(target), "player_names": names}
    if count is not None:
        data["count"] = str(count)
    return client.post("/cornhole/setup", data=data)


def _score_groups(client, state):
    for g in state["groups"]:
        for m in g["matches"]:
            resp = client.post(
                f"/cornhole/groups/{g['name']}/score",
                data={"match_id": m["id"], "score_a": "21", "score_b": "10"},
            )
            assert resp.status_code == 303


def _score_round(client, state):
    index = len(state["rounds"]) - 1
    for m in state["rounds"][index]:
        resp = client.post(
            f"/cornhole/rounds/{index}/score",
            data={"match_id": m["id"], "score_a": "21", "score_b": "10"},
        )
        assert resp.status_code == 303


class TestPages:
    def test_root_redirects(self, client):
        resp = client.get("/")
        assert resp.status_code == 303
        assert resp.headers["location"] == "/cornhole/"

    def test_setup_page(self, client):
        resp = client.get("/cornhole/")
        assert resp.status_code == 200
        assert "Start Tournament" in resp.text

    def test_empty_state(self, client):
        state = _state(client)
        assert state["stage"] == "setup"
        assert state["mode"] == "groups"
        assert state["target"] == 21
        assert state["players"] == []
        assert state["podium"] is None

    def test_static_css(self, client):
        assert client.get("/static/style.css").status_code == 200


class TestSetup:
    def test_groups_setup_persists(self, client):
        resp = _setup(client)
        assert resp.status_code == 303
        state = _state(client)
        assert state["stage"] == "groups"
        assert [g["name"] for g in state["groups"]] == ["A", "B"]
        assert state["progress"] == {"completed": 0, "total": 12}

        page = client.get("/cornhole/")
        assert page.status_code == 200
        assert "Group A" in page.text

    def test_wrong_count(self, client):
        resp = _setup(client, names="Ann\nBob\nCat")
        assert resp.status_code == 400
        assert "multiple of 4" in resp.json()["detail"]["message"]
        assert _state(client)["stage"] == "setup"

    def test_missing_names_with_count(self, client):
        resp = _setup(client, names="Ann\n\nCat\nDan", mode="single", count=4)
        assert resp.status_code == 400
        detail = resp.json()["detail"]
        assert detail["missing"] == [1]
        assert detail["message"] == "Please enter 4 player names (you've entered 3)."

    def test_single_setup(self, client):
        resp = _setup(client, names="Ann\nBob\nCat\nDan", mode="single", target=11)
        assert resp.status_code == 303
        state = _state(client)
        assert state["stage"] == "knockout"
        assert state["target"] == 11
        assert state["round_names"] == ["Semi-Finals"]

        page = client.get("/cornhole/")
        assert "Semi-Finals" in page.text


class TestScores:
    def test_invalid_score_rejected(self, client):
        _setup(client)
        state = _state(client)
        match = state["groups"][0]["matches"][0]
        resp = client.post(
            "/cornhole/groups/A/score",
            data={"match_id": match["id"], "score_a": "20", "score_b": "18"},
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Winner must have exactly 21"
        assert _state(client)["groups"][0]["matches"][0]["completed"] is False

    def test_missing_score_rejected(self, client):
        _setup(client)
        match = _state(client)["groups"][0]["matches"][0]
        resp = client.post("/cornhole/groups/A/score", data={"match_id": match["id"], "score_a": "21"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Enter both scores"

    def test_unknown_match(self, client):
        _setup(client)
        resp = client.post(
            "/cornhole/groups/A/score",
            data={"match_id": "nope", "score_a": "21", "score_b": "3"},
        )
        assert resp.status_code == 404

    def test_score_saved(self, client):
        _setup(client)
        match = _state(client)["groups"][1]["matches"][3]
        client.post(
            "/cornhole/groups/B/score",
            data={"match_id": match["id"], "score_a": "7", "score_b": "21"},
        )
        saved = _state(client)["groups"][1]["matches"][3]
        assert (saved["score_a"], saved["score_b"], saved["completed"]) == (7, 21, True)


class TestFullTournament:
    def test_advance_before_groups_done(self, client):
        _setup(client)
        resp = client.post("/cornhole/advance")
        assert resp.status_code == 409

    def test_groups_to_champion(self, client):
        _setup(client)
        _score_groups(client, _state(client))

        assert client.post("/cornhole/advance").status_code == 303
        state = _state(client)
        assert state["stage"] == "knockout"
        assert len(state["rounds"]) == 1 and len(state["rounds"][0]) == 2

        _score_round(client, state)
        state = _state(client)
        assert state["round_names"] == ["Semi-Finals", "Final"]

        _score_round(client, state)
        state = _state(client)
        final = state["rounds"][-1][0]
        assert state["stage"] == "champion"
        assert state["champion"] == final["a"]
        assert state["podium"]["silver"] == final["b"]
        assert state["podium"]["bronze"] == state["rounds"][0][1]["b"]

        page = client.get("/cornhole/")
        assert page.status_code == 200
        assert "Champion" in page.text
        assert client.get("/cornhole/bracket").status_code == 200

    def test_reset(self, client):
        _setup(client, names="Ann\nBob\nCat\nDan", mode="single", target=11)
        assert client.post("/cornhole/reset").status_code == 303
        state = _state(client)
        assert state["stage"] == "setup"
        assert state["players"] == []
        assert state["rounds"] == []
        assert state["mode"] == "single"
        assert state["target"] == 11
