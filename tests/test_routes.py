from catalog import CATALOG
from conftest import full_answers, seed_occupations, valid_answer
from persistence import PersistenceGateway


def _put_all_sections(client, user_id="u1"):
    answers = full_answers()
    for section_id in CATALOG.sections:
        resp = client.put(
            f"/assessment/{user_id}/sections/{section_id.value}",
            json={"answers": CATALOG.section_answers(section_id, answers)},
        )
        assert resp.status_code == 200, resp.text


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_questions_endpoint(client):
    data = client.get("/assessment/questions").json()
    assert [s["id"] for s in data["sections"]] == [s.value for s in CATALOG.sections]
    assert len(data["questions"]) == len(CATALOG)
    assert data["questions"][0]["id"] == "warmup_sidekick"
    assert "personality_agreement" in data["scales"]


def test_section_save(client, db):
    resp = client.put(
        "/assessment/u1/sections/warmup",
        json={"answers": {"warmup_superpower": "teleport", "warmup_sidekick": "owl"}},
    )
    assert resp.status_code == 200
    assert resp.json() == {"status": "success", "saved": True, "section_id": "warmup", "answers": 2}
    assert PersistenceGateway(db).load_sections("u1", "main_vocational") == [
        ("warmup", {"warmup_sidekick": "owl", "warmup_superpower": "teleport"}),
    ]


def test_empty_section_save_is_a_no_op(client):
    resp = client.put("/assessment/u1/sections/goals", json={"answers": {}})
    assert resp.status_code == 200
    assert resp.json()["saved"] is False


def test_section_save_rejects_foreign_question(client):
    resp = client.put("/assessment/u1/sections/warmup", json={"answers": {"interest_scenario_1": "1a"}})
    assert resp.status_code == 422


def test_section_save_rejects_invalid_answer(client):
    resp = client.put("/assessment/u1/sections/personality", json={"answers": {"pers_neuro_worry": 9}})
    assert resp.status_code == 422
    assert "pers_neuro_worry" in resp.json()["detail"]


def test_section_save_rejects_unknown_section(client):
    resp = client.put("/assessment/u1/sections/hobbies", json={"answers": {}})
    assert resp.status_code == 422


def test_process_without_data_is_404(client):
    resp = client.post("/assessment/ghost/process")
    assert resp.status_code == 404
    assert resp.json()["detail"]["failed_step"] == "load"


def test_process_and_read_profile(client, db):
    seed_occupations(db)
    _put_all_sections(client)

    resp = client.post("/assessment/u1/process")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "success"
    assert body["scores"]["riasec_scores"]["R"] == 2
    assert body["suggestions"]["top_interest_codes"] == ["R", "I", "A"]

    profile = client.get("/assessment/u1/profile").json()
    assert profile["scores"]["learning_style"] == "Visual"
    assert profile["suggestions"]["suggested_occupation_codes"][0] == "47-2111.00"


def test_profile_for_unknown_user_is_404(client):
    assert client.get("/assessment/ghost/profile").status_code == 404


def test_profile_read_recomputes_missing_suggestions(client, db):
    from models import SuggestedProfileRecord

    _put_all_sections(client)
    client.post("/assessment/u1/process")
    db.query(SuggestedProfileRecord).delete()
    db.commit()

    profile = client.get("/assessment/u1/profile").json()
    assert profile["suggestions"]["top_interest_codes"] == ["R", "I", "A"]


def test_intake_flow_over_http(client, db):
    view = client.post("/intake", json={"user_id": "u7"}).json()
    sid = view["session_id"]
    assert view["state"] == "not_started"

    view = client.post(f"/intake/{sid}/start").json()
    answers = {}
    while True:
        assert view["state"] == "in_section", view
        question = CATALOG.get(view["question"]["id"])
        answers[question.id] = valid_answer(question, answers)
        resp = client.post(f"/intake/{sid}/answer", json={"value": answers[question.id]})
        assert resp.status_code == 200, resp.text
        if view["is_last"]:
            break
        view = client.post(f"/intake/{sid}/next").json()
        if view["state"] == "interstitial":
            assert view["interstitial"]["intro"]
            view = client.post(f"/intake/{sid}/continue").json()

    resp = client.post(f"/intake/{sid}/finish")
    assert resp.status_code == 200
    body = resp.json()
    assert body["state"] == "finished"
    assert body["completion"]["success"] is True
    assert body["scores"]["riasec_scores"] == {"R": 2, "I": 1, "A": 1, "S": 0, "E": 0, "C": 1}

    stored = dict(PersistenceGateway(db).load_sections("u7", "main_vocational"))
    assert set(stored) == {s.value for s in CATALOG.sections}
    assert client.get(f"/intake/{sid}").status_code == 404


def test_intake_next_without_answer_is_422(client):
    sid = client.post("/intake", json={"user_id": "u8"}).json()["session_id"]
    client.post(f"/intake/{sid}/start")
    resp = client.post(f"/intake/{sid}/next")
    assert resp.status_code == 422


def test_intake_invalid_transition_is_409(client):
    sid = client.post("/intake", json={"user_id": "u9"}).json()["session_id"]
    assert client.post(f"/intake/{sid}/continue").status_code == 409
    client.post(f"/intake/{sid}/start")
    assert client.post(f"/intake/{sid}/back").status_code == 409


def test_intake_rejects_bad_answer(client):
    sid = client.post("/intake", json={"user_id": "u10"}).json()["session_id"]
    client.post(f"/intake/{sid}/start")
    resp = client.post(f"/intake/{sid}/answer", json={"value": "not-an-option"})
    assert resp.status_code == 422


def test_unknown_session_is_404(client):
    assert client.post("/intake/nope/start").status_code == 404
    assert client.post("/intake", json={"user_id": ""}).status_code == 422


def test_process_with_store_down_is_503(client, monkeypatch):
    from persistence import PersistenceError

    def unavailable(self, user_id, assessment_id):
        raise PersistenceError("connection refused")

    monkeypatch.setattr(PersistenceGateway, "load_sections", unavailable)
    resp = client.post("/assessment/u1/process")
    assert resp.status_code == 503
    assert resp.json()["detail"]["retryable"] is True


def test_profile_read_with_store_down_is_503(client, monkeypatch):
    from persistence import PersistenceError

    def unavailable(self, user_id):
        raise PersistenceError("connection refused")

    monkeypatch.setattr(PersistenceGateway, "load_score_bundle", unavailable)
    assert client.get("/assessment/u1/profile").status_code == 503


def test_intake_blank_answer_is_422(client):
    sid = client.post("/intake", json={"user_id": "u11"}).json()["session_id"]
    client.post(f"/intake/{sid}/start")
    resp = client.post(f"/intake/{sid}/answer", json={"value": ""})
    assert resp.status_code == 422
    assert client.get(f"/intake/{sid}").json()["answer"] is None
