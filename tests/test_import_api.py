from sqlalchemy.exc import OperationalError

from contentflow.models.idea import Idea, IdeaStatus
from contentflow.models.import_session import ImportSession
from contentflow.models.log_event import LogEvent, LogAction
from contentflow.services import import_service
from contentflow.services.import_service import commit_items
from contentflow.states.state import ParsedIdea


SCENARIO = "IDEIA 1:\nTítulo: Como fazer X\nDescrição: tutorial urgente sobre X"


def _parse(api_client, text, **extra):
    resp = api_client.post("/import/parse", json={"text": text, **extra})
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_parse_returns_camel_case_items(api_client, act_as, actors):
    act_as(actors["copy"])
    body = _parse(api_client, SCENARIO, brandDefault="zaff")
    assert body["metadata"] == {"provider": "HEURISTIC", "textLength": len(SCENARIO), "itemsDetected": 1}
    item = body["items"][0]
    assert item["type"] == "EDUCATIONAL"
    assert item["priority"] == "HIGH"
    assert item["objective"] == "ATTRACTION"
    assert item["brand"] == "ZAFF"
    assert item["channels"] == ["Instagram", "Stories"]
    assert item["rawMediaLinks"] == []


def test_parse_rejects_blank_text(api_client, act_as, actors):
    act_as(actors["copy"])
    assert api_client.post("/import/parse", json={"text": "   "}).status_code == 400
    assert api_client.post("/import/parse", json={}).status_code == 400


def test_parse_requires_bearer_token(api_client):
    resp = api_client.post("/import/parse", json={"text": SCENARIO})
    assert resp.status_code == 401


def test_real_bearer_token_resolves_actor(api_client, users):
    resp = api_client.post(
        "/import/parse",
        json={"text": SCENARIO},
        headers={"Authorization": f"Bearer {users['copy'].api_token}"},
    )
    assert resp.status_code == 200
    bad = api_client.post("/import/parse", json={"text": SCENARIO}, headers={"Authorization": "Bearer nope"})
    assert bad.status_code == 401


def test_commit_twice_creates_then_skips(api_client, act_as, actors, db_session):
    act_as(actors["copy"])
    items = _parse(api_client, SCENARIO)["items"]

    first = api_client.post("/import/commit", json={"items": items})
    assert first.status_code == 200
    assert first.json() == {"created": 1, "skipped": 0, "errors": []}

    second = api_client.post("/import/commit", json={"items": items})
    assert second.json() == {"created": 0, "skipped": 1, "errors": []}

    ideas = db_session.query(Idea).all()
    assert len(ideas) == 1
    assert ideas[0].status == IdeaStatus.PENDENTE
    assert ideas[0].created_by == actors["copy"].id
    assert ideas[0].org_id == actors["copy"].org_id

    sessions = db_session.query(ImportSession).all()
    assert sorted((s.items_created, s.items_skipped) for s in sessions) == [(0, 1), (1, 0)]
    assert all(s.processing_time_ms is not None for s in sessions)

    logs = db_session.query(LogEvent).filter_by(idea_id=ideas[0].id).all()
    assert [l.action for l in logs] == [LogAction.CREATE]


def test_commit_dedup_is_scoped_by_org(api_client, act_as, actors, db_session):
    act_as(actors["copy"])
    items = _parse(api_client, SCENARIO)["items"]
    api_client.post("/import/commit", json={"items": items})

    act_as(actors["outsider"])
    resp = api_client.post("/import/commit", json={"items": items})
    assert resp.json()["created"] == 1
    assert db_session.query(Idea).count() == 2


def test_commit_same_title_other_brand_is_not_duplicate(api_client, act_as, actors):
    act_as(actors["copy"])
    items = _parse(api_client, SCENARIO)["items"]
    api_client.post("/import/commit", json={"items": items})
    items[0]["brand"] = "CRISPIM"
    resp = api_client.post("/import/commit", json={"items": items})
    assert resp.json() == {"created": 1, "skipped": 0, "errors": []}


def test_commit_rejects_unknown_item_keys(api_client, act_as, actors):
    act_as(actors["copy"])
    items = _parse(api_client, SCENARIO)["items"]
    items[0]["surprise"] = "x"
    assert api_client.post("/import/commit", json={"items": items}).status_code == 422


def test_import_sessions_are_org_scoped(api_client, act_as, actors):
    act_as(actors["copy"])
    items = _parse(api_client, SCENARIO)["items"]
    api_client.post("/import/commit", json={"items": items, "fileNames": ["plano.txt"], "sourceType": "FILE_UPLOAD"})

    sessions = api_client.get("/import/sessions").json()
    assert len(sessions) == 1
    assert sessions[0]["file_names"] == ["plano.txt"]
    assert sessions[0]["source_type"] == "FILE_UPLOAD"
    assert api_client.get(f"/import/sessions/{sessions[0]['id']}").status_code == 200

    act_as(actors["outsider"])
    assert api_client.get("/import/sessions").json() == []
    assert api_client.get(f"/import/sessions/{sessions[0]['id']}").status_code == 404


def test_upload_text_file(api_client, act_as, actors):
    act_as(actors["copy"])
    resp = api_client.post(
        "/import/upload",
        files={"file": ("plano.txt", SCENARIO.encode("utf-8"), "text/plain")},
        data={"brandDefault": "fazenda"},
    )
    assert resp.status_code == 200, resp.text
    item = resp.json()["items"][0]
    assert item["brand"] == "FAZENDA"
    assert item["channels"] == ["Instagram", "Facebook"]


def test_upload_rejects_unsupported_type(api_client, act_as, actors):
    act_as(actors["copy"])
    resp = api_client.post("/import/upload", files={"file": ("plano.exe", b"MZ....", "application/octet-stream")})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "BAD_REQUEST"


def test_commit_rejects_blank_brand(api_client, act_as, actors, db_session):
    act_as(actors["copy"])
    items = _parse(api_client, SCENARIO)["items"]
    items[0]["brand"] = "   "
    assert api_client.post("/import/commit", json={"items": items}).status_code == 422
    assert db_session.query(Idea).count() == 0


def test_commit_failure_is_recorded_and_batch_continues(db_session, actors, monkeypatch):
    real_insert = import_service.insert_idea

    def flaky_insert(db, idea):
        if idea.title.startswith("Primeira"):
            raise OperationalError("INSERT INTO ideias", {}, Exception("disk I/O error"))
        return real_insert(db, idea)

    monkeypatch.setattr(import_service, "insert_idea", flaky_insert)
    items = [
        ParsedIdea(title="Primeira ideia do lote", description="Receita rápida de verão", brand="raytchel"),
        ParsedIdea(title="Segunda ideia do lote", description="Bastidores da gravação", brand="raytchel"),
    ]

    result = commit_items(db_session, items, actors["copy"])

    assert result.created == 1
    assert result.skipped == 0
    assert [e.item for e in result.errors] == ["Primeira ideia do lote"]
    assert "disk I/O error" in result.errors[0].error

    assert [i.title for i in db_session.query(Idea).all()] == ["Segunda ideia do lote"]
    assert db_session.query(LogEvent).filter_by(action=LogAction.CREATE).count() == 1

    session = db_session.query(ImportSession).one()
    assert session.items_created == 1
    assert session.items_skipped == 0
    assert [d["item"] for d in session.error_details] == ["Primeira ideia do lote"]
