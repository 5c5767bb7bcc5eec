import pytest

from contentflow.agents.import_agent import parse_text
from contentflow.errors import InvalidStateError, NotFoundError, PermissionDeniedError, ValidationError
from contentflow.models.idea import Idea, IdeaStatus
from contentflow.models.log_event import LogEvent, LogAction
from contentflow.models.work_order import WorkOrder, WorkOrderStatus
from contentflow.services.idea_lifecycle import approve_idea, reject_idea, edit_idea
from contentflow.services.import_service import commit_items
from contentflow.states.state import IdeaPatch


PLAN = (
    "IDEIA 1:\nTítulo: Como fazer X\nDescrição: tutorial urgente sobre X\n"
    "Gancho: Você já tentou X?\nPrazo: 2025-03-01\nData de publicação: 2025-03-05 09:00\n"
    "Link: https://drive.google.com/file/d/abc/view"
)


@pytest.fixture()
def pending_idea(db_session, actors) -> Idea:
    items = parse_text(PLAN, brand_default="RAYTCHEL").items
    commit_items(db_session, items, actors["copy"])
    return db_session.query(Idea).one()


def _logs(db_session, **filters):
    return db_session.query(LogEvent).filter_by(**filters).all()


def test_approve_creates_work_order_in_roteiro(db_session, actors, users, pending_idea):
    idea, wo = approve_idea(db_session, pending_idea.id, actors["approver"])

    assert idea.status == IdeaStatus.APROVADA
    assert idea.approved_by == actors["approver"].id
    assert idea.rejected_by is None
    assert idea.created_work_order_id == wo.id

    assert wo.status == WorkOrderStatus.ROTEIRO
    assert wo.title == pending_idea.title
    assert wo.brand == pending_idea.brand
    assert wo.priority == pending_idea.priority
    assert wo.content_type == pending_idea.content_type
    assert wo.hook == "Você já tentou X?"
    assert wo.deadline == "2025-03-01"
    assert wo.scheduled_publish_at.isoformat() == "2025-03-05T09:00:00"
    assert wo.raw_media_links == ["https://drive.google.com/file/d/abc/view"]
    assert wo.channels == ["Instagram", "Reels", "Stories"]
    assert wo.sla_due_at is not None
    assert wo.current_responsible_id == users["copy"].id       # ROTEIRO belongs to COPY

    assert [l.action for l in _logs(db_session, idea_id=idea.id)] == [LogAction.CREATE, LogAction.APPROVE]
    assert [l.action for l in _logs(db_session, work_order_id=wo.id)] == [LogAction.CREATE]


def test_second_approve_fails_without_duplicate_work_order(db_session, actors, pending_idea):
    approve_idea(db_session, pending_idea.id, actors["approver"])
    with pytest.raises(InvalidStateError):
        approve_idea(db_session, pending_idea.id, actors["approver"])
    assert db_session.query(WorkOrder).count() == 1


def test_approve_without_permission_mutates_nothing(db_session, actors, pending_idea):
    with pytest.raises(PermissionDeniedError):
        approve_idea(db_session, pending_idea.id, actors["copy"])
    db_session.refresh(pending_idea)
    assert pending_idea.status == IdeaStatus.PENDENTE
    assert db_session.query(WorkOrder).count() == 0
    assert _logs(db_session, action=LogAction.APPROVE) == []


def test_approve_missing_or_foreign_idea_is_not_found(db_session, actors, pending_idea):
    with pytest.raises(NotFoundError):
        approve_idea(db_session, "does-not-exist", actors["approver"])
    with pytest.raises(NotFoundError):
        approve_idea(db_session, pending_idea.id, actors["outsider"])


def test_reject_sets_reason_and_logs(db_session, actors, pending_idea):
    idea = reject_idea(db_session, pending_idea.id, actors["approver"], "  fora do tom da marca ")
    assert idea.status == IdeaStatus.REJEITADA
    assert idea.rejected_by == actors["approver"].id
    assert idea.approved_by is None
    assert idea.rejection_reason == "fora do tom da marca"
    assert idea.created_work_order_id is None
    assert _logs(db_session, idea_id=idea.id, action=LogAction.REJECT) != []


@pytest.mark.parametrize("reason", [None, "", "   "])
def test_reject_without_reason_fails_validation(db_session, actors, pending_idea, reason):
    with pytest.raises(ValidationError):
        reject_idea(db_session, pending_idea.id, actors["approver"], reason)
    db_session.refresh(pending_idea)
    assert pending_idea.status == IdeaStatus.PENDENTE


def test_reject_reason_checked_before_lookup(db_session, actors):
    with pytest.raises(ValidationError):
        reject_idea(db_session, "does-not-exist", actors["approver"], "")


def test_reject_after_approve_is_invalid_state(db_session, actors, pending_idea):
    approve_idea(db_session, pending_idea.id, actors["approver"])
    with pytest.raises(InvalidStateError):
        reject_idea(db_session, pending_idea.id, actors["approver"], "tarde demais")


def test_edit_pending_idea_logs_changed_fields(db_session, actors, pending_idea):
    patch = IdeaPatch(title="Como fazer X em 5 minutos", priority="LOW")
    idea = edit_idea(db_session, pending_idea.id, actors["copy"], patch)
    assert idea.title == "Como fazer X em 5 minutos"
    assert idea.priority.value == "LOW"
    log = _logs(db_session, idea_id=idea.id, action=LogAction.STATUS_CHANGE)[0]
    assert "title" in log.detail and "priority" in log.detail


def test_edit_reviewed_idea_is_refused(db_session, actors, pending_idea):
    reject_idea(db_session, pending_idea.id, actors["approver"], "não")
    with pytest.raises(InvalidStateError):
        edit_idea(db_session, pending_idea.id, actors["copy"], IdeaPatch(title="Novo título qualquer"))


def test_edit_cannot_clear_required_fields(db_session, actors, pending_idea):
    with pytest.raises(ValidationError):
        edit_idea(db_session, pending_idea.id, actors["copy"], IdeaPatch(title=None))


# ── HTTP surface ─────────────────────────────────────────────────────────────

def test_approve_endpoint_response_shape(api_client, act_as, actors, pending_idea):
    act_as(actors["approver"])
    resp = api_client.post(f"/ideias/{pending_idea.id}/approve")
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["success"] is True
    assert body["ideia"]["status"] == "APROVADA"
    assert body["os_criada"]["status"] == "ROTEIRO"
    assert body["os_criada"]["title"] == "Como fazer X"
    assert body["os_criada"]["priority"] == "HIGH"

    again = api_client.post(f"/ideias/{pending_idea.id}/approve")
    assert again.status_code == 409
    assert again.json()["error"]["code"] == "INVALID_STATE"


def test_approve_endpoint_forbidden_for_non_approver(api_client, act_as, actors, pending_idea):
    act_as(actors["copy"])
    resp = api_client.post(f"/ideias/{pending_idea.id}/approve")
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "FORBIDDEN"


def test_reject_endpoint(api_client, act_as, actors, pending_idea):
    act_as(actors["approver"])
    assert api_client.post(f"/ideias/{pending_idea.id}/reject", json={}).status_code == 400
    resp = api_client.post(f"/ideias/{pending_idea.id}/reject", json={"motivo": "repetido"})
    assert resp.status_code == 200
    assert resp.json()["rejection_reason"] == "repetido"


def test_list_and_edit_endpoints(api_client, act_as, actors, pending_idea):
    act_as(actors["copy"])
    listed = api_client.get("/ideias", params={"status": "PENDENTE"}).json()
    assert [i["id"] for i in listed] == [pending_idea.id]

    resp = api_client.put(f"/ideias/{pending_idea.id}", json={"caption": "Nova legenda"})
    assert resp.status_code == 200
    assert resp.json()["caption"] == "Nova legenda"

    bad = api_client.put(f"/ideias/{pending_idea.id}", json={"status": "APROVADA"})
    assert bad.status_code == 422

    act_as(actors["outsider"])
    assert api_client.get(f"/ideias/{pending_idea.id}").status_code == 404
