import uuid
from datetime import date, datetime, timezone

import pytest

from aprovafacil import models
from aprovafacil.audit.models import AuditLog
from aprovafacil.questoes_semanais.router import current_week


def semana_payload(concurso, week_number=10, year=2025):
    return {
        "title": f"Semana {week_number}",
        "week_number": week_number,
        "year": year,
        "concurso_id": str(concurso.id),
        "questions": [
            {"question_text": "2 + 2?", "alternatives": {"A": "3", "B": "4"}, "correct_answer": "B",
             "discipline": "Matemática", "topic": "Aritmética"},
            {"question_text": "Sinônimo de célere", "alternatives": {"A": "rápido", "B": "lento"},
             "correct_answer": "A", "discipline": "Língua Portuguesa"},
        ],
    }


@pytest.fixture
def semana(client, admin_headers, concurso):
    r = client.post("/api/questoes-semanais", json=semana_payload(concurso), headers=admin_headers)
    assert r.status_code == 201
    return r.json()["data"]


def test_current_week_uses_iso_calendar():
    assert current_week(date(2025, 1, 1)) == {"year": 2025, "week_number": 1}
    # 29/12/2025 já pertence à semana 1 de 2026
    assert current_week(date(2025, 12, 29)) == {"year": 2026, "week_number": 1}


def test_current_week_follows_utc_date(mocker):
    # Domingo 23h30 em Brasília já é segunda-feira em UTC
    mocker.patch("aprovafacil.questoes_semanais.router.utcnow",
                 return_value=datetime(2025, 12, 29, 2, 30, tzinfo=timezone.utc))
    assert current_week() == {"year": 2026, "week_number": 1}


def test_create_requires_admin(client, auth_headers, concurso):
    r = client.post("/api/questoes-semanais", json=semana_payload(concurso), headers=auth_headers)
    assert r.status_code == 403


def test_duplicate_week_is_conflict(client, admin_headers, concurso, semana):
    r = client.post("/api/questoes-semanais", json=semana_payload(concurso), headers=admin_headers)
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "WEEK_ALREADY_EXISTS"


def test_list_reports_completion_and_current_week(client, auth_headers, semana):
    listed = client.get("/api/questoes-semanais", headers=auth_headers).json()
    assert listed["semana_atual"] == current_week()
    assert listed["data"][0]["questions_count"] == 2
    assert listed["data"][0]["completed"] is False

    client.post(f"/api/questoes-semanais/{semana['id']}/submit", json={"answers": ["b", "B"]}, headers=auth_headers)

    listed = client.get("/api/questoes-semanais", headers=auth_headers).json()
    assert listed["data"][0]["completed"] is True
    assert listed["data"][0]["score"] == 50


def test_submit_scores_answers(client, db_session, auth_headers, semana):
    r = client.post(f"/api/questoes-semanais/{semana['id']}/submit", json={"answers": ["B", "A"]}, headers=auth_headers)
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["score"] == 100
    assert data["correctAnswers"] == 2
    assert [d["isCorrect"] for d in data["detailedResults"]] == [True, True]

    assert db_session.query(models.UserQuestoesSemanaisProgress).count() == 1
    assert db_session.query(AuditLog).filter(AuditLog.action == "COMPLETE_QUESTAO").count() == 1


def test_submit_validations(client, auth_headers, semana):
    mismatch = client.post(f"/api/questoes-semanais/{semana['id']}/submit", json={"answers": ["B"]},
                           headers=auth_headers)
    assert mismatch.status_code == 400
    assert mismatch.json()["error"]["code"] == "ANSWER_COUNT_MISMATCH"

    unknown = client.post(f"/api/questoes-semanais/{uuid.uuid4()}/submit", json={"answers": []},
                          headers=auth_headers)
    assert unknown.status_code == 404
    assert unknown.json()["error"]["code"] == "WEEK_NOT_FOUND"


def test_update_semana(client, db_session, admin_headers, semana):
    r = client.put(f"/api/questoes-semanais/{semana['id']}",
                   json={"title": "Semana 11 revisada", "week_number": 11}, headers=admin_headers)
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["title"] == "Semana 11 revisada"
    assert data["week_number"] == 11
    assert data["year"] == 2025
    assert data["questions_count"] == 2

    audit = db_session.query(AuditLog).filter(AuditLog.action == "UPDATE", AuditLog.table_name == "questoes_semanais").one()
    assert audit.old_values == {"title": "Semana 10", "week_number": 10}


def test_update_replaces_questions(client, admin_headers, semana):
    questions = [{"question_text": "3 x 3?", "alternatives": {"A": "6", "B": "9"}, "correct_answer": "B"}]
    r = client.put(f"/api/questoes-semanais/{semana['id']}", json={"questions": questions}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["data"]["questions_count"] == 1


def test_update_to_taken_week_is_conflict(client, admin_headers, concurso, semana):
    other = client.post("/api/questoes-semanais", json=semana_payload(concurso, week_number=11), headers=admin_headers)

    r = client.put(f"/api/questoes-semanais/{other.json()['data']['id']}", json={"week_number": 10},
                   headers=admin_headers)
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "WEEK_ALREADY_EXISTS"

    # Reenviar a própria semana não conflita consigo mesma
    same = client.put(f"/api/questoes-semanais/{semana['id']}", json={"week_number": 10, "year": 2025},
                      headers=admin_headers)
    assert same.status_code == 200


def test_update_and_delete_require_admin(client, auth_headers, semana):
    url = f"/api/questoes-semanais/{semana['id']}"
    assert client.put(url, json={"title": "Outra semana"}, headers=auth_headers).status_code == 403
    assert client.delete(url, headers=auth_headers).status_code == 403


def test_delete_semana_removes_progress(client, db_session, auth_headers, admin_headers, semana):
    client.post(f"/api/questoes-semanais/{semana['id']}/submit", json={"answers": ["B", "A"]}, headers=auth_headers)
    assert db_session.query(models.UserQuestoesSemanaisProgress).count() == 1

    r = client.delete(f"/api/questoes-semanais/{semana['id']}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["message"] == "Questões semanais removidas com sucesso"

    db_session.expire_all()
    assert db_session.query(models.QuestoesSemanais).count() == 0
    assert db_session.query(models.UserQuestoesSemanaisProgress).count() == 0
    assert client.get("/api/questoes-semanais", headers=auth_headers).json()["data"] == []

    audit = db_session.query(AuditLog).filter(AuditLog.action == "DELETE").one()
    assert audit.old_values["progress_rows"] == 1


def test_update_or_delete_unknown_semana(client, admin_headers):
    missing = f"/api/questoes-semanais/{uuid.uuid4()}"
    r = client.put(missing, json={"title": "Semana fantasma"}, headers=admin_headers)
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "WEEK_NOT_FOUND"
    assert client.delete(missing, headers=admin_headers).status_code == 404
