from datetime import timedelta

from conftest import bearer
from aprovafacil import models
from aprovafacil.core.database import as_utc, utcnow
from aprovafacil.dashboard import service


def _submit(client, headers, simulado, answers, seconds=600):
    r = client.post(f"/api/simulados/{simulado['id']}/submit", json={"answers": answers, "timeSpent": seconds},
                    headers=headers)
    assert r.status_code == 200
    return r.json()["data"]


def test_empty_dashboard(client, auth_headers, concurso):
    r = client.get("/api/dashboard", headers=auth_headers)
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["estatisticas"] == {
        "totalSimulados": 0,
        "totalQuestoes": 0,
        "totalAcertos": 0,
        "taxaAcerto": 0,
        "tempoEstudo": 0,
    }
    assert data["planoEstudo"] is None
    assert data["atividadesRecentes"] == []
    assert data["pontosFracos"] == []
    assert [c["nome"] for c in data["concursos"]] == ["Banco do Brasil 2025"]


def test_dashboard_is_cached_until_next_submission(client, auth_headers, simulado):
    first = client.get("/api/dashboard", headers=auth_headers).json()
    assert first["cached"] is False

    second = client.get("/api/dashboard", headers=auth_headers).json()
    assert second["cached"] is True
    assert second["data"] == first["data"]

    _submit(client, auth_headers, simulado, ["B", "A", "A"])

    fresh = client.get("/api/dashboard", headers=auth_headers).json()
    assert fresh["cached"] is False
    assert fresh["data"]["estatisticas"]["totalSimulados"] == 1


def test_dashboard_statistics_after_simulado(client, auth_headers, simulado):
    _submit(client, auth_headers, simulado, ["B", "A", "A"], seconds=600)

    data = client.get("/api/dashboard", headers=auth_headers).json()["data"]
    assert data["estatisticas"] == {
        "totalSimulados": 1,
        "totalQuestoes": 3,
        "totalAcertos": 1,
        "taxaAcerto": 33,
        "tempoEstudo": 10,
    }

    activity = data["atividadesRecentes"][0]
    assert activity["tipo"] == "simulado"
    assert activity["titulo"] == "Simulado Banco do Brasil #1"
    assert activity["pontuacao"] == 33
    assert activity["tempoMinutos"] == 10

    # Mais fracas primeiro
    assert data["pontosFracos"] == [
        {"disciplina": "Matemática", "acertos": 0},
        {"disciplina": "Língua Portuguesa", "acertos": 50},
    ]
    assert {d["disciplina"] for d in data["desempenhoPorDisciplina"]} == {"Matemática", "Língua Portuguesa"}


def test_strong_disciplines_are_not_weak_points(client, auth_headers, simulado):
    _submit(client, auth_headers, simulado, ["B", "C", "B"])
    data = client.get("/api/dashboard", headers=auth_headers).json()["data"]
    assert data["pontosFracos"] == []


def test_expired_cache_is_rebuilt(client, db_session, user, auth_headers):
    client.get("/api/dashboard", headers=auth_headers)
    entry = db_session.query(models.UserPerformanceCache).filter_by(user_id=user.id).one()
    entry.expires_at = utcnow() - timedelta(seconds=1)
    db_session.commit()

    assert client.get("/api/dashboard", headers=auth_headers).json()["cached"] is False


def test_dashboard_ttl_comes_from_cache_config(client, db_session, user, auth_headers, admin_headers):
    r = client.put("/api/admin/cache-config", json={"cache_key": "dashboard", "ttl_minutes": 5}, headers=admin_headers)
    assert r.status_code == 200

    client.get("/api/dashboard", headers=auth_headers)
    entry = db_session.query(models.UserPerformanceCache).filter_by(user_id=user.id).one()
    remaining = as_utc(entry.expires_at) - utcnow()
    assert timedelta(minutes=4) < remaining <= timedelta(minutes=5)


def test_weak_points_by_topic(client, auth_headers, simulado):
    _submit(client, auth_headers, simulado, ["B", "A", "A"])

    r = client.get("/api/weak-points", headers=auth_headers)
    assert r.status_code == 200
    points = r.json()["data"]
    assert {(p["discipline"], p["topic"]) for p in points} == {
        ("Matemática", "Porcentagem"),
        ("Língua Portuguesa", "Morfologia"),
    }
    for point in points:
        assert point["error_count"] == 1
        assert point["total_questions"] == 1
        assert point["error_rate"] == 100.0


def test_purge_expired_cache(db_session, user, other_user):
    now = utcnow()
    db_session.add_all([
        models.UserPerformanceCache(user_id=user.id, cache_key="dashboard", cache_data={},
                                    expires_at=now - timedelta(minutes=1)),
        models.UserPerformanceCache(user_id=other_user.id, cache_key="dashboard", cache_data={},
                                    expires_at=now + timedelta(minutes=30)),
    ])
    db_session.commit()

    assert service.purge_expired_cache(db_session, now=now) == 1
    remaining = db_session.query(models.UserPerformanceCache).all()
    assert [r.user_id for r in remaining] == [other_user.id]


def test_new_study_plan_refreshes_cached_dashboard(client, auth_headers, concurso):
    before = client.get("/api/dashboard", headers=auth_headers).json()
    assert before["data"]["planoEstudo"] is None

    payload = {"concurso_id": str(concurso.id), "start_date": "2025-03-01", "end_date": "2025-06-30"}
    created = client.post("/api/plano-estudos", json=payload, headers=auth_headers)
    assert created.status_code == 201

    after = client.get("/api/dashboard", headers=auth_headers).json()
    assert after["cached"] is False
    assert after["data"]["planoEstudo"]["id"] == created.json()["data"]["id"]


def test_estatisticas_accumulate_per_discipline(client, auth_headers):
    r = client.post("/api/estatisticas", json={"disciplina": "Matemática", "total_questions": 10,
                                               "correct_answers": 4, "study_time_minutes": 30},
                    headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["message"] == "Estatísticas atualizadas com sucesso"
    assert r.json()["data"]["average_score"] == 40.0

    r = client.post("/api/estatisticas", json={"disciplina": " Matemática ", "total_questions": 10,
                                               "correct_answers": 8, "study_time_minutes": 15},
                    headers=auth_headers)
    data = r.json()["data"]
    assert (data["total_questions"], data["correct_answers"], data["study_time_minutes"]) == (20, 12, 45)
    assert data["average_score"] == 60.0

    client.post("/api/estatisticas", json={"disciplina": "Língua Portuguesa", "total_questions": 5,
                                           "correct_answers": 5}, headers=auth_headers)

    listed = client.get("/api/estatisticas", headers=auth_headers).json()["data"]
    assert [s["disciplina"] for s in listed] == ["Língua Portuguesa", "Matemática"]

    only_math = client.get("/api/estatisticas", params={"disciplina": "Matemática"}, headers=auth_headers).json()
    assert [s["total_questions"] for s in only_math["data"]] == [20]


def test_estatisticas_are_per_user(client, auth_headers, other_user):
    client.post("/api/estatisticas", json={"disciplina": "Matemática", "total_questions": 3, "correct_answers": 1},
                headers=auth_headers)

    r = client.get("/api/estatisticas", headers=bearer(other_user))
    assert r.status_code == 200
    assert r.json()["data"] == []


def test_estatisticas_validations(client, auth_headers):
    r = client.post("/api/estatisticas", json={"total_questions": 3}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "MISSING_FIELDS"

    r = client.post("/api/estatisticas", json={"disciplina": "   ", "total_questions": 3}, headers=auth_headers)
    assert r.status_code == 400

    r = client.post("/api/estatisticas", json={"disciplina": "Matemática", "total_questions": 2,
                                               "correct_answers": 3}, headers=auth_headers)
    assert r.status_code == 422

    assert client.get("/api/estatisticas").status_code == 401


def test_estatisticas_update_refreshes_dashboard(client, auth_headers):
    client.get("/api/dashboard", headers=auth_headers)
    client.post("/api/estatisticas", json={"disciplina": "Matemática", "total_questions": 10, "correct_answers": 2},
                headers=auth_headers)

    fresh = client.get("/api/dashboard", headers=auth_headers).json()
    assert fresh["cached"] is False
    assert fresh["data"]["pontosFracos"] == [{"disciplina": "Matemática", "acertos": 20}]
