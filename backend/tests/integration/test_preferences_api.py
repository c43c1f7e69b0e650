import uuid
from datetime import timedelta

from conftest import bearer, simulado_payload
from aprovafacil import models
from aprovafacil.core.database import utcnow


def _unlock(db_session, user):
    preference = (
        db_session.query(models.UserConcursoPreference)
        .filter_by(user_id=user.id, is_active=True)
        .one()
    )
    preference.can_change_until = utcnow() - timedelta(minutes=1)
    db_session.commit()
    return preference


def test_get_preference_when_none_selected(client, auth_headers):
    r = client.get("/api/user/concurso-preference", headers=auth_headers)
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "PREFERENCE_NOT_FOUND"


def test_select_concurso_starts_lock(client, auth_headers, concurso):
    r = client.post("/api/user/concurso-preference", json={"concurso_id": str(concurso.id)}, headers=auth_headers)

    assert r.status_code == 200
    body = r.json()
    assert body["canChange"] is False
    assert body["daysUntilChange"] == 120
    assert body["data"]["concurso_id"] == str(concurso.id)
    assert body["data"]["concurso"]["nome"] == "Banco do Brasil 2025"

    current = client.get("/api/user/concurso-preference", headers=auth_headers).json()
    assert current["canChange"] is False
    assert current["daysUntilChange"] == 120


def test_change_is_blocked_while_locked(client, auth_headers, concurso, outro_concurso):
    client.post("/api/user/concurso-preference", json={"concurso_id": str(concurso.id)}, headers=auth_headers)

    r = client.post("/api/user/concurso-preference", json={"concurso_id": str(outro_concurso.id)}, headers=auth_headers)
    assert r.status_code == 403
    error = r.json()["error"]
    assert error["code"] == "CONCURSO_CHANGE_LOCKED"
    assert error["details"]["daysUntilChange"] == 120

    r = client.put("/api/user/concurso-preference", json={"concurso_id": str(outro_concurso.id)}, headers=auth_headers)
    assert r.status_code == 403


def test_select_after_lock_keeps_single_active_preference(client, db_session, user, auth_headers, concurso, outro_concurso):
    client.post("/api/user/concurso-preference", json={"concurso_id": str(concurso.id)}, headers=auth_headers)
    _unlock(db_session, user)

    r = client.post("/api/user/concurso-preference", json={"concurso_id": str(outro_concurso.id)}, headers=auth_headers)
    assert r.status_code == 200

    db_session.expire_all()
    rows = db_session.query(models.UserConcursoPreference).filter_by(user_id=user.id).all()
    assert len(rows) == 2
    active = [p for p in rows if p.is_active]
    assert len(active) == 1
    assert active[0].concurso_id == outro_concurso.id


def test_update_changes_active_preference_in_place(client, db_session, user, auth_headers, concurso, outro_concurso):
    created = client.post("/api/user/concurso-preference", json={"concurso_id": str(concurso.id)}, headers=auth_headers)
    _unlock(db_session, user)

    r = client.put("/api/user/concurso-preference", json={"concurso_id": str(outro_concurso.id)}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["data"]["id"] == created.json()["data"]["id"]
    assert r.json()["data"]["concurso_id"] == str(outro_concurso.id)
    assert r.json()["daysUntilChange"] == 120


def test_update_without_preference(client, auth_headers, concurso):
    r = client.put("/api/user/concurso-preference", json={"concurso_id": str(concurso.id)}, headers=auth_headers)
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "PREFERENCE_NOT_FOUND"


def test_select_unknown_concurso(client, auth_headers):
    r = client.post("/api/user/concurso-preference", json={"concurso_id": str(uuid.uuid4())}, headers=auth_headers)
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "CONCURSO_NOT_FOUND"


def _seed_content(db_session, concurso, categoria):
    db_session.add_all([
        models.Flashcard(front="Crase antes de verbo?", back="Nunca", disciplina="Língua Portuguesa",
                         tema="Crase", concurso_id=concurso.id, categoria_id=categoria.id),
        models.Flashcard(front="Juros simples", back="J = C.i.t", disciplina="Matemática",
                         tema="Juros", concurso_id=concurso.id, categoria_id=categoria.id),
        models.Apostila(title="Apostila BB", slug="apostila-bb", concurso_id=concurso.id, categoria_id=categoria.id),
        models.MapaAssunto(disciplina="Matemática", tema="Porcentagem", concurso_id=concurso.id,
                           categoria_id=categoria.id),
    ])
    db_session.commit()


def test_conteudo_filtrado_groups_content(client, db_session, auth_headers, simulado, concurso, categoria):
    _seed_content(db_session, concurso, categoria)

    r = client.get(
        "/api/conteudo/filtrado",
        params={"categoria_id": str(categoria.id), "concurso_id": str(concurso.id)},
        headers=auth_headers,
    )
    assert r.status_code == 200
    body = r.json()
    assert len(body["data"]["simulados"]) == 1
    assert len(body["data"]["flashcards"]) == 2
    assert len(body["data"]["apostilas"]) == 1
    assert len(body["data"]["mapaAssuntos"]) == 1
    assert body["total"] == 5
    assert body["page"] == 1

    only_math = client.get(
        "/api/conteudo/filtrado",
        params={"categoria_id": str(categoria.id), "concurso_id": str(concurso.id), "disciplina": "Matemática"},
        headers=auth_headers,
    ).json()
    assert [f["tema"] for f in only_math["data"]["flashcards"]] == ["Juros"]
    assert len(only_math["data"]["mapaAssuntos"]) == 1

    hard = client.get(
        "/api/conteudo/filtrado",
        params={"categoria_id": str(categoria.id), "concurso_id": str(concurso.id), "dificuldade": "Difícil"},
        headers=auth_headers,
    ).json()
    assert hard["data"]["simulados"] == []


def test_conteudo_filtrado_falls_back_to_preference(client, db_session, auth_headers, concurso, categoria):
    _seed_content(db_session, concurso, categoria)
    client.post("/api/user/concurso-preference", json={"concurso_id": str(concurso.id)}, headers=auth_headers)

    r = client.get("/api/conteudo/filtrado", headers=auth_headers)
    assert r.status_code == 200
    assert len(r.json()["data"]["flashcards"]) == 2


def test_conteudo_filtrado_requires_filters(client, auth_headers, categoria):
    r = client.get("/api/conteudo/filtrado", headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "MISSING_FILTERS"

    r = client.get("/api/conteudo/filtrado", params={"categoria_id": str(categoria.id)}, headers=auth_headers)
    assert r.status_code == 400


def test_select_inactive_concurso(client, db_session, auth_headers, concurso):
    concurso.is_active = False
    db_session.commit()

    r = client.post("/api/user/concurso-preference", json={"concurso_id": str(concurso.id)}, headers=auth_headers)
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "CONCURSO_NOT_FOUND"


def test_selecting_concurso_drops_cached_dashboard(client, db_session, user, auth_headers, concurso):
    client.get("/api/dashboard", headers=auth_headers)
    assert db_session.query(models.UserPerformanceCache).filter_by(user_id=user.id).count() == 1

    client.post("/api/user/concurso-preference", json={"concurso_id": str(concurso.id)}, headers=auth_headers)

    assert db_session.query(models.UserPerformanceCache).filter_by(user_id=user.id).count() == 0
    assert client.get("/api/dashboard", headers=auth_headers).json()["cached"] is False


def test_conteudo_filtrado_hides_private_simulados_of_others(
    client, other_user, auth_headers, admin_headers, simulado, concurso, categoria
):
    private = simulado_payload(concurso, categoria, title="Rascunho do João", is_public=False)
    r = client.post("/api/simulados", json=private, headers=bearer(other_user))
    assert r.status_code == 201
    params = {"categoria_id": str(categoria.id), "concurso_id": str(concurso.id)}

    seen = client.get("/api/conteudo/filtrado", params=params, headers=auth_headers).json()
    assert [s["title"] for s in seen["data"]["simulados"]] == ["Simulado Banco do Brasil #1"]
    assert seen["total"] == 1

    # Pedir só os privados não revela os de outros usuários
    only_private = client.get("/api/conteudo/filtrado", params={**params, "is_public": "false"},
                              headers=auth_headers).json()
    assert only_private["data"]["simulados"] == []

    owner = client.get("/api/conteudo/filtrado", params=params, headers=bearer(other_user)).json()
    assert {s["title"] for s in owner["data"]["simulados"]} == {"Simulado Banco do Brasil #1", "Rascunho do João"}

    admin_view = client.get("/api/conteudo/filtrado", params=params, headers=admin_headers).json()
    assert len(admin_view["data"]["simulados"]) == 2
