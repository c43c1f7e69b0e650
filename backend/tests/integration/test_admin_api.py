from datetime import timedelta

from aprovafacil import models
from aprovafacil.admin.schema_validation import EXPECTED_SCHEMA
from aprovafacil.core.database import utcnow


def _seed_cache(db_session, user):
    db_session.add_all([
        models.UserPerformanceCache(user_id=user.id, cache_key="dashboard", cache_data={"x": 1},
                                    expires_at=utcnow() + timedelta(hours=1)),
        models.UserDisciplineStats(user_id=user.id, disciplina="Matemática", total_questions=10,
                                   correct_answers=7, average_score=70),
        models.CacheConfig(cache_key="dashboard", ttl_minutes=30),
    ])
    db_session.commit()


def test_admin_routes_reject_regular_users(client, auth_headers):
    for method, path in [
        ("post", "/api/admin/clear-cache"),
        ("get", "/api/admin/clear-cache"),
        ("get", "/api/admin/cache-config"),
        ("get", "/api/admin/validate-schema"),
        ("get", "/api/admin/database-usage"),
        ("get", "/api/admin/audit-logs"),
    ]:
        r = getattr(client, method)(path, headers=auth_headers)
        assert r.status_code == 403, path
        assert r.json()["error"]["code"] == "ADMIN_REQUIRED"


def test_admin_routes_require_authentication(client):
    assert client.post("/api/admin/clear-cache").status_code == 401


def test_cache_stats_and_clear(client, db_session, user, admin_headers):
    _seed_cache(db_session, user)

    stats = client.get("/api/admin/clear-cache", headers=admin_headers).json()
    assert stats["cacheStats"] == {"performanceCache": 1, "configCache": 1, "disciplineStats": 1}

    r = client.post("/api/admin/clear-cache", headers=admin_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["details"] == {"performanceCache": True, "configCache": True, "disciplineStats": True}

    stats = client.get("/api/admin/clear-cache", headers=admin_headers).json()
    assert stats["cacheStats"] == {"performanceCache": 0, "configCache": 0, "disciplineStats": 0}

    assert db_session.query(models.AuditLog).filter(models.AuditLog.action == "CLEAR_CACHE").count() == 1


def test_cache_config_upsert(client, admin_headers):
    created = client.put("/api/admin/cache-config",
                         json={"cache_key": "dashboard", "ttl_minutes": 15, "description": "Painel"},
                         headers=admin_headers)
    assert created.status_code == 200
    config_id = created.json()["data"]["id"]

    updated = client.put("/api/admin/cache-config", json={"cache_key": "dashboard", "ttl_minutes": 45},
                         headers=admin_headers)
    assert updated.json()["data"]["id"] == config_id
    assert updated.json()["data"]["ttl_minutes"] == 45
    assert updated.json()["data"]["description"] == "Painel"

    listed = client.get("/api/admin/cache-config", headers=admin_headers).json()["data"]
    assert [(c["cache_key"], c["ttl_minutes"]) for c in listed] == [("dashboard", 45)]

    invalid = client.put("/api/admin/cache-config", json={"cache_key": "dashboard", "ttl_minutes": 0},
                         headers=admin_headers)
    assert invalid.status_code == 422


def test_validate_schema_on_live_database(client, admin_headers):
    r = client.get("/api/admin/validate-schema", headers=admin_headers)
    assert r.status_code == 200
    body = r.json()
    validation = body["validation"]
    assert "timestamp" in body

    # Todas as tabelas e colunas existem; diferenças de tipo do SQLite são apenas avisos
    assert validation["isValid"] is True
    assert validation["errors"] == []
    assert validation["summary"]["validTables"] == len(EXPECTED_SCHEMA)
    assert validation["summary"]["missingColumns"] == []


def test_database_usage(client, admin_headers, concurso):
    data = client.get("/api/admin/database-usage", headers=admin_headers).json()["data"]
    assert data["tables"]["concursos"] == 1
    assert data["tables"]["concurso_categorias"] == 1
    assert data["tables"]["users"] == 1
    assert data["totalRows"] == sum(data["tables"].values())


def test_audit_logs_filter_by_action(client, admin_headers, auth_headers, concurso):
    client.post("/api/user/concurso-preference", json={"concurso_id": str(concurso.id)}, headers=auth_headers)

    logs = client.get("/api/admin/audit-logs", params={"action": "SELECT_CONCURSO"}, headers=admin_headers).json()
    assert len(logs["data"]) == 1
    assert logs["data"][0]["table_name"] == "user_concurso_preferences"
