# backend/tests/conftest.py

import os

# Configuração de ambiente antes de importar a aplicação
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-with-enough-length-for-hs256")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from aprovafacil.main import app
from aprovafacil import models
from aprovafacil.core.database import SessionLocal, engine, get_db
from aprovafacil.core.rate_limiting import login_rate_limiter
from aprovafacil.users import auth
from aprovafacil.users.models import User, UserRole

DEFAULT_PASSWORD = "Senha123"


@pytest.fixture(autouse=True)
def fresh_database():
    models.Base.metadata.drop_all(bind=engine)
    models.Base.metadata.create_all(bind=engine)
    login_rate_limiter.clear()
    yield
    login_rate_limiter.clear()


@pytest.fixture
def db_session(fresh_database):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_user(db, email, name="Maria Candidata", role=UserRole.USER, password=DEFAULT_PASSWORD):
    user = User(
        email=email,
        name=name,
        password_hash=auth.get_password_hash(password),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def bearer(user):
    return {"Authorization": f"Bearer {auth.create_access_token(user)}"}


@pytest.fixture
def user(db_session):
    return make_user(db_session, "maria@aprovafacil.com.br")


@pytest.fixture
def other_user(db_session):
    return make_user(db_session, "joao@aprovafacil.com.br", name="João Candidato")


@pytest.fixture
def admin(db_session):
    return make_user(db_session, "admin@aprovafacil.com.br", name="Administradora", role=UserRole.ADMIN)


@pytest.fixture
def auth_headers(user):
    return bearer(user)


@pytest.fixture
def admin_headers(admin):
    return bearer(admin)


@pytest.fixture
def categoria(db_session):
    categoria = models.ConcursoCategoria(nome="Bancários", slug="bancarios", descricao="Concursos de bancos públicos")
    categoria.disciplinas = [
        models.CategoriaDisciplina(nome="Língua Portuguesa", peso=3, horas_semanais=7, ordem=1),
        models.CategoriaDisciplina(nome="Matemática", peso=1, horas_semanais=7, ordem=2),
    ]
    db_session.add(categoria)
    db_session.commit()
    db_session.refresh(categoria)
    return categoria


@pytest.fixture
def concurso(db_session, categoria):
    concurso = models.Concurso(nome="Banco do Brasil 2025", ano=2025, banca="CESGRANRIO", categoria_id=categoria.id)
    db_session.add(concurso)
    db_session.commit()
    db_session.refresh(concurso)
    return concurso


@pytest.fixture
def outro_concurso(db_session, categoria):
    concurso = models.Concurso(nome="Caixa Econômica 2024", ano=2024, banca="CESGRANRIO", categoria_id=categoria.id)
    db_session.add(concurso)
    db_session.commit()
    db_session.refresh(concurso)
    return concurso


def simulado_payload(concurso, categoria, title="Simulado Banco do Brasil #1", is_public=True):
    return {
        "title": title,
        "description": "Questões no estilo CESGRANRIO",
        "time_minutes": 30,
        "difficulty": "Médio",
        "concurso_id": str(concurso.id),
        "categoria_id": str(categoria.id),
        "disciplinas": ["Língua Portuguesa", "Matemática"],
        "is_public": is_public,
        "questions": [
            {
                "question_text": "Assinale a alternativa com crase correta.",
                "alternatives": {"A": "à partir", "B": "às vezes", "C": "à ele", "D": "à pé"},
                "correct_answer": "B",
                "explanation": "Locução adverbial feminina.",
                "discipline": "Língua Portuguesa",
                "topic": "Crase",
            },
            {
                "question_text": "Quanto é 15% de 200?",
                "alternatives": {"A": "15", "B": "20", "C": "30", "D": "35"},
                "correct_answer": "C",
                "discipline": "Matemática",
                "topic": "Porcentagem",
            },
            {
                "question_text": "Qual o plural de 'cidadão'?",
                "alternatives": {"A": "cidadões", "B": "cidadãos", "C": "cidadães"},
                "correct_answer": "B",
                "discipline": "Língua Portuguesa",
                "topic": "Morfologia",
            },
        ],
    }


@pytest.fixture
def simulado(client, admin_headers, concurso, categoria):
    response = client.post("/api/simulados", json=simulado_payload(concurso, categoria), headers=admin_headers)
    assert response.status_code == 201
    return response.json()["data"]
